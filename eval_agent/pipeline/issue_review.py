"""Operator review of eval issues: approve (apply fix) or dismiss.

Both actions use conditional status writes instead of a lock:

    dismiss:  open -> dismissed
    approve:  open -> triaged  (claim)
              apply fix
              triaged -> fixed (success)  |  triaged -> open (failure, re-raise)

A second reviewer racing the first observes a non-open status and gets a
ConflictError; terminal issues are never touched again.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from eval_agent.data_management.issue_store import IssueStore
from eval_agent.data_management.schemas import IssueStatus
from eval_agent.errors import ConflictError, InvalidRequestError, NotFoundError
from eval_agent.fixes.fix_applier import FixApplier
from eval_agent.utils.logging import get_correlation_id, get_structured_logger

# Longest claim excerpt written to the audit log
AUDIT_CLAIM_CHARS = 100


class ReviewAction(str, Enum):
    APPROVE = "approve"
    DISMISS = "dismiss"


class IssueReviewService:
    """Applies operator decisions to issues."""

    def __init__(self, issue_store: IssueStore, fix_applier: FixApplier) -> None:
        self.issue_store = issue_store
        self.fix_applier = fix_applier
        self._logger = get_structured_logger("IssueReview")

    async def review(
        self,
        issue_id: str,
        action: ReviewAction,
        actor: str = "admin",
    ) -> dict[str, Any]:
        """
        Approve or dismiss an issue.

        Args:
            issue_id: Issue to review.
            action: approve or dismiss.
            actor: Recorded as approved_by.

        Returns:
            {'id', 'status'} plus 'applied' (ApplyFixResult dict) on approve.

        Raises:
            NotFoundError: Unknown issue.
            ConflictError: Issue already fixed/dismissed, or claimed concurrently.
            InvalidRequestError: Approve without a suggested fix.
            Any fix application error, after rolling the issue back to open.
        """
        action = ReviewAction(action)
        issue = await self.issue_store.get(issue_id)
        if issue is None:
            raise NotFoundError(f"Issue not found: {issue_id}")
        if issue.status.is_terminal:
            raise ConflictError(
                f"Issue already {issue.status.value}",
                details={"issue_id": issue_id, "status": issue.status.value},
            )

        log = self._logger.bind(
            issue_id=issue_id, action=action.value, correlation_id=get_correlation_id()
        )

        if action is ReviewAction.DISMISS:
            await self.issue_store.transition(
                issue_id,
                {IssueStatus.OPEN},
                IssueStatus.DISMISSED,
                approved_at=datetime.now(timezone.utc),
                approved_by=actor,
            )
            log.info(
                "admin_action",
                admin_action="eval_dismiss",
                actor=actor,
                object_type=issue.object_type.value,
                details=f"Dismissed eval issue: {issue.claim[:AUDIT_CLAIM_CHARS]}",
            )
            return {"id": issue_id, "status": IssueStatus.DISMISSED.value}

        if not issue.suggested_fix:
            raise InvalidRequestError(
                "Cannot approve: no suggested_fix available",
                details={"issue_id": issue_id},
            )

        claimed = await self.issue_store.transition(
            issue_id, {IssueStatus.OPEN}, IssueStatus.TRIAGED
        )
        try:
            result = await self.fix_applier.apply(claimed)
        except Exception as e:
            log.warning("fix_failed_rolling_back", error=str(e))
            try:
                await self.issue_store.transition(
                    issue_id, {IssueStatus.TRIAGED}, IssueStatus.OPEN
                )
            except ConflictError as rollback_error:
                log.error("rollback_failed", error=str(rollback_error))
            raise

        await self.issue_store.transition(
            issue_id,
            {IssueStatus.TRIAGED},
            IssueStatus.FIXED,
            approved_at=datetime.now(timezone.utc),
            approved_by=actor,
        )
        log.info(
            "admin_action",
            admin_action="eval_approve",
            actor=actor,
            object_type=issue.object_type.value,
            applied_action=result.action,
            target_id=result.target_id,
            details=f"Approved and applied eval fix: {result.details}",
        )
        return {
            "id": issue_id,
            "status": IssueStatus.FIXED.value,
            "applied": result.model_dump(mode="json"),
        }
