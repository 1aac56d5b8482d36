"""Eval issue storage with conditional status transitions.

The approve path relies on ``transition``: a compare-and-set on the issue
status. Two concurrent approvals both read OPEN, but only the first
``transition(OPEN -> TRIAGED)`` succeeds; the second observes TRIAGED and
gets a ConflictError. No lock is held across fix application.

Usage:
    from eval_agent.data_management.issue_store import IssueStore

    store = IssueStore()
    await store.create(issue)
    claimed = await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from eval_agent.data_management.base_store import ModelStore
from eval_agent.data_management.schemas import EvalIssue, IssueStatus, can_transition
from eval_agent.errors import ConflictError, NotFoundError


class IssueStore(ModelStore[EvalIssue]):
    """Storage for eval issues."""

    model_cls = EvalIssue

    async def create(self, issue: EvalIssue) -> EvalIssue:
        """Persist a new OPEN issue."""
        if issue.status is not IssueStatus.OPEN:
            raise ConflictError(f"New issues must be open, got {issue.status.value}")
        await self.save(issue)
        self._logger.debug(
            "issue_created",
            issue_id=issue.id,
            run_id=issue.run_id,
            verdict=issue.verdict.value,
            severity=issue.severity.value,
        )
        return issue

    async def list_issues(
        self,
        status: Optional[IssueStatus] = None,
        limit: int = 50,
    ) -> list[EvalIssue]:
        """Issues newest first, optionally filtered by status."""
        async with self._lock:
            return self._recent(
                lambda i: i.created_at,
                limit,
                predicate=(lambda i: i.status == status) if status else None,
            )

    async def list_by_run(self, run_id: str) -> list[EvalIssue]:
        async with self._lock:
            return [i.model_copy(deep=True) for i in self._records.values() if i.run_id == run_id]

    async def set_status(
        self,
        issue_id: str,
        status: IssueStatus,
        **fields: Any,
    ) -> EvalIssue:
        """Move an issue to ``status`` if the lifecycle allows it."""
        async with self._lock:
            issue = self._require(issue_id)
            if not can_transition(issue.status, status):
                raise ConflictError(
                    f"Issue {issue_id} cannot move from {issue.status.value} to {status.value}",
                    details={"issue_id": issue_id, "status": issue.status.value},
                )
            return self._apply(issue, status, fields)

    async def transition(
        self,
        issue_id: str,
        expected: Iterable[IssueStatus],
        status: IssueStatus,
        **fields: Any,
    ) -> EvalIssue:
        """Conditional update: set ``status`` only if current status is expected.

        Args:
            issue_id: Issue to update.
            expected: Statuses the issue must currently be in.
            status: New status.
            **fields: Extra fields to set atomically (approved_at, approved_by).

        Returns:
            Updated issue.

        Raises:
            NotFoundError: Unknown issue.
            ConflictError: Current status not in ``expected`` or transition
                not allowed by the lifecycle.
        """
        expected = frozenset(expected)
        async with self._lock:
            issue = self._require(issue_id)
            if issue.status not in expected or not can_transition(issue.status, status):
                self._logger.info(
                    "transition_rejected",
                    issue_id=issue_id,
                    current=issue.status.value,
                    requested=status.value,
                )
                raise ConflictError(
                    f"Issue already {issue.status.value}",
                    details={"issue_id": issue_id, "status": issue.status.value},
                )
            return self._apply(issue, status, fields)

    async def get_stats(self) -> dict[str, Any]:
        """Counts by status."""
        async with self._lock:
            status_counts: dict[str, int] = {}
            for issue in self._records.values():
                status_counts[issue.status.value] = status_counts.get(issue.status.value, 0) + 1
            return {"total": len(self._records), "status_counts": status_counts}

    def _require(self, issue_id: str) -> EvalIssue:
        issue = self._records.get(issue_id)
        if issue is None:
            raise NotFoundError(f"Issue not found: {issue_id}")
        return issue

    def _apply(self, issue: EvalIssue, status: IssueStatus, fields: dict[str, Any]) -> EvalIssue:
        previous = issue.status
        issue = issue.model_copy(update={**fields, "status": status}, deep=True)
        issue.updated_at = datetime.now(timezone.utc)
        committed = self._commit(issue)
        self._logger.info(
            "issue_status_changed",
            issue_id=issue.id,
            from_status=previous.value,
            to_status=status.value,
        )
        return committed
