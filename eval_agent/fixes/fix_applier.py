"""Writes approved issue fixes back to the store the claim came from.

Dispatch is a registry of handler functions keyed by object type. Every
handler has the same contract: ``(issue, targets) -> ApplyFixResult``.

| object_type | Handler action                                               |
|-------------|--------------------------------------------------------------|
| document    | replace current_text in content/summary (or full replace)    |
| insight     | replace current_text in the claim, re-project to documents   |
| page        | create a corrective insight, project to documents            |
| news        | document-style replace if the document exists, else insight  |

Every in-place edit goes through ``safe_replace``: if the issue's
current_text no longer appears verbatim, the content changed since the issue
was created and the fix is refused with a ConflictError before any write.

Usage:
    from eval_agent.fixes.fix_applier import FixApplier

    applier = FixApplier(document_store, insight_store)
    result = await applier.apply(issue)
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from eval_agent.data_management.content_store import DocumentStore, InsightStore
from eval_agent.data_management.schemas import (
    ApplyFixResult,
    EvalIssue,
    Insight,
    ObjectType,
)
from eval_agent.errors import ConflictError, InvalidRequestError, NotFoundError
from eval_agent.utils.logging import get_structured_logger

logger = get_structured_logger("FixApplier")

# Topic length used when an issue has no locator
TOPIC_FALLBACK_CHARS = 80


@dataclass
class FixTargets:
    """Stores a handler may write to."""

    documents: DocumentStore
    insights: InsightStore


FixHandler = Callable[[EvalIssue, FixTargets], Awaitable[ApplyFixResult]]

FIX_HANDLERS: dict[ObjectType, FixHandler] = {}


def register_handler(object_type: ObjectType) -> Callable[[FixHandler], FixHandler]:
    """Register ``func`` as the fix handler for ``object_type``."""

    def decorator(func: FixHandler) -> FixHandler:
        FIX_HANDLERS[object_type] = func
        return func

    return decorator


def safe_replace(content: str, current_text: Optional[str], new_text: str) -> str:
    """
    Replace every occurrence of current_text, validating it is still present.

    Args:
        content: Text to edit.
        current_text: Verbatim snippet to replace. Empty/None means new_text
            replaces the whole content.
        new_text: Replacement.

    Returns:
        Edited content. Text outside the replaced spans is unchanged.

    Raises:
        ConflictError: current_text is non-empty and not found in content.
    """
    if not current_text:
        return new_text
    if current_text not in content:
        raise ConflictError(
            "Validation failed: current_text not found in content. "
            "Content may have been modified since the issue was created.",
            details={"current_text": current_text},
        )
    return content.replace(current_text, new_text)


def extract_patch_as_of(issue: EvalIssue, fallback: Optional[str]) -> Optional[str]:
    """Effective date from the suggested patch, else ``fallback``."""
    if issue.suggested_patch is not None and issue.suggested_patch.as_of:
        return issue.suggested_patch.as_of
    return fallback


def _require_object_id(issue: EvalIssue) -> str:
    if not issue.object_id:
        raise InvalidRequestError(
            f"Cannot apply {issue.object_type.value} fix: no object_id",
            details={"issue_id": issue.id},
        )
    return issue.object_id


def _topic(issue: EvalIssue) -> str:
    return issue.object_locator or issue.claim[:TOPIC_FALLBACK_CHARS]


async def _create_corrective_insight(
    issue: EvalIssue,
    targets: FixTargets,
    rationale: str,
    tags: list[str],
) -> str:
    insight = Insight(
        topic=_topic(issue),
        claim=issue.suggested_fix,
        rationale=rationale,
        tags=tags,
        confidence=issue.confidence,
        as_of=extract_patch_as_of(issue, None),
    )
    insight_id = await targets.insights.upsert_insight_unit(insight)
    insight.id = insight_id
    await targets.documents.upsert_from_insight(insight)
    return insight_id


@register_handler(ObjectType.DOCUMENT)
async def apply_document_fix(issue: EvalIssue, targets: FixTargets) -> ApplyFixResult:
    """Update document content (and summary where the snippet appears)."""
    document_id = _require_object_id(issue)
    doc = await targets.documents.get(document_id)
    if doc is None:
        raise NotFoundError(f"Document not found: {document_id}")

    updated_content = safe_replace(doc.content, issue.current_text, issue.suggested_fix)
    updated_summary = doc.summary
    if issue.current_text and doc.summary and issue.current_text in doc.summary:
        updated_summary = safe_replace(doc.summary, issue.current_text, issue.suggested_fix)

    await targets.documents.update(
        document_id,
        content=updated_content,
        summary=updated_summary,
        as_of=extract_patch_as_of(issue, doc.as_of),
    )
    return ApplyFixResult(
        applied_to=ObjectType.DOCUMENT,
        target_id=document_id,
        action="updated_document",
        details=f"Updated document {doc.title or document_id}",
    )


@register_handler(ObjectType.INSIGHT)
async def apply_insight_fix(issue: EvalIssue, targets: FixTargets) -> ApplyFixResult:
    """Update an insight's claim and re-derive its document projection."""
    insight_id = _require_object_id(issue)
    insight = await targets.insights.get(insight_id)
    if insight is None:
        raise NotFoundError(f"Insight not found: {insight_id}")

    updated_claim = safe_replace(insight.claim, issue.current_text, issue.suggested_fix)
    as_of = extract_patch_as_of(issue, insight.as_of)

    content_hash = insight.model_copy(update={"claim": updated_claim}).compute_content_hash()
    updated = await targets.insights.update(
        insight_id, claim=updated_claim, as_of=as_of, content_hash=content_hash
    )
    await targets.documents.upsert_from_insight(updated)

    return ApplyFixResult(
        applied_to=ObjectType.INSIGHT,
        target_id=insight_id,
        action="updated_insight",
        details=f'Updated insight "{insight.topic}" and synced to documents',
    )


@register_handler(ObjectType.PAGE)
async def apply_page_fix(issue: EvalIssue, targets: FixTargets) -> ApplyFixResult:
    """Page data is read-only here; record the correction as a new insight."""
    insight_id = await _create_corrective_insight(
        issue,
        targets,
        rationale=f'Eval fix: {issue.claim} (was: "{issue.current_text or "unknown"}")',
        tags=["eval-fix", issue.object_type.value],
    )
    return ApplyFixResult(
        applied_to=ObjectType.PAGE,
        target_id=insight_id,
        action="created_insight",
        details=f'Created insight "{issue.object_locator}" from page eval fix',
    )


@register_handler(ObjectType.NEWS)
async def apply_news_fix(issue: EvalIssue, targets: FixTargets) -> ApplyFixResult:
    """Patch the news document if it still exists, else file a corrective insight."""
    doc = await targets.documents.get(issue.object_id) if issue.object_id else None
    if doc is not None:
        updated_content = safe_replace(doc.content, issue.current_text, issue.suggested_fix)
        await targets.documents.update(doc.id, content=updated_content)
        return ApplyFixResult(
            applied_to=ObjectType.NEWS,
            target_id=doc.id,
            action="updated_document",
            details=f'Updated news document "{doc.title or doc.id}"',
        )

    insight_id = await _create_corrective_insight(
        issue,
        targets,
        rationale=f"News eval correction: {issue.claim}",
        tags=["eval-fix", "news"],
    )
    return ApplyFixResult(
        applied_to=ObjectType.NEWS,
        target_id=insight_id,
        action="created_insight",
        details="Created corrective insight from news eval",
    )


class FixApplier:
    """Dispatches approved issues to the handler for their object type."""

    def __init__(
        self,
        document_store: DocumentStore,
        insight_store: InsightStore,
        handlers: Optional[dict[ObjectType, FixHandler]] = None,
    ) -> None:
        self.targets = FixTargets(documents=document_store, insights=insight_store)
        self.handlers = handlers if handlers is not None else FIX_HANDLERS

    async def apply(self, issue: EvalIssue) -> ApplyFixResult:
        """
        Apply an approved fix.

        Raises:
            InvalidRequestError: No suggested_fix, or no handler for the object type.
            NotFoundError: Target document/insight does not exist.
            ConflictError: current_text no longer present in the target.
        """
        if not issue.suggested_fix:
            raise InvalidRequestError(
                "Cannot apply fix: no suggested_fix provided",
                details={"issue_id": issue.id},
            )

        handler = self.handlers.get(issue.object_type)
        if handler is None:
            raise InvalidRequestError(
                f"Unknown object_type: {issue.object_type}",
                details={"issue_id": issue.id},
            )

        result = await handler(issue, self.targets)
        logger.info(
            "fix_applied",
            issue_id=issue.id,
            object_type=issue.object_type.value,
            action=result.action,
            target_id=result.target_id,
        )
        return result
