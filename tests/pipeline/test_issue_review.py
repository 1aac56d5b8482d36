"""Tests for IssueReviewService.

Tests cover:
- Approve: fix applied, status fixed, approval recorded once
- Dismiss: only from open, content untouched
- Terminal issues and concurrent approvals raise ConflictError
- Failed fix application rolls the issue back to open
"""

import asyncio

import pytest
from unittest.mock import patch

from eval_agent.data_management import DocumentStore, InsightStore, IssueStore
from eval_agent.data_management.schemas import (
    DetectionMethod,
    Document,
    EvalIssue,
    IssueStatus,
    ObjectType,
    Severity,
    SuggestedPatch,
    Verdict,
)
from eval_agent.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    UpstreamFailureError,
)
from eval_agent.fixes import FixApplier
from eval_agent.pipeline import IssueReviewService, ReviewAction


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def issue_store() -> IssueStore:
    return IssueStore()


@pytest.fixture
def documents() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def service(issue_store, documents) -> IssueReviewService:
    return IssueReviewService(issue_store, FixApplier(documents, InsightStore()))


def tax_issue(document_id: str, **overrides) -> EvalIssue:
    fields = dict(
        run_id="run-1",
        object_type=ObjectType.DOCUMENT,
        object_id=document_id,
        object_locator=f"{document_id}.corporateTax",
        claim="UAE corporate tax rate is 5%",
        verdict=Verdict.NEEDS_UPDATE,
        severity=Severity.MED,
        confidence=0.85,
        current_text="5%",
        suggested_fix="9%",
        suggested_patch=SuggestedPatch(
            field="corporateTaxRate", old_value="5%", new_value="9%", as_of="2023-06"
        ),
        detected_by=DetectionMethod.JUDGE,
    )
    fields.update(overrides)
    return EvalIssue(**fields)


async def seed(issue_store, documents, content: str = "Corporate tax is 5%.") -> EvalIssue:
    doc = Document(title="Tax guide", content=content)
    await documents.save(doc)
    return await issue_store.create(tax_issue(doc.id))


# ── Approve ───────────────────────────────────────────────────────────────


class TestApprove:
    @pytest.mark.asyncio
    async def test_approve_applies_fix(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)

        result = await service.review(issue.id, ReviewAction.APPROVE, actor="ops@example.com")

        assert result["id"] == issue.id
        assert result["status"] == "fixed"
        assert result["applied"]["action"] == "updated_document"
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 9%."

        stored = await issue_store.get(issue.id)
        assert stored.status is IssueStatus.FIXED
        assert stored.approved_by == "ops@example.com"
        assert stored.approved_at is not None

    @pytest.mark.asyncio
    async def test_second_approve_conflicts(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)
        await service.review(issue.id, ReviewAction.APPROVE)
        approved_at = (await issue_store.get(issue.id)).approved_at

        with pytest.raises(ConflictError, match="already fixed"):
            await service.review(issue.id, ReviewAction.APPROVE)

        stored = await issue_store.get(issue.id)
        assert stored.approved_at == approved_at
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 9%."

    @pytest.mark.asyncio
    async def test_concurrent_approvals_fix_once(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)

        results = await asyncio.gather(
            service.review(issue.id, ReviewAction.APPROVE),
            service.review(issue.id, ReviewAction.APPROVE),
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, dict)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 1
        assert (await issue_store.get(issue.id)).status is IssueStatus.FIXED
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 9%."

    @pytest.mark.asyncio
    async def test_approve_without_fix_rejected(self, service, issue_store, documents) -> None:
        issue = await issue_store.create(
            tax_issue(
                "doc-1",
                verdict=Verdict.UNVERIFIABLE,
                severity=Severity.LOW,
                suggested_fix=None,
                suggested_patch=None,
            )
        )

        with pytest.raises(InvalidRequestError):
            await service.review(issue.id, ReviewAction.APPROVE)

        assert (await issue_store.get(issue.id)).status is IssueStatus.OPEN

    @pytest.mark.asyncio
    async def test_failed_fix_rolls_back_to_open(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents, content="Corporate tax is 9%.")

        with pytest.raises(ConflictError, match="current_text not found"):
            await service.review(issue.id, ReviewAction.APPROVE)

        stored = await issue_store.get(issue.id)
        assert stored.status is IssueStatus.OPEN
        assert stored.approved_at is None

    @pytest.mark.asyncio
    async def test_failed_content_write_leaves_issue_and_content(
        self, service, issue_store, documents
    ) -> None:
        issue = await seed(issue_store, documents)

        with patch.object(documents, "_persist", side_effect=UpstreamFailureError("disk full")):
            with pytest.raises(UpstreamFailureError):
                await service.review(issue.id, ReviewAction.APPROVE)

        assert (await issue_store.get(issue.id)).status is IssueStatus.OPEN
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 5%."

        # Once storage recovers the same approval goes through
        result = await service.review(issue.id, ReviewAction.APPROVE)
        assert result["status"] == "fixed"
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 9%."

    @pytest.mark.asyncio
    async def test_missing_target_rolls_back(self, service, issue_store) -> None:
        issue = await issue_store.create(tax_issue("deleted-doc"))

        with pytest.raises(NotFoundError):
            await service.review(issue.id, ReviewAction.APPROVE)

        assert (await issue_store.get(issue.id)).status is IssueStatus.OPEN


# ── Dismiss ───────────────────────────────────────────────────────────────


class TestDismiss:
    @pytest.mark.asyncio
    async def test_dismiss_leaves_content(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)

        result = await service.review(issue.id, ReviewAction.DISMISS, actor="ops")

        assert result == {"id": issue.id, "status": "dismissed"}
        stored = await issue_store.get(issue.id)
        assert stored.status is IssueStatus.DISMISSED
        assert stored.approved_by == "ops"
        assert (await documents.get(issue.object_id)).content == "Corporate tax is 5%."

    @pytest.mark.asyncio
    async def test_dismissed_issue_is_terminal(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)
        await service.review(issue.id, ReviewAction.DISMISS)

        with pytest.raises(ConflictError, match="already dismissed"):
            await service.review(issue.id, ReviewAction.APPROVE)
        with pytest.raises(ConflictError):
            await service.review(issue.id, ReviewAction.DISMISS)

    @pytest.mark.asyncio
    async def test_dismiss_while_triaged_conflicts(self, service, issue_store, documents) -> None:
        issue = await seed(issue_store, documents)
        await issue_store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)

        with pytest.raises(ConflictError):
            await service.review(issue.id, ReviewAction.DISMISS)

    @pytest.mark.asyncio
    async def test_unknown_issue(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.review("missing", ReviewAction.DISMISS)
