"""Tests for IssueStore.

Tests cover:
- Create and retrieve, copies isolated from stored state
- Listing newest first with status filter and limit
- Lifecycle-checked set_status
- Conditional transition (compare-and-set) and conflicts
- Stats and JSON persistence
"""

import asyncio

import pytest
from unittest.mock import patch

from eval_agent.data_management.issue_store import IssueStore
from eval_agent.data_management.schemas import (
    EvalIssue,
    IssueStatus,
    ObjectType,
    Severity,
    Verdict,
)
from eval_agent.errors import ConflictError, NotFoundError, UpstreamFailureError


def make_issue(claim: str = "Corporate tax is 5%", run_id: str = "run-1") -> EvalIssue:
    return EvalIssue(
        run_id=run_id,
        object_type=ObjectType.PAGE,
        object_locator="legal.corporateTax",
        claim=claim,
        verdict=Verdict.UNVERIFIABLE,
        severity=Severity.LOW,
        confidence=0.5,
        current_text="5%",
    )


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> IssueStore:
    return IssueStore()


# ── Create and Retrieve ───────────────────────────────────────────────────


class TestCreateAndRetrieve:
    @pytest.mark.asyncio
    async def test_create_and_get(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        fetched = await store.get(issue.id)
        assert fetched is not None
        assert fetched.claim == "Corporate tax is 5%"
        assert fetched.status is IssueStatus.OPEN

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: IssueStore) -> None:
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_create_rejects_non_open(self, store: IssueStore) -> None:
        issue = make_issue()
        issue.status = IssueStatus.FIXED
        with pytest.raises(ConflictError):
            await store.create(issue)

    @pytest.mark.asyncio
    async def test_returned_copies_do_not_mutate_store(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        fetched = await store.get(issue.id)
        fetched.status = IssueStatus.DISMISSED
        again = await store.get(issue.id)
        assert again.status is IssueStatus.OPEN


# ── Listing ───────────────────────────────────────────────────────────────


class TestListing:
    @pytest.mark.asyncio
    async def test_list_newest_first_with_limit(self, store: IssueStore) -> None:
        for i in range(5):
            await store.create(make_issue(claim=f"claim {i}"))
            await asyncio.sleep(0.001)
        listed = await store.list_issues(limit=3)
        assert [i.claim for i in listed] == ["claim 4", "claim 3", "claim 2"]

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, store: IssueStore) -> None:
        first = await store.create(make_issue(claim="a"))
        await store.create(make_issue(claim="b"))
        await store.transition(first.id, {IssueStatus.OPEN}, IssueStatus.DISMISSED)

        dismissed = await store.list_issues(status=IssueStatus.DISMISSED)
        open_issues = await store.list_issues(status=IssueStatus.OPEN)
        assert [i.claim for i in dismissed] == ["a"]
        assert [i.claim for i in open_issues] == ["b"]

    @pytest.mark.asyncio
    async def test_list_by_run(self, store: IssueStore) -> None:
        await store.create(make_issue(run_id="run-1"))
        await store.create(make_issue(run_id="run-2"))
        assert len(await store.list_by_run("run-2")) == 1


# ── Transitions ───────────────────────────────────────────────────────────


class TestTransitions:
    @pytest.mark.asyncio
    async def test_transition_sets_fields(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)
        fixed = await store.transition(
            issue.id, {IssueStatus.TRIAGED}, IssueStatus.FIXED, approved_by="admin"
        )
        assert fixed.status is IssueStatus.FIXED
        assert fixed.approved_by == "admin"
        assert fixed.updated_at >= issue.updated_at

    @pytest.mark.asyncio
    async def test_transition_conflict_on_unexpected_status(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)
        with pytest.raises(ConflictError) as exc_info:
            await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)
        assert exc_info.value.details["status"] == "triaged"
        assert "already triaged" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transition_rejects_lifecycle_violation(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        with pytest.raises(ConflictError):
            await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.FIXED)

    @pytest.mark.asyncio
    async def test_concurrent_claims_only_one_wins(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        outcomes = await asyncio.gather(
            store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED),
            store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED),
            return_exceptions=True,
        )
        conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
        assert len(conflicts) == 1

    @pytest.mark.asyncio
    async def test_set_status_respects_lifecycle(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())
        await store.set_status(issue.id, IssueStatus.DISMISSED)
        with pytest.raises(ConflictError):
            await store.set_status(issue.id, IssueStatus.OPEN)

    @pytest.mark.asyncio
    async def test_missing_issue(self, store: IssueStore) -> None:
        with pytest.raises(NotFoundError):
            await store.transition("missing", {IssueStatus.OPEN}, IssueStatus.TRIAGED)


# ── Stats and Persistence ─────────────────────────────────────────────────


class TestStatsAndPersistence:
    @pytest.mark.asyncio
    async def test_stats(self, store: IssueStore) -> None:
        first = await store.create(make_issue())
        await store.create(make_issue())
        await store.transition(first.id, {IssueStatus.OPEN}, IssueStatus.DISMISSED)
        stats = await store.get_stats()
        assert stats["total"] == 2
        assert stats["status_counts"] == {"dismissed": 1, "open": 1}

    @pytest.mark.asyncio
    async def test_persistence_round_trip(self, tmp_path) -> None:
        path = tmp_path / "issues.json"
        store = IssueStore(str(path))
        issue = await store.create(make_issue())
        await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)

        reloaded = IssueStore(str(path))
        fetched = await reloaded.get(issue.id)
        assert fetched.status is IssueStatus.TRIAGED
        assert fetched.current_text == "5%"

    @pytest.mark.asyncio
    async def test_failed_write_leaves_status(self, store: IssueStore) -> None:
        issue = await store.create(make_issue())

        with patch.object(store, "_persist", side_effect=UpstreamFailureError("disk full")):
            with pytest.raises(UpstreamFailureError):
                await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)

        assert (await store.get(issue.id)).status is IssueStatus.OPEN
        claimed = await store.transition(issue.id, {IssueStatus.OPEN}, IssueStatus.TRIAGED)
        assert claimed.status is IssueStatus.TRIAGED
