"""Tests for eval schemas.

Tests cover:
- Claim validation and locator root
- Issue lifecycle table and fix/verdict invariant
- VerificationResult fix contract
- Source ranking and reference rendering
- Insight hashing and document projection
- RunScope timestamp normalization
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from eval_agent.data_management.schemas import (
    Claim,
    ClaimType,
    DetectionMethod,
    EvalIssue,
    Insight,
    IssueStatus,
    ObjectType,
    RunScope,
    RunSummary,
    Severity,
    Source,
    SourceCategory,
    SuggestedPatch,
    Verdict,
    VerificationResult,
    can_transition,
    sha256,
)


def _patch() -> SuggestedPatch:
    return SuggestedPatch(field="corporateTaxRate", old_value="5%", new_value="9%", as_of="2023-06")


# ── Claim ─────────────────────────────────────────────────────────────────


class TestClaim:
    def test_strips_and_exposes_root(self) -> None:
        claim = Claim(
            text="  Corporate tax is 9%  ",
            claim_type=ClaimType.NUMERIC,
            locator="legal.corporateTax",
            current_text="9%",
        )
        assert claim.text == "Corporate tax is 9%"
        assert claim.root == "legal"

    def test_blank_text_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Claim(text="   ", claim_type=ClaimType.NUMERIC, locator="legal.x")

    def test_unknown_claim_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Claim(text="x", claim_type="opinion", locator="legal.x")

    def test_claims_are_immutable(self) -> None:
        claim = Claim(text="x", claim_type=ClaimType.POLICY, locator="legal.x")
        with pytest.raises(ValidationError):
            claim.text = "y"


# ── Issue lifecycle ───────────────────────────────────────────────────────


class TestIssueLifecycle:
    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            (IssueStatus.OPEN, IssueStatus.TRIAGED, True),
            (IssueStatus.OPEN, IssueStatus.DISMISSED, True),
            (IssueStatus.OPEN, IssueStatus.FIXED, False),
            (IssueStatus.TRIAGED, IssueStatus.FIXED, True),
            (IssueStatus.TRIAGED, IssueStatus.OPEN, True),
            (IssueStatus.FIXED, IssueStatus.OPEN, False),
            (IssueStatus.DISMISSED, IssueStatus.TRIAGED, False),
        ],
    )
    def test_transition_table(self, current, new, allowed) -> None:
        assert can_transition(current, new) is allowed

    def test_terminal_statuses(self) -> None:
        assert IssueStatus.FIXED.is_terminal
        assert IssueStatus.DISMISSED.is_terminal
        assert not IssueStatus.TRIAGED.is_terminal

    def test_judge_issue_without_fix_verdict_cannot_carry_fix(self) -> None:
        with pytest.raises(ValidationError):
            EvalIssue(
                run_id="run-1",
                object_type=ObjectType.DOCUMENT,
                object_locator="doc.x",
                claim="x",
                verdict=Verdict.SUPPORTED,
                severity=Severity.LOW,
                confidence=0.9,
                suggested_fix="something",
            )

    def test_rules_issue_may_carry_hint_text(self) -> None:
        issue = EvalIssue(
            run_id="run-1",
            object_type=ObjectType.PAGE,
            object_locator="legal.corporateTax",
            claim="legal corporateTax: 5%",
            verdict=Verdict.UNVERIFIABLE,
            severity=Severity.LOW,
            confidence=0.5,
            suggested_fix="Regulatory claim",
            detected_by=DetectionMethod.RULES,
        )
        assert issue.status is IssueStatus.OPEN

    def test_run_id_required(self) -> None:
        with pytest.raises(ValidationError):
            EvalIssue(
                run_id="",
                object_type=ObjectType.PAGE,
                object_locator="legal.x",
                claim="x",
                verdict=Verdict.UNVERIFIABLE,
                severity=Severity.LOW,
                confidence=0.5,
            )

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            EvalIssue(
                run_id="run-1",
                object_type=ObjectType.PAGE,
                object_locator="legal.x",
                claim="x",
                verdict=Verdict.UNVERIFIABLE,
                severity=Severity.LOW,
                confidence=1.5,
            )


# ── VerificationResult ────────────────────────────────────────────────────


class TestVerificationResult:
    def test_fix_verdict_requires_fix_and_patch(self) -> None:
        with pytest.raises(ValidationError):
            VerificationResult(
                verdict=Verdict.NEEDS_UPDATE,
                severity=Severity.MED,
                confidence=0.8,
                suggested_fix="Corporate tax is 9%",
            )

    def test_supported_rejects_fix(self) -> None:
        with pytest.raises(ValidationError):
            VerificationResult(
                verdict=Verdict.SUPPORTED,
                severity=Severity.LOW,
                confidence=0.8,
                suggested_fix="x",
                suggested_patch=_patch(),
            )

    def test_complete_fix_accepted(self) -> None:
        result = VerificationResult(
            verdict=Verdict.CONTRADICTED,
            severity=Severity.HIGH,
            confidence=0.9,
            suggested_fix="Corporate tax is 9%",
            suggested_patch=_patch(),
        )
        assert result.suggested_patch.new_value == "9%"

    def test_patch_fields_must_be_non_empty(self) -> None:
        with pytest.raises(ValidationError):
            SuggestedPatch(field="rate", old_value="", new_value="9%", as_of="2023")


# ── Sources ───────────────────────────────────────────────────────────────


class TestSource:
    def test_rank_key_orders_trust_then_category_then_name(self) -> None:
        sources = [
            Source(name="Reuters", category=SourceCategory.REPUTABLE_MEDIA,
                   base_url="https://reuters.com", trust_level=3),
            Source(name="FTA", category=SourceCategory.REGULATOR,
                   base_url="https://tax.gov.ae", trust_level=5),
            Source(name="IMF", category=SourceCategory.INTERNATIONAL_ORG,
                   base_url="https://imf.org", trust_level=5),
            Source(name="B Portal", category=SourceCategory.OFFICIAL,
                   base_url="https://b.ae", trust_level=5),
            Source(name="A Portal", category=SourceCategory.OFFICIAL,
                   base_url="https://a.ae", trust_level=5),
        ]
        ranked = [s.name for s in sorted(sources, key=Source.rank_key)]
        assert ranked == ["A Portal", "B Portal", "IMF", "FTA", "Reuters"]

    def test_trust_level_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Source(name="x", category=SourceCategory.OFFICIAL, base_url="https://x", trust_level=6)

    def test_to_reference(self) -> None:
        source = Source(name="FTA", category=SourceCategory.REGULATOR,
                        base_url="https://tax.gov.ae", trust_level=5)
        assert source.to_reference() == {"url": "https://tax.gov.ae", "source": "FTA"}


# ── Content ───────────────────────────────────────────────────────────────


class TestInsight:
    def test_content_hash_tracks_identity_fields(self) -> None:
        insight = Insight(topic="legal.corporateTax", claim="Corporate tax is 9%", rationale="r")
        same = Insight(topic="legal.corporateTax", claim="Corporate tax is 9%", rationale="r")
        changed = Insight(topic="legal.corporateTax", claim="Corporate tax is 5%", rationale="r")
        assert insight.compute_content_hash() == same.compute_content_hash()
        assert insight.compute_content_hash() != changed.compute_content_hash()

    def test_document_projection(self) -> None:
        insight = Insight(topic="legal", claim="Corporate tax is 9%", rationale="FTA notice",
                          as_of="2023-06")
        doc = insight.to_document()
        assert doc.source == "insight"
        assert doc.content == "Claim: Corporate tax is 9%\n\nRationale: FTA notice"
        assert doc.content_hash == sha256("insight|" + insight.id)
        assert doc.as_of == "2023-06"


# ── Runs ──────────────────────────────────────────────────────────────────


class TestRunSchemas:
    def test_naive_since_is_utc(self) -> None:
        scope = RunScope(since=datetime(2025, 1, 1))
        assert scope.since.tzinfo == timezone.utc

    def test_scope_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            RunScope(pagez=["legal"])

    def test_summary_record(self) -> None:
        summary = RunSummary()
        summary.record("needs_update", "med")
        summary.record("unverifiable", "low", count_claim=False)
        assert summary.total_claims == 1
        assert summary.by_verdict == {"needs_update": 1, "unverifiable": 1}
        assert summary.by_severity == {"med": 1, "low": 1}
