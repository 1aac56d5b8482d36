"""Tests for RulesChecker and determine_severity.

Tests cover:
- Regulatory, economic/undated and staleness gates
- Source narrowing and deterministic ranking
- Keyword boundaries on camelCase locators
- Purity (identical input -> identical output)
- Severity mapping table
"""

from datetime import date

import pytest

from eval_agent.agents.sifters.rules import RuleCheckResult, RulesChecker, determine_severity
from eval_agent.data_management.schemas import (
    Claim,
    ClaimType,
    Severity,
    Source,
    SourceCategory,
    Verdict,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def checker() -> RulesChecker:
    return RulesChecker(staleness_years=2, reference_date=date(2026, 1, 15))


@pytest.fixture
def sources() -> list[Source]:
    return [
        Source(name="Reuters", category=SourceCategory.REPUTABLE_MEDIA,
               base_url="https://www.reuters.com", trust_level=3),
        Source(name="Federal Tax Authority", category=SourceCategory.REGULATOR,
               base_url="https://tax.gov.ae", trust_level=5),
        Source(name="International Monetary Fund", category=SourceCategory.INTERNATIONAL_ORG,
               base_url="https://www.imf.org", trust_level=5),
        Source(name="UAE Government Portal", category=SourceCategory.OFFICIAL,
               base_url="https://u.ae", trust_level=5),
        Source(name="Retired Regulator", category=SourceCategory.REGULATOR,
               base_url="https://old.example", trust_level=5, active=False),
    ]


def claim(text: str, locator: str, claim_type: ClaimType = ClaimType.NUMERIC,
          current_text: str = "") -> Claim:
    return Claim(text=text, claim_type=claim_type, locator=locator, current_text=current_text)


# ── Gates ─────────────────────────────────────────────────────────────────


class TestRegulatoryRule:
    def test_tax_locator_flags_and_pulls_regulators(self, checker, sources) -> None:
        result = checker.check(
            claim("legal corporateTax: 5%", "legal.corporateTax", current_text="5%"), sources
        )
        assert isinstance(result, RuleCheckResult)
        assert result.matched_rules == ["regulatory"]
        assert len(result.hints) == 1
        assert "Regulatory" in result.hints[0]
        assert [s.name for s in result.relevant_sources] == [
            "UAE Government Portal",
            "Federal Tax Authority",
        ]
        assert result.needs_llm_verification is True

    def test_keyword_boundaries(self, checker, sources) -> None:
        result = checker.check(
            claim("Taxi fares start at AED 12", "transport.taxiFare"), sources
        )
        assert "regulatory" not in result.matched_rules
        assert result.hints == []


class TestEconomicRule:
    def test_undated_figure(self, checker, sources) -> None:
        result = checker.check(
            claim("economy gdpGrowth: 3.4%", "economy.gdpGrowth", current_text="3.4%"), sources
        )
        assert result.matched_rules == ["economic", "undated"]
        assert "no as-of year" in result.hints[0]
        assert [s.category for s in result.relevant_sources] == [
            SourceCategory.OFFICIAL,
            SourceCategory.INTERNATIONAL_ORG,
        ]

    def test_dated_recent_figure_has_no_hints(self, checker, sources) -> None:
        result = checker.check(
            claim("GDP grew 3.4% in 2025", "economy.gdpGrowth", current_text="3.4%"), sources
        )
        assert result.hints == []
        assert result.matched_rules == ["economic"]
        assert result.needs_llm_verification is True

    def test_non_numeric_economic_claim_is_not_undated(self, checker, sources) -> None:
        result = checker.check(
            claim("Trade policy favors free zones", "economy.trade", ClaimType.POLICY), sources
        )
        assert "undated" not in result.matched_rules


class TestStaleRule:
    def test_old_year_is_stale(self, checker, sources) -> None:
        result = checker.check(
            claim("Population was 9.2 million in 2020", "economy.population"), sources
        )
        assert "stale" in result.matched_rules
        assert any("2020" in h for h in result.hints)
        assert "undated" not in result.matched_rules

    def test_threshold_year_is_not_stale(self, checker, sources) -> None:
        result = checker.check(
            claim("Population was 10 million in 2024", "economy.population"), sources
        )
        assert "stale" not in result.matched_rules

    def test_latest_year_decides(self, checker, sources) -> None:
        result = checker.check(
            claim("Rate unchanged from 2019 through 2025", "home.rate"), sources
        )
        assert "stale" not in result.matched_rules

    @pytest.mark.parametrize(
        "text",
        [
            "Visa fee is 2000 AED",
            "Rent starts at AED 1999 per month",
            "Tourist tax costs $2000",
            "Metro network spans 2010 km",
            "The free zone hosts 1998 companies and 2015 employees",
        ],
    )
    def test_amounts_are_not_years(self, checker, sources, text) -> None:
        result = checker.check(claim(text, "home.fees"), sources)
        assert "stale" not in result.matched_rules

    def test_amount_beside_old_year(self, checker, sources) -> None:
        result = checker.check(
            claim("Fees rose to 2000 AED in 2019", "home.fees"), sources
        )
        assert "stale" in result.matched_rules
        assert any("latest year cited is 2019" in h for h in result.hints)


class TestNoRule:
    def test_all_active_sources_when_no_domain(self, checker, sources) -> None:
        result = checker.check(
            claim("The capital is Abu Dhabi, a city on an island", "home.capital",
                  ClaimType.DEFINITION),
            sources,
        )
        assert result.hints == []
        assert result.needs_llm_verification is False
        assert [s.name for s in result.relevant_sources] == [
            "UAE Government Portal",
            "International Monetary Fund",
            "Federal Tax Authority",
            "Reuters",
        ]


# ── Purity ────────────────────────────────────────────────────────────────


class TestPurity:
    def test_identical_inputs_identical_outputs(self, checker, sources) -> None:
        c = claim("Population was 9.2 million in 2020 after visa reforms", "economy.population")
        first = checker.check(c, sources)
        second = checker.check(c, sources)
        assert first.hints == second.hints
        assert first.matched_rules == second.matched_rules
        assert [s.id for s in first.relevant_sources] == [s.id for s in second.relevant_sources]

    def test_input_order_does_not_change_ranking(self, checker, sources) -> None:
        c = claim("legal corporateTax: 5%", "legal.corporateTax")
        forward = checker.check(c, sources)
        backward = checker.check(c, list(reversed(sources)))
        assert [s.id for s in forward.relevant_sources] == [s.id for s in backward.relevant_sources]


# ── Severity ──────────────────────────────────────────────────────────────


class TestDetermineSeverity:
    @pytest.mark.parametrize(
        "claim_type,verdict,expected",
        [
            (ClaimType.NUMERIC, Verdict.SUPPORTED, Severity.LOW),
            (ClaimType.NUMERIC, Verdict.UNVERIFIABLE, Severity.LOW),
            (ClaimType.NUMERIC, Verdict.CONTRADICTED, Severity.HIGH),
            (ClaimType.POLICY, Verdict.CONTRADICTED, Severity.HIGH),
            (ClaimType.COMPARISON, Verdict.CONTRADICTED, Severity.LOW),
            (ClaimType.DEFINITION, Verdict.CONTRADICTED, Severity.LOW),
            (ClaimType.TIMELINE, Verdict.CONTRADICTED, Severity.MED),
            (ClaimType.NUMERIC, Verdict.NEEDS_UPDATE, Severity.MED),
            (ClaimType.DEFINITION, Verdict.NEEDS_UPDATE, Severity.MED),
        ],
    )
    def test_mapping(self, claim_type, verdict, expected) -> None:
        c = claim("x", "legal.x", claim_type)
        assert determine_severity(c, verdict) is expected
        assert RulesChecker.determine_severity(c, verdict) is expected
