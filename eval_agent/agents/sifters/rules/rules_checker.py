"""Deterministic rule-based triage of claims.

Rules are Boolean gates, not scores. Each gate that fires adds a hint and may
narrow the source categories used to verify the claim.

| Rule        | Trigger                                          | Sources pulled          |
|-------------|--------------------------------------------------|-------------------------|
| REGULATORY  | tax/legal/visa keyword in claim text or locator  | regulator, official     |
| ECONOMIC    | GDP/inflation/population/trade keyword           | official, intl-org      |
| UNDATED     | numeric ECONOMIC claim without any year          | (ECONOMIC sources)      |
| STALE       | latest year cited < reference year - threshold   | (unchanged)             |

The checker is pure: the reference date is fixed at construction, so the
same claim and sources always produce the same result.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional

from loguru import logger

from eval_agent.config.settings import settings
from eval_agent.config.source_registry import (
    ECONOMIC_CATEGORIES,
    ECONOMIC_KEYWORDS,
    REGULATORY_CATEGORIES,
    REGULATORY_KEYWORDS,
)
from eval_agent.data_management.schemas import (
    Claim,
    ClaimType,
    Severity,
    Source,
    SourceCategory,
    Verdict,
)

_CURRENCY_CODES = ("aed", "usd", "eur", "gbp", "dhs", "dh")
_UNITS = (
    "aed", "usd", "eur", "gbp", "dhs?", "dirhams?", "dollars?",
    "k", "m", "mn", "bn", "million", "billion", "thousand",
    "km", "kg", "sqm?", "units", "people", "residents", "employees", "companies", "jobs",
    "hours?", "days?", "months?", "years?",
)
# 19xx/20xx not attached to a currency or unit ("2000 AED" is an amount)
YEAR_PATTERN = re.compile(
    r"(?<![$€£])"
    + "".join(rf"(?<!{code})(?<!{code} )" for code in _CURRENCY_CODES)
    + r"\b(?:19|20)\d{2}\b(?![.,]\d)(?!\s*%)"
    + rf"(?!\s*(?:{'|'.join(_UNITS)})\b)",
    re.IGNORECASE,
)

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[._\-/]+")


def _keyword_pattern(keywords: List[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


REGULATORY_PATTERN = _keyword_pattern(REGULATORY_KEYWORDS)
ECONOMIC_PATTERN = _keyword_pattern(ECONOMIC_KEYWORDS)


def locator_words(locator: str) -> str:
    """Split a locator into words: ``legal.corporateTax`` -> ``legal corporate Tax``."""
    return _SEPARATORS.sub(" ", _CAMEL_BOUNDARY.sub(r"\1 \2", locator))


def determine_severity(claim: Claim, verdict: Verdict) -> Severity:
    """
    Map a verdict to a severity. Used by both the rule and judge paths.

    - supported / unverifiable -> low
    - contradicted numeric or policy -> high
    - contradicted comparison or definition -> low
    - needs_update -> med
    - any other contradicted claim -> med
    """
    if verdict in (Verdict.SUPPORTED, Verdict.UNVERIFIABLE):
        return Severity.LOW
    if verdict is Verdict.NEEDS_UPDATE:
        return Severity.MED
    if claim.claim_type in (ClaimType.NUMERIC, ClaimType.POLICY):
        return Severity.HIGH
    if claim.claim_type in (ClaimType.COMPARISON, ClaimType.DEFINITION):
        return Severity.LOW
    return Severity.MED


@dataclass
class RuleCheckResult:
    """Result of rule-based triage.

    Attributes:
        needs_llm_verification: Whether the claim should go to the judge.
        hints: Human-readable findings, in rule order.
        relevant_sources: Active sources of the matched categories, ranked.
        matched_rules: Names of the gates that fired.
    """

    needs_llm_verification: bool = False
    hints: List[str] = field(default_factory=list)
    relevant_sources: List[Source] = field(default_factory=list)
    matched_rules: List[str] = field(default_factory=list)


class RulesChecker:
    """
    Applies the regulatory, economic and staleness gates to a claim.

    Usage:
        checker = RulesChecker()
        result = checker.check(claim, sources)
        if result.hints:
            print("; ".join(result.hints))
    """

    def __init__(
        self,
        staleness_years: Optional[int] = None,
        reference_date: Optional[date] = None,
    ):
        """
        Args:
            staleness_years: Years before the reference year after which a
                cited year is stale. Defaults to settings.staleness_years.
            reference_date: Date staleness is measured from. Defaults to today
                (UTC) at construction time.
        """
        self.staleness_years = (
            settings.staleness_years if staleness_years is None else staleness_years
        )
        self.reference_date = reference_date or datetime.now(timezone.utc).date()

    @property
    def stale_before_year(self) -> int:
        return self.reference_date.year - self.staleness_years

    def check(self, claim: Claim, sources: List[Source]) -> RuleCheckResult:
        """
        Run every gate against one claim.

        Args:
            claim: Claim to triage.
            sources: Candidate sources (inactive ones are ignored).

        Returns:
            RuleCheckResult with hints and ranked relevant sources.
        """
        result = RuleCheckResult()
        haystack = " ".join(
            [claim.text, locator_words(claim.locator), claim.current_text]
        )
        categories: list[str] = []

        if REGULATORY_PATTERN.search(haystack):
            result.matched_rules.append("regulatory")
            result.hints.append(
                "Regulatory claim (tax/legal/visa): verify against regulator or official sources"
            )
            categories.extend(REGULATORY_CATEGORIES)

        years = [int(y) for y in YEAR_PATTERN.findall(f"{claim.text} {claim.current_text}")]

        if ECONOMIC_PATTERN.search(haystack):
            result.matched_rules.append("economic")
            categories.extend(c for c in ECONOMIC_CATEGORIES if c not in categories)
            if claim.claim_type is ClaimType.NUMERIC and not years:
                result.matched_rules.append("undated")
                result.hints.append(
                    "Economic figure has no as-of year: confirm it reflects the latest official data"
                )

        if years and max(years) < self.stale_before_year:
            result.matched_rules.append("stale")
            result.hints.append(
                f"Stale data: latest year cited is {max(years)}, more than "
                f"{self.staleness_years} years before {self.reference_date.year}"
            )

        result.relevant_sources = self._rank_sources(sources, categories)
        result.needs_llm_verification = (
            claim.claim_type in (ClaimType.NUMERIC, ClaimType.POLICY)
            or bool(result.matched_rules)
        )

        logger.debug(
            f"Rules check for {claim.locator}: rules={result.matched_rules} "
            f"sources={len(result.relevant_sources)}"
        )
        return result

    @staticmethod
    def _rank_sources(sources: List[Source], categories: List[str]) -> List[Source]:
        wanted = {SourceCategory(c) for c in categories}
        seen: set[str] = set()
        ranked: list[Source] = []
        for source in sorted(sources, key=Source.rank_key):
            if not source.active or source.id in seen:
                continue
            if wanted and source.category not in wanted:
                continue
            seen.add(source.id)
            ranked.append(source)
        return ranked

    @staticmethod
    def determine_severity(claim: Claim, verdict: Verdict) -> Severity:
        return determine_severity(claim, verdict)
