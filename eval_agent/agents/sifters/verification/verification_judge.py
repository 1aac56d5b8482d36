"""Verification judge: reasoning-backed verdicts for individual claims.

The judge asks the reasoning capability for a verdict under a fixed JSON
contract and validates the answer before anything downstream sees it:

- unparseable output, a missing or unknown verdict -> unverifiable (conf <= 0.3)
- needs_update/contradicted without a full fix AND four-field patch
  -> unverifiable (conf <= 0.3), fix and patch discarded
- supported/unverifiable -> any fix or patch is dropped
- capability error -> unverifiable (conf 0.1)

Severity never comes from the model; it is derived with determine_severity.

Batch verification runs fixed-size concurrent groups with a pacing delay
between groups. A failure for one claim never aborts its siblings.

Usage:
    from eval_agent.agents.sifters.verification import VerificationJudge

    judge = VerificationJudge(reasoning=client)
    results = await judge.verify_high_priority(claims, sources)
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from eval_agent.agents.sifters.base_sifter import BaseSifter
from eval_agent.agents.sifters.rules import RulesChecker, determine_severity
from eval_agent.config.prompts import VERIFICATION_SYSTEM_PROMPT, VERIFICATION_USER_PROMPT
from eval_agent.config.settings import settings
from eval_agent.config.source_registry import PRIORITY_LOCATOR_KEYWORDS
from eval_agent.data_management.schemas import (
    Claim,
    ClaimType,
    Reference,
    Source,
    SuggestedPatch,
    Verdict,
    VerificationContext,
    VerificationResult,
)
from eval_agent.utils.json_extraction import extract_json_object

# Confidence ceilings for results the judge had to coerce
MALFORMED_CONFIDENCE_CAP = 0.3
CAPABILITY_ERROR_CONFIDENCE = 0.1
DEFAULT_CONFIDENCE = 0.5

SourceContentFetcher = Callable[[Claim], Awaitable[str]]


def _clamp_confidence(raw: Any) -> float:
    if isinstance(raw, bool):
        return DEFAULT_CONFIDENCE
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if value != value:  # NaN
        return DEFAULT_CONFIDENCE
    return min(max(value, 0.0), 1.0)


def _parse_patch(raw: Any) -> Optional[SuggestedPatch]:
    """Build a patch only when all four fields are present and non-empty."""
    if not isinstance(raw, dict):
        return None
    values = {}
    for name in ("field", "old_value", "new_value", "as_of"):
        value = raw.get(name)
        if value is None or isinstance(value, (dict, list)):
            return None
        value = str(value).strip()
        if not value:
            return None
        values[name] = value
    return SuggestedPatch(**values)


def _parse_references(raw: Any) -> list[Reference]:
    if not isinstance(raw, list):
        return []
    references: list[Reference] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("url"):
            continue
        try:
            references.append(
                Reference(
                    url=str(item["url"]),
                    snippet=item.get("snippet") if isinstance(item.get("snippet"), str) else None,
                    source=item.get("source") if isinstance(item.get("source"), str) else None,
                )
            )
        except ValidationError:
            continue
    return references


def is_high_priority(claim: Claim) -> bool:
    """Numeric/policy claims, or claims located under tax/legal/visa content."""
    if claim.claim_type in (ClaimType.NUMERIC, ClaimType.POLICY):
        return True
    locator = claim.locator.lower()
    return any(keyword in locator for keyword in PRIORITY_LOCATOR_KEYWORDS)


class VerificationJudge(BaseSifter):
    """
    Verifies claims against trusted sources with the reasoning capability.

    Attributes:
        rules_checker: Narrows sources per claim in batch verification.
        concurrency: Claims verified together per group.
        batch_delay: Seconds to pause between groups.
        max_priority_claims: Cap applied by verify_high_priority.
    """

    def __init__(
        self,
        reasoning: Optional[Any] = None,
        rules_checker: Optional[RulesChecker] = None,
        concurrency: Optional[int] = None,
        batch_delay: Optional[float] = None,
        max_priority_claims: Optional[int] = None,
    ):
        super().__init__(
            name="VerificationJudge",
            description="Judges claims against authoritative sources",
        )
        self._reasoning = reasoning
        self.rules_checker = rules_checker or RulesChecker()
        self.concurrency = concurrency or settings.verify_concurrency
        self.batch_delay = settings.batch_delay_seconds if batch_delay is None else batch_delay
        self.max_priority_claims = max_priority_claims or settings.max_verify_claims

    @property
    def reasoning(self):
        """Lazy-load the reasoning capability on first access."""
        if self._reasoning is None:
            from eval_agent.llm.gemini_client import GeminiClient

            try:
                self._reasoning = GeminiClient()
            except ValueError as e:
                self.logger.warning(f"Reasoning capability unavailable: {e}")
        return self._reasoning

    @property
    def model_name(self) -> Optional[str]:
        name = getattr(self._reasoning, "model_name", None)
        return name if isinstance(name, str) else None

    # ── Single claim ──────────────────────────────────────────────────

    async def verify(self, context: VerificationContext) -> VerificationResult:
        """
        Verify one claim.

        Args:
            context: Claim plus the source material to judge it against.

        Returns:
            Validated VerificationResult. Never raises for capability errors.
        """
        claim = context.claim
        client = self.reasoning
        if client is None:
            return self._degraded(
                claim, CAPABILITY_ERROR_CONFIDENCE, "Reasoning capability not configured"
            )

        try:
            response_text = await client.complete(
                VERIFICATION_SYSTEM_PROMPT, self._build_prompt(context)
            )
        except Exception as e:
            self.logger.warning(f"Verification call failed for {claim.locator}: {e}")
            return self._degraded(claim, CAPABILITY_ERROR_CONFIDENCE, f"Verification error: {e}")

        return self._parse_response(response_text, claim)

    def _build_prompt(self, context: VerificationContext) -> str:
        claim = context.claim
        sources = "\n".join(
            f"- {s.name} ({s.category.value}, trust {s.trust_level}/5): {s.base_url}"
            for s in context.relevant_sources
        ) or "- none"
        source_content = (
            f"Source content:\n{context.source_content}\n" if context.source_content else ""
        )
        additional = (
            f"Additional context:\n{context.additional_context}\n"
            if context.additional_context
            else ""
        )
        return VERIFICATION_USER_PROMPT.format(
            claim=claim.text,
            claim_type=claim.claim_type.value,
            locator=claim.locator,
            current_text=claim.current_text or "N/A",
            sources=sources,
            source_content=source_content,
            additional_context=additional,
        )

    def _parse_response(self, response_text: str, claim: Claim) -> VerificationResult:
        """Validate model output against the verdict contract."""
        data = extract_json_object(response_text)
        if data is None:
            return self._degraded(claim, MALFORMED_CONFIDENCE_CAP, "Unparseable verification output")

        confidence = _clamp_confidence(data.get("confidence", DEFAULT_CONFIDENCE))
        reasoning = data.get("reasoning") if isinstance(data.get("reasoning"), str) else ""
        references = _parse_references(data.get("references"))

        try:
            verdict = Verdict(str(data.get("verdict", "")).strip().lower())
        except ValueError:
            return self._degraded(
                claim,
                min(confidence, MALFORMED_CONFIDENCE_CAP),
                f"Missing or unknown verdict: {data.get('verdict')!r}",
                references,
            )

        suggested_fix = None
        suggested_patch = None
        if verdict.requires_fix:
            raw_fix = data.get("suggested_fix")
            suggested_fix = raw_fix.strip() if isinstance(raw_fix, str) and raw_fix.strip() else None
            suggested_patch = _parse_patch(data.get("suggested_patch"))
            if suggested_fix is None or suggested_patch is None:
                self.logger.info(
                    f"Incomplete fix for {verdict.value} verdict on {claim.locator}, "
                    "coercing to unverifiable"
                )
                return self._degraded(
                    claim,
                    min(confidence, MALFORMED_CONFIDENCE_CAP),
                    reasoning or f"Verdict {verdict.value} returned without a complete fix",
                    references,
                )

        return VerificationResult(
            verdict=verdict,
            severity=determine_severity(claim, verdict),
            confidence=confidence,
            references=references,
            suggested_fix=suggested_fix,
            suggested_patch=suggested_patch,
            reasoning=reasoning,
        )

    @staticmethod
    def _degraded(
        claim: Claim,
        confidence: float,
        reasoning: str,
        references: Optional[list[Reference]] = None,
    ) -> VerificationResult:
        return VerificationResult(
            verdict=Verdict.UNVERIFIABLE,
            severity=determine_severity(claim, Verdict.UNVERIFIABLE),
            confidence=confidence,
            references=references or [],
            reasoning=reasoning,
        )

    # ── Batches ───────────────────────────────────────────────────────

    async def verify_batch(
        self,
        claims: list[Claim],
        sources: list[Source],
        concurrency: Optional[int] = None,
        source_content_fetcher: Optional[SourceContentFetcher] = None,
    ) -> dict[str, VerificationResult]:
        """
        Verify claims in concurrent groups with a pacing delay between groups.

        Args:
            claims: Claims to verify.
            sources: Registry sources; narrowed per claim by the rules checker.
            concurrency: Group size (defaults to the judge's concurrency).
            source_content_fetcher: Optional async callable returning source
                text for a claim.

        Returns:
            Results keyed by claim locator.
        """
        group_size = max(concurrency or self.concurrency, 1)
        results: dict[str, VerificationResult] = {}

        for start in range(0, len(claims), group_size):
            if start > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

            group = claims[start : start + group_size]
            outcomes = await asyncio.gather(
                *[self._verify_one(c, sources, source_content_fetcher) for c in group]
            )
            for claim, outcome in zip(group, outcomes):
                results[claim.locator] = outcome

            self.logger.debug(
                f"Verified group {start // group_size + 1}: {len(group)} claims"
            )

        return results

    async def _verify_one(
        self,
        claim: Claim,
        sources: list[Source],
        source_content_fetcher: Optional[SourceContentFetcher],
    ) -> VerificationResult:
        try:
            rule_result = self.rules_checker.check(claim, sources)
            source_content = ""
            if source_content_fetcher is not None:
                source_content = await source_content_fetcher(claim)
            return await self.verify(
                VerificationContext(
                    claim=claim,
                    source_content=source_content,
                    relevant_sources=rule_result.relevant_sources,
                    additional_context="; ".join(rule_result.hints) or None,
                )
            )
        except Exception as e:
            self.logger.error(f"Claim verification failed for {claim.locator}: {e}")
            return self._degraded(claim, CAPABILITY_ERROR_CONFIDENCE, f"Verification error: {e}")

    def filter_high_priority(
        self,
        claims: list[Claim],
        max_claims: Optional[int] = None,
    ) -> list[Claim]:
        """Priority claims in input order, capped at ``max_claims``."""
        cap = max_claims or self.max_priority_claims
        return [c for c in claims if is_high_priority(c)][:cap]

    async def verify_high_priority(
        self,
        claims: list[Claim],
        sources: list[Source],
        max_claims: Optional[int] = None,
        source_content_fetcher: Optional[SourceContentFetcher] = None,
    ) -> dict[str, VerificationResult]:
        """Filter to high-priority claims, then verify them in batches."""
        selected = self.filter_high_priority(claims, max_claims)
        self.logger.info(
            f"Verifying {len(selected)} of {len(claims)} claims (high priority)"
        )
        return await self.verify_batch(
            selected, sources, source_content_fetcher=source_content_fetcher
        )

    # ── Sifter interface ──────────────────────────────────────────────

    async def sift(self, content: dict) -> list[dict]:
        """
        Verify claim dicts against source dicts.

        Args:
            content: {'claims': [claim dicts], 'sources': [source dicts]}

        Returns:
            List of result dicts, each carrying its claim 'locator'.
        """
        claims = [Claim(**c) for c in content.get("claims", [])]
        sources = [Source(**s) for s in content.get("sources", [])]
        results = await self.verify_batch(claims, sources)
        return [
            {"locator": locator, **result.model_dump(mode="json")}
            for locator, result in results.items()
        ]

    def get_capabilities(self) -> list[str]:
        return ["verification", "claim_judging", "batch_verification"]
