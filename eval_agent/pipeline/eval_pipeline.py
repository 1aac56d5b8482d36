"""Run orchestrator: extraction -> triage -> verification -> issues.

A run is created RUNNING and always ends DONE or FAILED before ``run``
returns. Strategies by run type:

- daily_rules: walk page data, apply only the rules checker. Every claim with
  at least one hint becomes an unverifiable, rule-detected issue.
- weekly_factcheck: extract claims via the reasoning path from priority pages,
  recent documents and recent insights, verify the high-priority subset with
  the judge, and file an issue for every non-supported verdict.
- on_demand: both of the above against the same scope, counts summed.

Issues created before a failure are kept; the run records the error in its
logs and the exception propagates to the caller.

Usage:
    from eval_agent.pipeline import EvalPipeline

    pipeline = EvalPipeline(run_store, issue_store, source_store, content_provider)
    result = await pipeline.run(RunType.DAILY_RULES)
"""

import json
from dataclasses import dataclass, field
from typing import Optional

from eval_agent.agents.sifters.claim_extraction_agent import ClaimExtractor
from eval_agent.agents.sifters.rules import RulesChecker, determine_severity
from eval_agent.agents.sifters.verification import VerificationJudge
from eval_agent.config.settings import settings
from eval_agent.config.source_registry import PRIORITY_PAGES
from eval_agent.data_management.issue_store import IssueStore
from eval_agent.data_management.run_store import RunStore
from eval_agent.data_management.schemas import (
    Claim,
    DetectionMethod,
    EvalIssue,
    EvalRun,
    ObjectType,
    Reference,
    RunResult,
    RunScope,
    RunStatus,
    RunSummary,
    RunType,
    Verdict,
)
from eval_agent.data_management.source_store import SourceStore
from eval_agent.pipeline.content_scope import ContentScopeProvider, ContentSnapshot
from eval_agent.utils.logging import bind_run_context, get_structured_logger

# Confidence assigned to rule-path issues
RULES_CONFIDENCE = 0.5


@dataclass
class _RunState:
    """Mutable progress of one run, persisted even when the run fails."""

    run: EvalRun
    summary: RunSummary = field(default_factory=RunSummary)
    logs: list[str] = field(default_factory=list)


@dataclass
class _ClaimOrigin:
    object_type: ObjectType
    object_id: Optional[str]


class EvalPipeline:
    """Orchestrates eval runs over a content scope.

    Attributes:
        max_text_chars: Budget for page JSON sent to extraction.
        max_document_chars: Budget for document/insight text sent to extraction.
        recent_limit: Documents and insights examined per weekly run.
    """

    def __init__(
        self,
        run_store: RunStore,
        issue_store: IssueStore,
        source_store: SourceStore,
        content_provider: ContentScopeProvider,
        extractor: Optional[ClaimExtractor] = None,
        rules_checker: Optional[RulesChecker] = None,
        judge: Optional[VerificationJudge] = None,
    ) -> None:
        self.run_store = run_store
        self.issue_store = issue_store
        self.source_store = source_store
        self.content_provider = content_provider
        self.rules_checker = rules_checker or RulesChecker()
        self._extractor = extractor
        self._judge = judge
        self.max_text_chars = settings.max_text_chars
        self.max_document_chars = settings.max_document_chars
        self.recent_limit = settings.recent_documents_limit
        self._logger = get_structured_logger("EvalPipeline")

    @property
    def extractor(self) -> ClaimExtractor:
        if self._extractor is None:
            self._extractor = ClaimExtractor()
        return self._extractor

    @property
    def judge(self) -> VerificationJudge:
        if self._judge is None:
            self._judge = VerificationJudge(rules_checker=self.rules_checker)
        return self._judge

    async def run(self, run_type: RunType, scope: Optional[RunScope] = None) -> RunResult:
        """
        Execute one run end to end.

        Args:
            run_type: Strategy to run.
            scope: Pages/documents/since restriction (empty = everything).

        Returns:
            RunResult for the DONE run.

        Raises:
            Whatever the strategy raised, after the run is marked FAILED.
        """
        scope = scope or RunScope()
        model = None
        if run_type is not RunType.DAILY_RULES:
            model = self.judge.model_name or settings.gemini_model
        run = await self.run_store.create(EvalRun(run_type=run_type, scope=scope, model=model))
        state = _RunState(run=run)
        log = bind_run_context(self._logger, run.id, run_type.value)
        log.info("run_started", scope=scope.model_dump(mode="json", exclude_none=True))

        try:
            snapshot = await self.content_provider.fetch(scope)
            if run_type in (RunType.DAILY_RULES, RunType.ON_DEMAND):
                await self._run_daily_rules(state, snapshot)
            if run_type in (RunType.WEEKLY_FACTCHECK, RunType.ON_DEMAND):
                await self._run_weekly_factcheck(state, snapshot)
        except Exception as e:
            state.logs.append(f"Run failed: {type(e).__name__}: {e}")
            await self.run_store.finish(
                run.id, RunStatus.FAILED, summary=state.summary, logs="\n".join(state.logs)
            )
            log.error("run_failed", error=str(e), issues_found=state.summary.issues_found)
            raise

        finished = await self.run_store.finish(
            run.id, RunStatus.DONE, summary=state.summary, logs="\n".join(state.logs)
        )
        log.info(
            "run_finished",
            total_claims=state.summary.total_claims,
            issues_found=state.summary.issues_found,
        )
        return RunResult(
            run_id=finished.id,
            run_type=run_type,
            status=finished.status,
            issues_found=finished.summary.issues_found,
            summary=finished.summary,
        )

    # ── Strategies ────────────────────────────────────────────────────

    async def _run_daily_rules(self, state: _RunState, snapshot: ContentSnapshot) -> None:
        """Rules-only pass over structured page data."""
        sources = await self.source_store.get_active_sources()

        claims: list[Claim] = []
        for page_name, page_data in snapshot.pages.items():
            page_claims = self.extractor.extract_from_object(page_data, page_name)
            claims.extend(page_claims)
            state.logs.append(f"Extracted {len(page_claims)} claims from {page_name}")

        flagged = 0
        for claim in claims:
            state.summary.total_claims += 1
            result = self.rules_checker.check(claim, sources)
            if not result.hints:
                continue

            verdict = Verdict.UNVERIFIABLE
            severity = determine_severity(claim, verdict)
            await self.issue_store.create(
                EvalIssue(
                    run_id=state.run.id,
                    object_type=ObjectType.PAGE,
                    object_locator=claim.locator,
                    claim=claim.text,
                    claim_type=claim.claim_type,
                    verdict=verdict,
                    severity=severity,
                    confidence=RULES_CONFIDENCE,
                    current_text=claim.current_text or None,
                    suggested_fix="; ".join(result.hints),
                    references=[Reference(**s.to_reference()) for s in result.relevant_sources],
                    detected_by=DetectionMethod.RULES,
                )
            )
            state.summary.record(verdict.value, severity.value, count_claim=False)
            state.summary.issues_found += 1
            flagged += 1

        state.logs.append(f"Rules flagged {flagged} of {len(claims)} claims")

    async def _run_weekly_factcheck(self, state: _RunState, snapshot: ContentSnapshot) -> None:
        """Reasoning-path extraction plus judge verification."""
        sources = await self.source_store.get_active_sources()
        claims: list[Claim] = []
        origins: dict[str, _ClaimOrigin] = {}

        def collect(found: list[Claim], origin: _ClaimOrigin) -> int:
            added = 0
            for claim in found:
                # Results are keyed by locator, so the first claim per locator wins
                if claim.locator in origins:
                    continue
                origins[claim.locator] = origin
                claims.append(claim)
                added += 1
            return added

        for page_name in PRIORITY_PAGES:
            if page_name not in snapshot.pages:
                continue
            page_text = json.dumps(snapshot.pages[page_name], ensure_ascii=False, default=str)
            found = await self.extractor.extract_from_text(
                page_text[: self.max_text_chars], {"page": page_name}
            )
            added = collect(found, _ClaimOrigin(ObjectType.PAGE, None))
            state.logs.append(f"Extracted {added} LLM claims from {page_name}")

        for doc in snapshot.documents[: self.recent_limit]:
            text = f"{doc.title or ''}\n{doc.content}"[: self.max_document_chars]
            found = await self.extractor.extract_from_text(
                text, {"document": doc.id, "title": doc.title or ""}
            )
            object_type = ObjectType.NEWS if doc.is_news else ObjectType.DOCUMENT
            added = collect(found, _ClaimOrigin(object_type, doc.id))
            state.logs.append(f"Extracted {added} LLM claims from {object_type.value} {doc.id}")

        for insight in snapshot.insights[: self.recent_limit]:
            found = await self.extractor.extract_from_text(
                insight.claim[: self.max_document_chars],
                {"insight": insight.id, "topic": insight.topic},
            )
            added = collect(found, _ClaimOrigin(ObjectType.INSIGHT, insight.id))
            state.logs.append(f"Extracted {added} LLM claims from insight {insight.id}")

        state.logs.append(f"Total claims to verify: {len(claims)}")
        results = await self.judge.verify_high_priority(claims, sources)
        state.logs.append(f"Verified {len(results)} high-priority claims")

        by_locator = {c.locator: c for c in claims}
        for locator, result in results.items():
            claim = by_locator[locator]
            state.summary.record(result.verdict.value, result.severity.value)
            if result.verdict is Verdict.SUPPORTED:
                continue

            origin = origins[locator]
            await self.issue_store.create(
                EvalIssue(
                    run_id=state.run.id,
                    object_type=origin.object_type,
                    object_id=origin.object_id,
                    object_locator=claim.locator,
                    claim=claim.text,
                    claim_type=claim.claim_type,
                    verdict=result.verdict,
                    severity=result.severity,
                    confidence=result.confidence,
                    current_text=claim.current_text or None,
                    suggested_fix=result.suggested_fix,
                    suggested_patch=result.suggested_patch,
                    references=result.references,
                    detected_by=DetectionMethod.JUDGE,
                )
            )
            state.summary.issues_found += 1
