"""Exposed operations of the eval agent.

``EvalService`` is the seam an HTTP layer or the CLI calls into. It validates
payloads with pydantic, enforces the shared secret on run operations, and
returns plain dicts/models ready to serialize. Errors are raised as
``EvalAgentError`` subclasses whose ``code`` maps to a response status.

Usage:
    from eval_agent.service import EvalService

    service = EvalService.from_settings()
    result = await service.trigger_run({"run_type": "daily_rules"}, secret)
"""

import hmac
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from eval_agent.data_management import (
    DocumentStore,
    InsightStore,
    IssueStore,
    RunStore,
    SourceStore,
)
from eval_agent.data_management.schemas import (
    EvalIssue,
    EvalRun,
    IssueStatus,
    RunScope,
    RunType,
    Source,
)
from eval_agent.config.settings import settings
from eval_agent.errors import InvalidRequestError, UnauthorizedError
from eval_agent.fixes.fix_applier import FixApplier
from eval_agent.pipeline import (
    EvalPipeline,
    IssueReviewService,
    ReviewAction,
    StoreContentProvider,
)
from eval_agent.utils.logging import get_structured_logger

MAX_RUNS_LIMIT = 50
MAX_ISSUES_LIMIT = 100


class RunRequest(BaseModel):
    """Payload for triggering a run."""

    run_type: RunType
    scope: RunScope = Field(default_factory=RunScope)
    dry_run: bool = False

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "examples": [
                {"run_type": "daily_rules", "scope": {"pages": ["legal"]}, "dry_run": False}
            ]
        },
    }


class ReviewRequest(BaseModel):
    """Payload for approving or dismissing an issue."""

    id: str = Field(..., min_length=1)
    action: ReviewAction

    model_config = {"extra": "forbid"}


def _parse(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        raise InvalidRequestError(
            "Invalid request",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


class EvalService:
    """Run triggering, run/issue listing, issue review and source listing."""

    def __init__(
        self,
        run_store: RunStore,
        issue_store: IssueStore,
        source_store: SourceStore,
        pipeline: EvalPipeline,
        review_service: IssueReviewService,
        cron_secret: Optional[str] = None,
    ) -> None:
        self.run_store = run_store
        self.issue_store = issue_store
        self.source_store = source_store
        self.pipeline = pipeline
        self.review_service = review_service
        self.cron_secret = settings.cron_secret if cron_secret is None else cron_secret
        self._logger = get_structured_logger("EvalService")

    @classmethod
    def from_settings(cls) -> "EvalService":
        """Wire stores, pipeline and review service from settings.

        With ``data_dir`` set, each store persists to ``<data_dir>/<name>.json``.
        """
        data_dir = Path(settings.data_dir) if settings.data_dir else None

        def path(name: str) -> Optional[str]:
            return str(data_dir / f"{name}.json") if data_dir else None

        run_store = RunStore(path("runs"))
        issue_store = IssueStore(path("issues"))
        source_store = SourceStore.with_defaults(path("sources"))
        document_store = DocumentStore(path("documents"))
        insight_store = InsightStore(path("insights"))

        provider = StoreContentProvider(
            document_store,
            insight_store,
            pages_snapshot_path=settings.pages_snapshot_path,
        )
        pipeline = EvalPipeline(run_store, issue_store, source_store, provider)
        review_service = IssueReviewService(
            issue_store, FixApplier(document_store, insight_store)
        )
        return cls(run_store, issue_store, source_store, pipeline, review_service)

    def _authorize(self, secret: Optional[str]) -> None:
        if not self.cron_secret or not secret or not hmac.compare_digest(
            secret.encode(), self.cron_secret.encode()
        ):
            self._logger.warning("unauthorized_request")
            raise UnauthorizedError("Unauthorized")

    async def trigger_run(self, payload: dict[str, Any], secret: Optional[str]) -> dict[str, Any]:
        """
        Validate and execute a run (or describe it when ``dry_run``).

        Returns:
            {success, run_id, run_type, issues_found, status, summary}, or the
            dry-run echo {success, dry_run, run_type, scope, message}.
        """
        self._authorize(secret)
        request = _parse(RunRequest, payload)
        scope = request.scope.model_dump(mode="json", exclude_none=True)

        if request.dry_run:
            return {
                "success": True,
                "dry_run": True,
                "run_type": request.run_type.value,
                "scope": scope,
                "message": f"Would run {request.run_type.value} evaluation",
            }

        result = await self.pipeline.run(request.run_type, request.scope)
        return {
            "success": True,
            "run_id": result.run_id,
            "run_type": result.run_type.value,
            "issues_found": result.issues_found,
            "status": result.status.value,
            "summary": result.summary.model_dump(mode="json"),
        }

    async def list_runs(self, limit: int = 10, secret: Optional[str] = None) -> list[EvalRun]:
        """Most recent runs first; limit capped at 50."""
        self._authorize(secret)
        return await self.run_store.list_recent(min(max(limit, 1), MAX_RUNS_LIMIT))

    async def list_issues(
        self,
        status: Optional[str] = None,
        limit: int = 50,
    ) -> list[EvalIssue]:
        """Newest issues first. ``status`` of None or 'all' disables the filter."""
        status_filter = None
        if status and status != "all":
            try:
                status_filter = IssueStatus(status)
            except ValueError as e:
                raise InvalidRequestError(f"Unknown issue status: {status}") from e
        return await self.issue_store.list_issues(
            status=status_filter, limit=min(max(limit, 1), MAX_ISSUES_LIMIT)
        )

    async def review_issue(self, payload: dict[str, Any], actor: str = "admin") -> dict[str, Any]:
        """Approve or dismiss an issue: {id, action} -> {success, id, status, applied?}."""
        request = _parse(ReviewRequest, payload)
        result = await self.review_service.review(request.id, request.action, actor=actor)
        return {"success": True, **result}

    async def list_sources(self) -> list[Source]:
        return await self.source_store.get_active_sources()
