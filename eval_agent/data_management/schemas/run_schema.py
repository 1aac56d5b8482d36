"""Eval run schema.

A run is created once per evaluation pass in status RUNNING and transitions to
exactly one terminal status (DONE or FAILED). The summary aggregates verdict
and severity counts over every claim the run examined.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RunType(str, Enum):
    """Evaluation strategy."""

    DAILY_RULES = "daily_rules"
    WEEKLY_FACTCHECK = "weekly_factcheck"
    ON_DEMAND = "on_demand"


class RunStatus(str, Enum):
    """Lifecycle status of a run."""

    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


class RunScope(BaseModel):
    """What a run should look at.

    Attributes:
        pages: Page names to audit (None = all pages in the snapshot).
        documents: Document ids to audit (None = most recent documents).
        since: Only documents/insights updated at or after this ISO timestamp.
    """

    pages: Optional[list[str]] = None
    documents: Optional[list[str]] = None
    since: Optional[datetime] = None

    @field_validator("since")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    model_config = {"extra": "forbid"}


class RunSummary(BaseModel):
    """Aggregated counts for a finished run."""

    total_claims: int = 0
    issues_found: int = 0
    by_verdict: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)

    def record(self, verdict: str, severity: str, count_claim: bool = True) -> None:
        """Count a verdict. ``count_claim=False`` when the claim was already counted."""
        if count_claim:
            self.total_claims += 1
        self.by_verdict[verdict] = self.by_verdict.get(verdict, 0) + 1
        self.by_severity[severity] = self.by_severity.get(severity, 0) + 1


class EvalRun(BaseModel):
    """One execution of the pipeline over a scope."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_type: RunType
    scope: RunScope = Field(default_factory=RunScope)
    model: Optional[str] = Field(
        default=None, description="Reasoning model used by the run, if any"
    )
    status: RunStatus = RunStatus.RUNNING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    summary: RunSummary = Field(default_factory=RunSummary)
    logs: Optional[str] = None


class RunResult(BaseModel):
    """Outcome returned to the caller that triggered a run."""

    run_id: str
    run_type: RunType
    status: RunStatus
    issues_found: int
    summary: RunSummary
