"""Eval issue schema and lifecycle rules.

An issue is created whenever a claim's verdict is not SUPPORTED (judge path)
or a rule hint fires (rules path). Status lifecycle:

    open -> triaged -> fixed
    open -> triaged -> dismissed
    open -> dismissed
    triaged -> open            (rollback after a failed fix application)

FIXED and DISMISSED are terminal. The store enforces transitions with a
conditional write keyed on the current status.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from eval_agent.data_management.schemas.claim_schema import ClaimType


class ObjectType(str, Enum):
    """Store the audited claim lives in."""

    PAGE = "page"
    DOCUMENT = "document"
    INSIGHT = "insight"
    NEWS = "news"


class IssueStatus(str, Enum):
    """Disposition of an issue."""

    OPEN = "open"
    TRIAGED = "triaged"
    FIXED = "fixed"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self in (IssueStatus.FIXED, IssueStatus.DISMISSED)


class Verdict(str, Enum):
    """Verification outcome for a claim."""

    SUPPORTED = "supported"
    NEEDS_UPDATE = "needs_update"
    CONTRADICTED = "contradicted"
    UNVERIFIABLE = "unverifiable"

    @property
    def requires_fix(self) -> bool:
        return self in (Verdict.NEEDS_UPDATE, Verdict.CONTRADICTED)


class Severity(str, Enum):
    HIGH = "high"
    MED = "med"
    LOW = "low"


class DetectionMethod(str, Enum):
    """Which path produced the issue."""

    RULES = "rules"
    JUDGE = "judge"


ISSUE_TRANSITIONS: dict[IssueStatus, frozenset[IssueStatus]] = {
    IssueStatus.OPEN: frozenset({IssueStatus.TRIAGED, IssueStatus.DISMISSED}),
    IssueStatus.TRIAGED: frozenset(
        {IssueStatus.FIXED, IssueStatus.DISMISSED, IssueStatus.OPEN}
    ),
    IssueStatus.FIXED: frozenset(),
    IssueStatus.DISMISSED: frozenset(),
}


def can_transition(current: IssueStatus, new: IssueStatus) -> bool:
    """Check whether the lifecycle allows current -> new."""
    return new in ISSUE_TRANSITIONS[current]


class SuggestedPatch(BaseModel):
    """Structured, machine-applicable correction.

    All four fields are required: a patch missing any of them is discarded
    by the judge.
    """

    field: str = Field(..., min_length=1, description="Data field being corrected")
    old_value: str = Field(..., min_length=1, description="Current incorrect value")
    new_value: str = Field(..., min_length=1, description="Authoritative value")
    as_of: str = Field(..., min_length=1, description="Effective date (YYYY or YYYY-MM)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "field": "corporateTaxRate",
                    "old_value": "5%",
                    "new_value": "9%",
                    "as_of": "2023-06",
                }
            ]
        }
    }


class Reference(BaseModel):
    """Citation backing a verdict."""

    url: str
    snippet: Optional[str] = None
    source: Optional[str] = None


class EvalIssue(BaseModel):
    """Persisted record of a claim awaiting disposition.

    Per the lifecycle above, approved_at/approved_by are set exactly once,
    when the issue reaches FIXED or DISMISSED.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str = Field(..., min_length=1, description="Run that produced the issue")
    object_type: ObjectType
    object_id: Optional[str] = None
    object_locator: str
    claim: str
    claim_type: Optional[ClaimType] = None
    status: IssueStatus = IssueStatus.OPEN
    verdict: Verdict
    severity: Severity
    confidence: float = Field(..., ge=0.0, le=1.0)
    current_text: Optional[str] = None
    suggested_fix: Optional[str] = None
    suggested_patch: Optional[SuggestedPatch] = None
    references: list[Reference] = Field(default_factory=list)
    detected_by: DetectionMethod = DetectionMethod.JUDGE
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_fix_matches_verdict(self) -> "EvalIssue":
        # Rule-path issues carry the joined hint text as their suggestion.
        if self.detected_by is DetectionMethod.RULES:
            return self
        if not self.verdict.requires_fix and (
            self.suggested_fix is not None or self.suggested_patch is not None
        ):
            raise ValueError(
                f"suggested_fix/suggested_patch not allowed for verdict {self.verdict.value}"
            )
        return self


class ApplyFixResult(BaseModel):
    """Outcome of writing an approved fix back to its store."""

    success: bool = True
    applied_to: ObjectType
    target_id: Optional[str]
    action: Literal["updated_document", "updated_insight", "created_insight"]
    details: str
