"""Verification judge schemas.

VerificationContext is the judge's input; VerificationResult is its validated
output. The result's severity is always derived by the rules checker, never
taken from the reasoning model.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from eval_agent.data_management.schemas.claim_schema import Claim
from eval_agent.data_management.schemas.issue_schema import (
    Reference,
    Severity,
    SuggestedPatch,
    Verdict,
)
from eval_agent.data_management.schemas.source_schema import Source


class VerificationContext(BaseModel):
    """Everything the judge needs to verify one claim."""

    claim: Claim
    source_content: str = ""
    relevant_sources: list[Source] = Field(default_factory=list)
    additional_context: Optional[str] = None


class VerificationResult(BaseModel):
    """Validated verdict for a single claim.

    Invariant: suggested_fix and suggested_patch are both set when the verdict
    is NEEDS_UPDATE or CONTRADICTED, and both None otherwise.
    """

    verdict: Verdict
    severity: Severity
    confidence: float = Field(..., ge=0.0, le=1.0)
    references: list[Reference] = Field(default_factory=list)
    suggested_fix: Optional[str] = None
    suggested_patch: Optional[SuggestedPatch] = None
    reasoning: str = ""

    @model_validator(mode="after")
    def check_fix_contract(self) -> "VerificationResult":
        has_fix = self.suggested_fix is not None and self.suggested_patch is not None
        if self.verdict.requires_fix and not has_fix:
            raise ValueError(f"verdict {self.verdict.value} requires fix and patch")
        if not self.verdict.requires_fix and (
            self.suggested_fix is not None or self.suggested_patch is not None
        ):
            raise ValueError(f"verdict {self.verdict.value} must not carry a fix")
        return self
