"""Schema package for claims, sources, runs, issues, and audited content.

All models are Pydantic v2. Enumerations subclass ``str`` so they serialize
to their wire values.

Primary exports:
- Claim: transient extraction output
- Source: trusted source registry entry
- EvalRun: one evaluation pass
- EvalIssue: persisted finding awaiting approval
- Document / Insight: audited content that fixes are written back to

Usage:
    from eval_agent.data_management.schemas import Claim, ClaimType
    claim = Claim(text="Corporate tax is 5%", claim_type=ClaimType.NUMERIC,
                  locator="legal.corporateTax", current_text="5%")
"""

from eval_agent.data_management.schemas.claim_schema import Claim, ClaimType
from eval_agent.data_management.schemas.content_schema import Document, Insight, sha256
from eval_agent.data_management.schemas.issue_schema import (
    ISSUE_TRANSITIONS,
    ApplyFixResult,
    DetectionMethod,
    EvalIssue,
    IssueStatus,
    ObjectType,
    Reference,
    Severity,
    SuggestedPatch,
    Verdict,
    can_transition,
)
from eval_agent.data_management.schemas.run_schema import (
    EvalRun,
    RunResult,
    RunScope,
    RunStatus,
    RunSummary,
    RunType,
)
from eval_agent.data_management.schemas.source_schema import (
    CATEGORY_PRIORITY,
    Source,
    SourceCategory,
)
from eval_agent.data_management.schemas.verification_schema import (
    VerificationContext,
    VerificationResult,
)

__all__ = [
    # Claims
    "Claim",
    "ClaimType",
    # Sources
    "Source",
    "SourceCategory",
    "CATEGORY_PRIORITY",
    # Runs
    "EvalRun",
    "RunResult",
    "RunScope",
    "RunStatus",
    "RunSummary",
    "RunType",
    # Issues
    "EvalIssue",
    "IssueStatus",
    "ObjectType",
    "Verdict",
    "Severity",
    "DetectionMethod",
    "SuggestedPatch",
    "Reference",
    "ApplyFixResult",
    "ISSUE_TRANSITIONS",
    "can_transition",
    # Verification
    "VerificationContext",
    "VerificationResult",
    # Content
    "Document",
    "Insight",
    "sha256",
]
