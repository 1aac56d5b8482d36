"""Claim schema - transient output of claim extraction.

A Claim is produced per extraction call and consumed immediately by the rules
checker or the judge. It is never persisted on its own: its fields are copied
into an EvalIssue when a problem is found.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ClaimType(str, Enum):
    """Kind of factual assertion."""

    NUMERIC = "numeric"
    DEFINITION = "definition"
    POLICY = "policy"
    TIMELINE = "timeline"
    COMPARISON = "comparison"


class Claim(BaseModel):
    """An atomic factual assertion tied to its position in the content.

    Attributes:
        text: The assertion in plain language.
        claim_type: ClaimType.
        locator: Dotted path to the claim (e.g. "legal.corporateTax").
        current_text: Verbatim snippet as it appears in the content today.
    """

    text: str = Field(..., min_length=1, description="Atomic factual assertion")
    claim_type: ClaimType
    locator: str = Field(..., min_length=1, description="Dotted path to the claim")
    current_text: str = Field(default="", description="Verbatim snippet from content")

    @field_validator("text", "locator")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @property
    def root(self) -> str:
        """First locator segment (page name, document id, insight id)."""
        return self.locator.split(".", 1)[0]

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "text": "UAE corporate tax rate is 5%",
                    "claim_type": "numeric",
                    "locator": "legal.corporateTax",
                    "current_text": "5%",
                }
            ]
        },
    }
