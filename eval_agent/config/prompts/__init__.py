"""Prompt templates for LLM-powered components.

Modules:
    claim_extraction_prompts: System and user prompts for text claim extraction
    verification_prompts: System and user prompts for the verification judge
"""

from eval_agent.config.prompts.claim_extraction_prompts import (
    CLAIM_EXTRACTION_SYSTEM_PROMPT,
    CLAIM_EXTRACTION_USER_PROMPT,
)
from eval_agent.config.prompts.verification_prompts import (
    VERIFICATION_SYSTEM_PROMPT,
    VERIFICATION_USER_PROMPT,
)

__all__ = [
    "CLAIM_EXTRACTION_SYSTEM_PROMPT",
    "CLAIM_EXTRACTION_USER_PROMPT",
    "VERIFICATION_SYSTEM_PROMPT",
    "VERIFICATION_USER_PROMPT",
]
