"""Sifter agents for analyzing audited content.

Sifters are the analytical arm of the eval agent:
- ClaimExtractor: Page data / text -> Claim objects
- RulesChecker: Claim -> hints and relevant sources (no LLM)
- VerificationJudge: Claims -> validated verdicts

All LLM-backed sifters inherit from BaseSifter and implement the sift() method.
"""

from eval_agent.agents.sifters.base_sifter import BaseSifter
from eval_agent.agents.sifters.claim_extraction_agent import ClaimExtractor
from eval_agent.agents.sifters.rules import RuleCheckResult, RulesChecker, determine_severity
from eval_agent.agents.sifters.verification import VerificationJudge

__all__ = [
    "BaseSifter",
    "ClaimExtractor",
    "RuleCheckResult",
    "RulesChecker",
    "VerificationJudge",
    "determine_severity",
]
