"""Claim verification against trusted sources.

Components:
    VerificationJudge: Reasoning-backed verdicts with contract validation
    is_high_priority: Priority filter for the weekly fact-check

Usage:
    from eval_agent.agents.sifters.verification import VerificationJudge

    judge = VerificationJudge(reasoning=client)
    result = await judge.verify(context)
"""

from eval_agent.agents.sifters.verification.verification_judge import (
    VerificationJudge,
    is_high_priority,
)

__all__ = [
    "VerificationJudge",
    "is_high_priority",
]
