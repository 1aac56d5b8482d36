"""Rule-based claim triage.

Components:
    RulesChecker: Regulatory, economic and staleness gates plus source ranking
    RuleCheckResult: Container for hints and relevant sources
    determine_severity: Verdict -> severity mapping shared by rule and judge paths

Usage:
    from eval_agent.agents.sifters.rules import RulesChecker

    checker = RulesChecker()
    result = checker.check(claim, sources)
"""

from eval_agent.agents.sifters.rules.rules_checker import (
    RuleCheckResult,
    RulesChecker,
    determine_severity,
)

__all__ = [
    "RuleCheckResult",
    "RulesChecker",
    "determine_severity",
]
