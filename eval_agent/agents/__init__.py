"""Agents for the eval pipeline."""

from eval_agent.agents.base_agent import BaseAgent

__all__ = ["BaseAgent"]
