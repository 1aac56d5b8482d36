"""Reasoning capability backed by Gemini, with rate limiting and backoff.

Anything with an async ``complete(system_instructions, user_message) -> str``
satisfies ``ReasoningCapability``; tests pass mocks, production uses
``GeminiClient``.
"""

import asyncio
import functools
import random
import time
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger

from eval_agent.config.settings import settings
from eval_agent.errors import UpstreamFailureError
from eval_agent.llm.rate_limiter import RateLimiter, estimate_tokens


@runtime_checkable
class ReasoningCapability(Protocol):
    """Text in, structured (JSON-shaped) text out."""

    model_name: str

    async def complete(self, system_instructions: str, user_message: str) -> str:
        ...


def _exponential_backoff(func: Callable) -> Callable:
    """
    Decorator implementing exponential backoff with jitter for API calls.

    Retries failed requests up to 5 times with exponentially increasing delays.
    Base delay: 1.0s, exponential factor: 2, jitter: 0-10% of delay.
    Blocked prompts are not retried.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        max_retries = 5
        base_delay = 1.0

        for retry in range(max_retries):
            try:
                return func(*args, **kwargs)
            except BlockedPromptException:
                raise
            except Exception as e:
                if retry == max_retries - 1:
                    logger.error(f"Max retries exceeded for {func.__name__}: {e}")
                    raise

                delay = base_delay * (2 ** retry)
                jitter = random.uniform(0, delay * 0.1)
                total_delay = delay + jitter

                logger.warning(
                    f"Retry {retry + 1}/{max_retries} for {func.__name__} "
                    f"after {total_delay:.2f}s: {e}"
                )
                time.sleep(total_delay)

        raise RuntimeError(f"Unexpected retry loop exit in {func.__name__}")

    return wrapper


class GeminiClient:
    """
    Google Gemini client implementing ReasoningCapability.

    Attributes:
        model_name: Gemini model identifier
        temperature: Sampling temperature (low for deterministic verdicts)
        rate_limiter: Shared RPM/TPM limiter
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: float = 0.2,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize Gemini client.

        Raises:
            ValueError: If API key is not configured
        """
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("EVAL_GEMINI_API_KEY not configured in environment")

        genai.configure(api_key=api_key)
        self.model_name = model_name or settings.gemini_model
        self.temperature = temperature
        self.rate_limiter = rate_limiter or RateLimiter()

        logger.info(f"Gemini client initialized with model {self.model_name}")

    @_exponential_backoff
    def _generate(self, system_instructions: str, user_message: str) -> str:
        model = genai.GenerativeModel(
            self.model_name,
            system_instruction=system_instructions,
        )
        response = model.generate_content(
            user_message,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
            ),
        )
        return response.text

    async def complete(self, system_instructions: str, user_message: str) -> str:
        """
        Generate a completion for one system/user prompt pair.

        Returns:
            Raw model text

        Raises:
            UpstreamFailureError: Prompt blocked or retries exhausted
        """
        await self.rate_limiter.acquire(
            estimate_tokens(system_instructions) + estimate_tokens(user_message)
        )
        try:
            return await asyncio.to_thread(self._generate, system_instructions, user_message)
        except BlockedPromptException as e:
            logger.error(f"Prompt blocked by safety filters: {e}")
            raise UpstreamFailureError(f"Prompt blocked: {e}") from e
        except Exception as e:
            raise UpstreamFailureError(f"Gemini request failed: {e}") from e
