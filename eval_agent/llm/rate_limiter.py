"""Token bucket rate limiter for reasoning-model request throttling."""

import asyncio
import threading
import time
from typing import Optional

from loguru import logger

from eval_agent.config.settings import settings


class TokenBucket:
    """
    Token bucket algorithm implementation for rate limiting.

    Tokens refill continuously at a fixed rate. Requests consume tokens.
    If insufficient tokens are available, the caller waits.

    Attributes:
        capacity: Maximum number of tokens the bucket can hold
        refill_rate: Tokens added per second
        tokens: Current number of tokens available
        last_refill: Monotonic timestamp of last token refill
        lock: Thread lock for safe concurrent access
    """

    def __init__(self, capacity: int, refill_rate: float):
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()
        self.lock = threading.Lock()

    def _refill(self) -> None:
        """Refill tokens based on time elapsed since last refill."""
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def available(self, tokens: float) -> bool:
        with self.lock:
            self._refill()
            return self.tokens >= tokens

    def take(self, tokens: float) -> None:
        with self.lock:
            self._refill()
            self.tokens -= tokens

    def seconds_until(self, tokens: float) -> float:
        """Time until ``tokens`` are available (0 if already available)."""
        with self.lock:
            self._refill()
            missing = tokens - self.tokens
            if missing <= 0:
                return 0.0
            return missing / self.refill_rate if self.refill_rate > 0 else float("inf")


class RateLimiter:
    """
    Multi-dimensional rate limiter using token buckets.

    Enforces both requests-per-minute (RPM) and tokens-per-minute (TPM)
    limits simultaneously.

    Attributes:
        rpm_bucket: Token bucket for request rate limiting
        tpm_bucket: Token bucket for token rate limiting
    """

    def __init__(
        self,
        max_rpm: Optional[int] = None,
        max_tpm: Optional[int] = None
    ):
        rpm = max_rpm or settings.max_rpm
        tpm = max_tpm or settings.max_tpm

        self.rpm_bucket = TokenBucket(capacity=rpm, refill_rate=rpm / 60.0)
        self.tpm_bucket = TokenBucket(capacity=tpm, refill_rate=tpm / 60.0)
        self._async_lock = asyncio.Lock()

        logger.info(f"RateLimiter initialized: {rpm} RPM, {tpm:,} TPM")

    def can_proceed(self, token_count: int) -> bool:
        """
        Check and consume capacity for one request of ``token_count`` tokens.

        Only consumes tokens if BOTH buckets have sufficient capacity.

        Returns:
            True if request can proceed, False if rate limited
        """
        if not self.rpm_bucket.available(1):
            logger.warning("RPM limit reached, request throttled")
            return False

        if not self.tpm_bucket.available(token_count):
            logger.warning(
                f"TPM limit reached, request throttled (need {token_count})"
            )
            return False

        self.rpm_bucket.take(1)
        self.tpm_bucket.take(token_count)
        return True

    async def acquire(self, token_count: int) -> None:
        """Wait until one request of ``token_count`` tokens may proceed."""
        token_count = min(token_count, self.tpm_bucket.capacity)
        async with self._async_lock:
            while not self.can_proceed(token_count):
                delay = max(
                    self.rpm_bucket.seconds_until(1),
                    self.tpm_bucket.seconds_until(token_count),
                    0.05,
                )
                await asyncio.sleep(delay)


def estimate_tokens(text: str) -> int:
    """Rough token estimate (4 characters per token)."""
    return max(1, len(text) // 4)
