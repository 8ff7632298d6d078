# ============================================================================
# Hyperliquid Trust Layer v1.0.0
# Exponential Backoff - HL-NET Compliance
# ============================================================================
#
# Reliability Level: SOVEREIGN TIER (Mission-Critical)
# Purpose: Delay schedule shared by read retries, leverage retries and
#          reconciliation polling
#
# SOVEREIGN MANDATE:
#   - Delay grows geometrically and is capped
#   - Jitter is additive only, so the cap plus jitter bounds every wait
#   - Growth stops at the cap, so a schedule can be drawn from indefinitely
#
# ============================================================================

import random
from dataclasses import dataclass
from typing import Callable, Optional


class ExponentialBackoff:
    """
    Exponential Backoff Calculator - HL-NET Compliance.

    Reliability Level: SOVEREIGN TIER

    Example Usage:
        backoff = ExponentialBackoff(base_delay=0.25, max_delay=4.0)
        await asyncio.sleep(backoff.get_delay())
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 60.0,
        jitter: float = 0.25,
        rng: Optional[Callable[[], float]] = None
    ):
        """
        Initialize backoff calculator.

        Args:
            base_delay: Initial delay in seconds
            multiplier: Delay multiplier per attempt
            max_delay: Maximum delay cap in seconds (before jitter)
            jitter: Random jitter factor (0-1)
            rng: Source of uniform [0, 1) values (default: random.random)
        """
        if base_delay < 0 or max_delay < 0:
            raise ValueError("backoff delays must be non-negative")
        if multiplier < 1:
            raise ValueError("backoff multiplier must be >= 1")
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter
        self._rng = rng or random.random
        self._attempt = 0

    @property
    def attempt(self) -> int:
        return self._attempt

    def get_delay(self) -> float:
        """
        Get next backoff delay and advance the schedule.

        The attempt counter only advances while the delay is still below
        max_delay, so the exponent stays bounded however long the caller
        keeps polling.

        Returns:
            Delay in seconds with optional jitter
        """
        delay = min(self.base_delay * (self.multiplier ** self._attempt), self.max_delay)

        if delay < self.max_delay and self.base_delay > 0 and self.multiplier > 1:
            self._attempt += 1

        # Add jitter to prevent thundering herd
        if self.jitter > 0:
            delay += delay * self.jitter * self._rng()

        return delay

    def reset(self) -> None:
        """Reset attempt counter after successful request."""
        self._attempt = 0


@dataclass(frozen=True)
class BackoffPolicy:
    """Parameters for building fresh ExponentialBackoff schedules."""
    base_delay: float = 0.25
    multiplier: float = 2.0
    max_delay: float = 4.0
    jitter: float = 0.25

    def new_schedule(self) -> ExponentialBackoff:
        return ExponentialBackoff(
            base_delay=self.base_delay,
            multiplier=self.multiplier,
            max_delay=self.max_delay,
            jitter=self.jitter,
        )
