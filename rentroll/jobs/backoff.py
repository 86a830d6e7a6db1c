from abc import ABC, abstractmethod
from datetime import timedelta

from rentroll.config.settings import Settings


class BackoffPolicy(ABC):
    """Delay before a failed job becomes claimable again."""

    @abstractmethod
    def delay(self, retry_count: int) -> timedelta:
        """Return the delay after the `retry_count`-th failed attempt (1-based)."""


class NoBackoff(BackoffPolicy):
    def delay(self, retry_count: int) -> timedelta:
        return timedelta(0)


class FixedBackoff(BackoffPolicy):
    def __init__(self, seconds: float) -> None:
        self._seconds = max(0.0, seconds)

    def delay(self, retry_count: int) -> timedelta:
        return timedelta(seconds=self._seconds)


class ExponentialBackoff(BackoffPolicy):
    """base * factor ** (retry_count - 1), capped at max_seconds.

    With the defaults (10s, x3) retries wait 10s, 30s, 90s, ...
    """

    def __init__(self, base_seconds: float, factor: float, max_seconds: float) -> None:
        self._base = max(0.0, base_seconds)
        self._factor = max(1.0, factor)
        self._max = max(0.0, max_seconds)

    def delay(self, retry_count: int) -> timedelta:
        exponent = max(0, retry_count - 1)
        seconds = min(self._base * self._factor**exponent, self._max)
        return timedelta(seconds=seconds)


def build_backoff_policy(settings: Settings) -> BackoffPolicy:
    """Create the configured backoff policy."""
    policy = settings.backoff_policy.lower()
    if policy == "none":
        return NoBackoff()
    if policy == "fixed":
        return FixedBackoff(settings.backoff_base_seconds)
    if policy == "exponential":
        return ExponentialBackoff(
            settings.backoff_base_seconds,
            settings.backoff_factor,
            settings.backoff_max_seconds,
        )
    raise ValueError(
        f"Unknown backoff policy '{policy}'. Choose from: ['none', 'fixed', 'exponential']"
    )
