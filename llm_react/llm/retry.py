"""
Retry policy: how long to wait between attempts and which HTTP statuses to retry.

Pure computation, no I/O. A policy is immutable and can be shared freely
across transports and threads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet

from ..errors import ValidationError

DEFAULT_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({429, 500, 502, 503, 504})


class BackoffStrategy(str, Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    FIXED = "fixed"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy.

    Durations are in seconds. ``max_retries`` counts retries, not attempts:
    a policy with ``max_retries=3`` sends a request at most four times.
    """

    max_retries: int = 3
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    initial_backoff: float = 0.5
    max_backoff: float = 10.0
    retryable_status_codes: FrozenSet[int] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        if self.initial_backoff < 0:
            raise ValidationError("initial_backoff must be >= 0")
        if self.max_backoff < self.initial_backoff:
            raise ValidationError("max_backoff must be >= initial_backoff")
        # Accept any iterable of ints from callers, store it frozen.
        object.__setattr__(self, "retryable_status_codes", frozenset(self.retryable_status_codes))
        object.__setattr__(self, "backoff_strategy", BackoffStrategy(self.backoff_strategy))

    def calculate_backoff(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1`` (attempt is 0-based)."""
        if attempt < 0:
            raise ValueError("attempt must be >= 0")

        if self.backoff_strategy == BackoffStrategy.EXPONENTIAL:
            # 2**64 seconds is already past any sane cap; avoids float overflow.
            delay = self.initial_backoff * (2 ** min(attempt, 64))
        elif self.backoff_strategy == BackoffStrategy.LINEAR:
            delay = self.initial_backoff * (attempt + 1)
        else:
            delay = self.initial_backoff

        return min(delay, self.max_backoff)

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes

    # ── Presets ──────────────────────────────────────────────────

    @classmethod
    def default(cls) -> "RetryPolicy":
        return cls(
            max_retries=3,
            backoff_strategy=BackoffStrategy.EXPONENTIAL,
            initial_backoff=0.5,
            max_backoff=10.0,
            retryable_status_codes=DEFAULT_RETRYABLE_STATUS_CODES,
        )

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_retries=0)
