"""
Retry policy and attempt trace models for the Fetcher.

The retry loop records one RetryAttempt per attempt so callers and tests can
inspect the exact {attempt, delay, outcome} sequence.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """
    Retry/backoff policy governing the Fetcher.

    All delays are in seconds.

    Attributes:
        max_attempts: Total attempts per request (0 and 1 both mean a single attempt)
        base_delay: Per-request politeness delay, used as a fallback retry delay
        throttle_delay: General delay after throttling or errors
        exponential_backoff: Scale the fallback delay by multiplier^(attempt-1)
        backoff_multiplier: Backoff multiplier (non-finite or <= 0 disables scaling)
        attempt_override: Replaces max_attempts when set
        fixed_retry_delay: Explicit retry delay, preferred over the other fallbacks

    Example:
        >>> policy = RetryPolicy(max_attempts=3, throttle_delay=2.0)
        >>> policy.effective_attempts
        3
    """

    max_attempts: int = Field(
        default=10,
        ge=0,
        description="Total attempts per request"
    )

    base_delay: float = Field(
        default=0.25,
        description="Per-request politeness delay in seconds"
    )

    throttle_delay: float = Field(
        default=2.0,
        description="Delay after throttling or errors in seconds"
    )

    exponential_backoff: bool = Field(
        default=False,
        description="Enable exponential scaling of the fallback delay"
    )

    backoff_multiplier: float = Field(
        default=2.0,
        description="Exponential backoff multiplier"
    )

    attempt_override: Optional[int] = Field(
        default=None,
        ge=0,
        description="Overrides max_attempts when set"
    )

    fixed_retry_delay: Optional[float] = Field(
        default=None,
        description="Explicit retry delay in seconds"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def attempt_limit(self) -> int:
        """Configured limit: attempt_override if set, else max_attempts."""
        if self.attempt_override is not None:
            return self.attempt_override
        return self.max_attempts

    @property
    def retry_count(self) -> int:
        """Number of retries after the first attempt (never negative)."""
        return max(0, self.attempt_limit - 1)

    @property
    def effective_attempts(self) -> int:
        """Attempts actually performed: one initial attempt plus retry_count."""
        return self.retry_count + 1


class AttemptOutcome(str, Enum):
    """Classification of a single attempt."""

    SUCCESS = "success"
    RETRYABLE_STATUS = "retryable_status"
    TRANSPORT_ERROR = "transport_error"


class RetryAttempt(BaseModel):
    """
    One entry of the retry trace.

    Attributes:
        attempt: 1-based attempt number
        outcome: Classification of the attempt
        status: HTTP status (None for transport errors)
        delay: Seconds waited after this attempt (0.0 if no retry followed)
        error: Transport error message, if any
    """

    attempt: int = Field(..., ge=1)
    outcome: AttemptOutcome
    status: Optional[int] = None
    delay: float = 0.0
    error: Optional[str] = None


class FetchResult(BaseModel):
    """Successful fetch: response body, final status and the attempt trace."""

    url: str
    content: str
    status: int
    trace: List[RetryAttempt] = Field(default_factory=list)

    @property
    def attempts(self) -> int:
        return len(self.trace)

    def __repr__(self) -> str:
        return (
            f"FetchResult(url='{self.url}', status={self.status}, "
            f"attempts={self.attempts}, content_length={len(self.content)})"
        )
