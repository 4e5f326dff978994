"""
Exception hierarchy for edgar-filing-text.

- RetryExhaustedError: the Fetcher gave up (terminal, carries the attempt trace)
- MalformedFilingError: upstream content lacks an expected structure (never retried)
- OperationCancelledError: the caller's cancel event was set at a suspension point
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from edgar_filing_text.models.retry import RetryAttempt


class EdgarError(Exception):
    """Base class for all edgar-filing-text errors."""


class RetryExhaustedError(EdgarError):
    """
    Raised by the Fetcher after the attempt budget is spent.

    Attributes:
        url: Requested URL
        status: Last observed HTTP status (None if the last attempt was a transport error)
        attempts: Number of attempts performed
        trace: One RetryAttempt per attempt, in order
    """

    def __init__(
        self,
        url: str,
        status: Optional[int],
        attempts: int,
        trace: Optional[List['RetryAttempt']] = None
    ):
        self.url = url
        self.status = status
        self.attempts = attempts
        self.trace = list(trace or [])
        super().__init__(
            f"Unable to get data for URL '{url}': retries exhausted after "
            f"{attempts} attempt(s), last status {status}"
        )


class MalformedFilingError(EdgarError, ValueError):
    """Expected manifest, marker or document is absent from upstream content."""


class OperationCancelledError(EdgarError):
    """The operation was cancelled by the caller."""
