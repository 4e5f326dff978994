"""
Fetcher: single HTTP GETs with a retry/backoff policy honoring SEC throttling.

Design:
- resolve_delay() is a pure function of (attempt, response, policy, now)
- RetryLoop is an explicit loop producing a {attempt, delay, outcome} trace;
  clock, sleep and the send callable are injectable
- Fetcher binds a requests.Session (User-Agent, timeout) to a RetryLoop

Only RetryExhaustedError and OperationCancelledError leave this module.
"""

import logging
import math
import threading
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, List, Optional

import requests

from edgar_filing_text.exceptions import OperationCancelledError, RetryExhaustedError
from edgar_filing_text.models.retry import (
    AttemptOutcome,
    FetchResult,
    RetryAttempt,
    RetryPolicy,
)

logger = logging.getLogger(__name__)

MIN_DELAY = 0.001  # 1ms floor when every configured delay is <= 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_retry_after(value: Optional[str], now: datetime) -> Optional[float]:
    """
    Interpret a Retry-After header value.

    Args:
        value: Header value, either delta-seconds ('5') or an HTTP-date
        now: Current UTC time, used for HTTP-date values

    Returns:
        Positive delay in seconds, or None if the header is absent, unparseable,
        non-positive, or names a time in the past

    Example:
        >>> parse_retry_after('5', now)
        5.0
        >>> parse_retry_after('Wed, 21 Oct 2015 07:28:00 GMT', now) is None  # past
        True
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    # Delta-seconds form
    try:
        delta = float(text)
    except ValueError:
        delta = None

    if delta is not None:
        if math.isfinite(delta) and delta > 0:
            return delta
        return None

    # HTTP-date form
    try:
        resume_at = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None

    if resume_at is None:
        return None
    if resume_at.tzinfo is None:
        resume_at = resume_at.replace(tzinfo=timezone.utc)

    remaining = (resume_at - now).total_seconds()
    return remaining if remaining > 0 else None


def resolve_delay(
    attempt: int,
    response: Optional[requests.Response],
    policy: RetryPolicy,
    now: Optional[datetime] = None
) -> float:
    """
    Determine the delay (seconds) before the retry that follows `attempt`.

    Resolution order:
    1. Retry-After delta-seconds on the failing response, if positive
    2. Retry-After HTTP-date minus now, if positive
    3. Fallback: fixed_retry_delay (>0), else base_delay (>0), else
       throttle_delay; clamped to 1ms if all are <= 0
    4. With exponential backoff and attempt > 1, fallback * multiplier^(attempt-1);
       a non-finite or non-positive factor/result keeps the plain fallback

    Args:
        attempt: 1-based number of the attempt that just failed (clamped to >= 1)
        response: Failing response, or None for a transport error
        policy: Retry policy
        now: Current UTC time (defaults to the system clock)

    Returns:
        Delay in seconds
    """
    if policy is None:
        raise ValueError("policy is required")

    if attempt < 1:
        attempt = 1

    if response is not None:
        headers = getattr(response, 'headers', None) or {}
        header_delay = parse_retry_after(
            headers.get('Retry-After'),
            now or _utcnow()
        )
        if header_delay is not None:
            return header_delay

    if policy.fixed_retry_delay is not None and policy.fixed_retry_delay > 0:
        base_delay = policy.fixed_retry_delay
    elif policy.base_delay > 0:
        base_delay = policy.base_delay
    else:
        base_delay = policy.throttle_delay

    if not base_delay > 0:
        base_delay = MIN_DELAY

    if not policy.exponential_backoff or attempt == 1:
        return base_delay

    try:
        multiplier = math.pow(policy.backoff_multiplier, attempt - 1)
    except (OverflowError, ValueError):
        return base_delay

    if not math.isfinite(multiplier) or multiplier <= 0:
        return base_delay

    computed = base_delay * multiplier
    if not math.isfinite(computed) or computed <= 0:
        return base_delay

    return computed


class RetryLoop:
    """
    Explicit retry loop over a send callable.

    Per-attempt classification:
        200 → success
        any other status (403, 429, 503, ...) → retryable
        requests.RequestException → retryable transport error

    Usage:
        loop = RetryLoop(policy, sleep=fake_sleep, clock=fake_clock)
        result = loop.run(url, lambda: session.get(url))
        for entry in result.trace:
            print(entry.attempt, entry.outcome, entry.delay)
    """

    def __init__(
        self,
        policy: RetryPolicy,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        if policy is None:
            raise ValueError("policy is required")

        self.policy = policy
        self._sleep = sleep
        self._clock = clock or _utcnow

    def run(
        self,
        url: str,
        send: Callable[[], requests.Response],
        cancel_event: Optional[threading.Event] = None
    ) -> FetchResult:
        """
        Execute send() until success or the attempt budget is spent.

        Args:
            url: URL being requested (for logging and errors)
            send: Callable performing one HTTP attempt
            cancel_event: Set by the caller to abandon pending attempts/waits

        Returns:
            FetchResult with body, status and trace

        Raises:
            RetryExhaustedError: Budget spent without a 200 response
            OperationCancelledError: cancel_event was set
        """
        total_attempts = self.policy.effective_attempts
        trace: List[RetryAttempt] = []
        last_status: Optional[int] = None
        last_error: Optional[requests.RequestException] = None

        for attempt in range(1, total_attempts + 1):
            self._check_cancelled(cancel_event, url)

            response: Optional[requests.Response] = None
            try:
                response = send()
            except requests.RequestException as e:
                last_error = e
                last_status = None
                entry = RetryAttempt(
                    attempt=attempt,
                    outcome=AttemptOutcome.TRANSPORT_ERROR,
                    error=str(e)
                )
                logger.debug(f"Attempt {attempt}/{total_attempts} for {url} failed: {e}")
            else:
                last_error = None
                last_status = response.status_code
                if response.status_code == 200:
                    trace.append(RetryAttempt(
                        attempt=attempt,
                        outcome=AttemptOutcome.SUCCESS,
                        status=200
                    ))
                    logger.debug(f"SEC request for URL: {url} succeeded")
                    return FetchResult(
                        url=url,
                        content=response.text,
                        status=200,
                        trace=trace
                    )
                entry = RetryAttempt(
                    attempt=attempt,
                    outcome=AttemptOutcome.RETRYABLE_STATUS,
                    status=response.status_code
                )

            if attempt == total_attempts:
                trace.append(entry)
                break

            delay = resolve_delay(attempt, response, self.policy, self._clock())
            trace.append(entry.model_copy(update={'delay': delay}))

            logger.warning(
                f"Retrying SEC request after status code {last_status}. "
                f"Attempt {attempt + 1} of {total_attempts} waiting {delay:.3f}s. URL: {url}"
            )
            self._wait(delay, cancel_event, url)

        logger.error(
            f"SEC request for URL {url} failed with status code {last_status} "
            f"after {total_attempts} attempt(s)."
        )
        error = RetryExhaustedError(url, last_status, total_attempts, trace)
        if last_error is not None:
            raise error from last_error
        raise error

    def _wait(
        self,
        delay: float,
        cancel_event: Optional[threading.Event],
        url: str
    ) -> None:
        if self._sleep is not None:
            self._sleep(delay)
            self._check_cancelled(cancel_event, url)
        elif cancel_event is not None:
            if cancel_event.wait(delay):
                self._check_cancelled(cancel_event, url)
        else:
            time.sleep(delay)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], url: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Request cancelled: {url}")
            raise OperationCancelledError(f"Request cancelled: {url}")


class Fetcher:
    """
    Issues GETs against SEC EDGAR through a RetryLoop.

    Usage:
        fetcher = Fetcher.from_settings(get_settings())
        html = fetcher.get("https://www.sec.gov/Archives/edgar/data/...")

    Testing:
        fetcher = Fetcher(session=Mock(), policy=RetryPolicy(max_attempts=3),
                          sleep=lambda s: None)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        user_agent: Optional[str] = None,
        timeout: float = 30.0,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the fetcher.

        Args:
            session: requests.Session (a new one is created if omitted)
            policy: Retry policy (defaults to RetryPolicy())
            user_agent: Identifying header "{app}/{version} ({email})"
            timeout: Per-request timeout in seconds
            sleep: Injectable sleep for backoff waits
            clock: Injectable UTC clock for Retry-After dates
        """
        self.session = session or requests.Session()
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self._loop = RetryLoop(self.policy, sleep=sleep, clock=clock)

        if user_agent:
            self.session.headers.update({
                'User-Agent': user_agent,
                'Accept': '*/*',
                'Accept-Encoding': 'gzip, deflate',
            })

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None) -> 'Fetcher':
        """Build a Fetcher from EdgarSettings."""
        return cls(
            session=session,
            policy=settings.retry_policy(),
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
        )

    def fetch(self, url: str, cancel_event: Optional[threading.Event] = None) -> FetchResult:
        """
        GET a URL, returning the full FetchResult (content + trace).

        Raises:
            ValueError: If url is blank
            RetryExhaustedError: Budget spent without a 200 response
            OperationCancelledError: cancel_event was set
        """
        if not url or not url.strip():
            raise ValueError("URL is required")

        logger.debug(f"Preparing SEC request for URL: {url}")
        return self._loop.run(
            url,
            lambda: self.session.get(url, timeout=self.timeout),
            cancel_event=cancel_event
        )

    def get(self, url: str, cancel_event: Optional[threading.Event] = None) -> str:
        """GET a URL and return the response body as text."""
        return self.fetch(url, cancel_event=cancel_event).content
