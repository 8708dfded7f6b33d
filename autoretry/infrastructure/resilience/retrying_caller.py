"""Service for resubmitting API calls that hit rate limits or transient errors.

Wraps a transport and exposes a callable of the same shape. After every
attempt the decision loop looks at the result:

1. A `retry_after` hint is published for the request's cohort.
2. If the cohort still has to wait (the effective wait) and that wait is
   within `max_delay_seconds`, the call sleeps it out and resubmits.
3. Otherwise server errors (>= 500) are resubmitted after an exponential
   backoff delay, if enabled.
4. Anything else, or any failure once the attempt budget is used up, is
   returned to the caller as the final result.

Raised transport errors are retried with the same backoff sequence without
consuming the attempt budget.
"""

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Optional

from autoretry.domain.events.retry_events import (
    AbandonReason, EventListener, RetryAbandoned, RetryEvent, RetryReason, RetryScheduled
)
from autoretry.domain.exceptions import RequestAbortedError
from autoretry.domain.interfaces.cohort_store import CohortStore
from autoretry.domain.interfaces.transport import Transport
from autoretry.domain.models.api import ApiResponse, Failure
from autoretry.domain.models.policy import RetryPolicy
from autoretry.infrastructure.resilience.backoff import ExponentialBackoff
from autoretry.infrastructure.resilience.cohort_store import InMemoryCohortStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float, Optional[asyncio.Event]], Awaitable[bool]]
Transformer = Callable[..., Awaitable[ApiResponse]]


async def pause(seconds: float, signal: Optional[asyncio.Event] = None) -> bool:
    """Sleeps without blocking the event loop.

    Args:
        seconds: How long to wait.
        signal: Optional cancellation signal. Setting it ends the wait early.

    Returns:
        True if the full delay elapsed, False if the signal fired first.
    """
    if signal is None:
        await asyncio.sleep(seconds)
        return True
    try:
        await asyncio.wait_for(signal.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return True
    return False


def _is_aborted(signal: Optional[asyncio.Event]) -> bool:
    return signal is not None and signal.is_set()


@dataclass
class AttemptState:
    """Bookkeeping for one logical call."""
    cohort: Hashable
    remaining: float
    backoff: ExponentialBackoff
    attempts: int = 0


class RetryingCaller:
    """Transport wrapper that transparently retries failed calls."""

    def __init__(
        self,
        transport: Transport,
        policy: Optional[RetryPolicy] = None,
        *,
        cohort_store: Optional[CohortStore] = None,
        on_event: Optional[EventListener] = None,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleeper] = None,
    ):
        """Initializes the RetryingCaller.

        Args:
            transport: The transport to wrap.
            policy: Retry configuration. Defaults to RetryPolicy().
            cohort_store: Store for cohort resume timestamps. Each caller gets
                its own unless one is passed in explicitly.
            on_event: Optional listener for RetryScheduled/RetryAbandoned events.
            clock: Monotonic clock used for cohort timestamps.
            sleep: Coroutine function used to wait between attempts, with the
                same contract as `pause`. Defaults to `pause`.
        """
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self.cohort_store = cohort_store if cohort_store is not None else InMemoryCohortStore()
        self.on_event = on_event
        self._clock = clock
        self._sleep_fn = sleep

        logger.debug(
            f"RetryingCaller initialized: max_delay={self.policy.max_delay_seconds}s, "
            f"max_retries={self.policy.max_retry_attempts}, "
            f"server_errors={self.policy.retry_server_errors}, "
            f"transport_errors={self.policy.retry_transport_errors}"
        )

    async def __call__(
        self,
        method: str,
        payload: Any = None,
        signal: Optional[asyncio.Event] = None,
    ) -> ApiResponse:
        """Sends a request, resubmitting it as long as the policy allows.

        Args:
            method: The remote API method name.
            payload: Request payload, resubmitted unchanged.
            signal: Optional cancellation signal for the whole logical call.

        Returns:
            The first Success, or the last Failure once retrying stops.

        Raises:
            RequestAbortedError: If `signal` fires while waiting between attempts.
            Exception: Transport errors that are not retried, and any other
                exception raised by the transport, unmodified.
        """
        policy = self.policy
        state = AttemptState(
            cohort=policy.cohort_key(method, payload),
            remaining=policy.max_retry_attempts,
            backoff=ExponentialBackoff.from_policy(policy),
        )

        while True:
            response = await self._attempt(method, payload, signal, state)
            if response.ok:
                if state.attempts > 1:
                    logger.info(f"'{method}' succeeded on attempt {state.attempts}")
                return response

            now = self._clock()
            retry_after = response.retry_after
            if retry_after is not None:
                self.cohort_store.publish(state.cohort, now + retry_after)
            wait = self._effective_wait(state.cohort, now)
            rate_limited = retry_after is not None or wait > 0

            # rate limit takes precedence over the server error path
            if rate_limited and wait <= policy.max_delay_seconds:
                reason = RetryReason.RATE_LIMIT
            elif response.is_server_error and policy.retry_server_errors:
                reason = RetryReason.SERVER_ERROR
            else:
                abandon = AbandonReason.DELAY_EXCEEDS_THRESHOLD if rate_limited else AbandonReason.NOT_RETRYABLE
                self._abandon(method, response, abandon, state, wait if rate_limited else None)
                return response

            if state.remaining <= 0:
                self._abandon(method, response, AbandonReason.BUDGET_EXHAUSTED, state, wait)
                return response
            state.remaining -= 1

            if reason is RetryReason.RATE_LIMIT:
                logger.info(f"Hit rate limit, will retry '{method}' after {wait:.2f} seconds")
                await self._sleep(RetryScheduled(
                    method=method, delay_seconds=wait, reason=reason,
                    attempt_number=state.attempts, cohort=state.cohort, error_code=response.error_code,
                ), signal)
                state.backoff.reset()
            else:
                delay = state.backoff.next_delay()
                logger.warning(
                    f"Hit internal server error ({response.error_code}), "
                    f"will retry '{method}' after {delay:.2f} seconds"
                )
                await self._sleep(RetryScheduled(
                    method=method, delay_seconds=delay, reason=reason,
                    attempt_number=state.attempts, cohort=state.cohort, error_code=response.error_code,
                ), signal)

    async def _attempt(
        self,
        method: str,
        payload: Any,
        signal: Optional[asyncio.Event],
        state: AttemptState,
    ) -> ApiResponse:
        """Invokes the transport until it produces a response."""
        while True:
            state.attempts += 1
            try:
                return await self.transport(method, payload, signal)
            except self.policy.transport_errors as e:
                if not self.policy.retry_transport_errors or _is_aborted(signal):
                    logger.debug(f"Propagating {type(e).__name__} from '{method}' on attempt {state.attempts}")
                    raise
                delay = state.backoff.next_delay()
                logger.warning(
                    f"{type(e).__name__} thrown, will retry '{method}' after {delay:.2f} seconds ({e})"
                )
                await self._sleep(RetryScheduled(
                    method=method, delay_seconds=delay, reason=RetryReason.TRANSPORT_ERROR,
                    attempt_number=state.attempts, cohort=state.cohort,
                ), signal)

    async def _sleep(self, event: RetryScheduled, signal: Optional[asyncio.Event]) -> None:
        self._emit(event)
        sleeper = self._sleep_fn or pause
        if _is_aborted(signal) or not await sleeper(event.delay_seconds, signal):
            logger.info(f"Request '{event.method}' aborted while waiting {event.delay_seconds:.2f}s")
            raise RequestAbortedError(event.method, event.delay_seconds)

    def _effective_wait(self, cohort: Hashable, now: float) -> float:
        resume_at = self.cohort_store.get(cohort)
        if resume_at is None:
            return 0.0
        return max(0.0, resume_at - now)

    def _abandon(
        self,
        method: str,
        response: Failure,
        reason: AbandonReason,
        state: AttemptState,
        effective_wait: Optional[float],
    ) -> None:
        if reason is AbandonReason.BUDGET_EXHAUSTED:
            logger.warning(f"Max retries ({self.policy.max_retry_attempts}) reached for '{method}', returning error {response.error_code}")
        elif reason is AbandonReason.DELAY_EXCEEDS_THRESHOLD:
            logger.info(
                f"Not retrying '{method}': wait of {effective_wait:.2f}s exceeds "
                f"max_delay_seconds={self.policy.max_delay_seconds}"
            )
        else:
            logger.debug(f"Not retrying '{method}': error {response.error_code} is not retryable")
        self._emit(RetryAbandoned(
            method=method, error_code=response.error_code, reason=reason,
            attempt_number=state.attempts, effective_wait=effective_wait,
        ))

    def _emit(self, event: RetryEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self.on_event is None:
            return
        try:
            self.on_event(event)
        except Exception:
            logger.exception(f"Retry event listener failed on {type(event).__name__}")


def auto_retry(
    policy: Optional[RetryPolicy] = None,
    *,
    cohort_store: Optional[CohortStore] = None,
    on_event: Optional[EventListener] = None,
    **overrides: Any,
) -> Transformer:
    """Creates an API transformer that retries failed requests.

    The returned coroutine function takes the previous transformer (or the
    raw transport) as its first argument: `(prev, method, payload, signal)`.
    All calls through one transformer share one cohort store.

    Args:
        policy: Base retry configuration.
        cohort_store: Optional shared cohort store.
        on_event: Optional event listener.
        **overrides: RetryPolicy fields overriding `policy`,
            e.g. `auto_retry(max_retry_attempts=3)`.

    Returns:
        The transformer coroutine function.
    """
    effective_policy = policy or RetryPolicy()
    if overrides:
        effective_policy = dataclasses.replace(effective_policy, **overrides)
    store = cohort_store if cohort_store is not None else InMemoryCohortStore()

    async def transformer(
        prev: Transport,
        method: str,
        payload: Any = None,
        signal: Optional[asyncio.Event] = None,
    ) -> ApiResponse:
        caller = RetryingCaller(prev, effective_policy, cohort_store=store, on_event=on_event)
        return await caller(method, payload, signal)

    return transformer
