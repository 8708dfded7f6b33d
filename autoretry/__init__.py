"""autoretry: transparent retry middleware for API transports.

Wraps a `(method, payload, signal) -> Success | Failure` transport and
resubmits calls that hit rate limits (`retry_after`), server errors or
transport errors, according to a RetryPolicy.
"""

from autoretry.domain.events.retry_events import (
    AbandonReason, RetryAbandoned, RetryEvent, RetryReason, RetryScheduled
)
from autoretry.domain.exceptions import (
    AutoRetryError, ConfigurationError, RequestAbortedError, TransportError
)
from autoretry.domain.interfaces.cohort_store import CohortStore
from autoretry.domain.interfaces.transport import Transport
from autoretry.domain.models.api import ApiResponse, Failure, Request, Success
from autoretry.domain.models.policy import RetryPolicy
from autoretry.infrastructure.resilience.cohort_store import InMemoryCohortStore
from autoretry.infrastructure.resilience.retrying_caller import RetryingCaller, auto_retry

__version__ = "1.0.0"

__all__ = [
    "AbandonReason",
    "ApiResponse",
    "AutoRetryError",
    "CohortStore",
    "ConfigurationError",
    "Failure",
    "InMemoryCohortStore",
    "Request",
    "RequestAbortedError",
    "RetryAbandoned",
    "RetryEvent",
    "RetryPolicy",
    "RetryReason",
    "RetryScheduled",
    "RetryingCaller",
    "Success",
    "Transport",
    "TransportError",
    "auto_retry",
]
