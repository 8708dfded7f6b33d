"""Retry policy value object.

Immutable for the lifetime of a wrapped caller. Every field is optional and
defaulted independently; `math.inf` disables a threshold.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional, Tuple, Type

from autoretry.domain.exceptions import TransportError

ONE_HOUR = 3600.0  # seconds
DEFAULT_INITIAL_BACKOFF_S = 3.0
DEFAULT_BACKOFF_FACTOR = 2.0

WaitKey = Callable[[str, Any], Hashable]


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for a RetryingCaller.

    Attributes:
        max_delay_seconds: Longest effective wait (after cohort adjustment) the
            caller accepts before giving up on a rate-limited request.
        max_retry_attempts: Maximum number of resubmissions per logical call.
        retry_server_errors: Retry failures with error codes >= 500.
        retry_transport_errors: Retry raised transport errors.
        wait_key: Maps (method, payload) to a cohort key. Requests with the
            same key share one 'resume not before' timestamp. Defaults to the
            method name.
        initial_backoff_seconds: First delay of the exponential backoff used for
            server and transport errors.
        max_backoff_seconds: Cap for the exponential backoff.
        backoff_factor: Growth factor of the exponential backoff.
        transport_errors: Exception types treated as transport errors.
    """
    max_delay_seconds: float = math.inf
    max_retry_attempts: float = math.inf
    retry_server_errors: bool = True
    retry_transport_errors: bool = True
    wait_key: Optional[WaitKey] = None
    initial_backoff_seconds: float = DEFAULT_INITIAL_BACKOFF_S
    max_backoff_seconds: float = ONE_HOUR
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    transport_errors: Tuple[Type[BaseException], ...] = (TransportError,)

    def __post_init__(self) -> None:
        if math.isnan(self.max_delay_seconds) or self.max_delay_seconds < 0:
            raise ValueError(f"max_delay_seconds must be >= 0, got {self.max_delay_seconds}")
        if math.isnan(self.max_retry_attempts) or self.max_retry_attempts < 0:
            raise ValueError(f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}")
        if not (math.isinf(self.max_retry_attempts) or float(self.max_retry_attempts).is_integer()):
            raise ValueError(f"max_retry_attempts must be a whole number or inf, got {self.max_retry_attempts}")
        if not self.initial_backoff_seconds > 0:
            raise ValueError(f"initial_backoff_seconds must be > 0, got {self.initial_backoff_seconds}")
        if not self.max_backoff_seconds >= self.initial_backoff_seconds:
            raise ValueError("max_backoff_seconds must be >= initial_backoff_seconds")
        if not self.backoff_factor >= 1:
            raise ValueError(f"backoff_factor must be >= 1, got {self.backoff_factor}")

    def cohort_key(self, method: str, payload: Any) -> Hashable:
        """Returns the cohort a request belongs to."""
        if self.wait_key is None:
            return method
        return self.wait_key(method, payload)
