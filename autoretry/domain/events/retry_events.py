"""Domain Events emitted by the retrying caller.

Purely informational: listeners may record or display them, but nothing
they do changes whether or when a request is resubmitted.
"""

import enum
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Optional


class RetryReason(str, enum.Enum):
    """Why a request is about to be resubmitted."""
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"


class AbandonReason(str, enum.Enum):
    """Why the retry loop stopped on a Failure."""
    BUDGET_EXHAUSTED = "budget_exhausted"
    DELAY_EXCEEDS_THRESHOLD = "delay_exceeds_threshold"
    NOT_RETRYABLE = "not_retryable"


@dataclass
class RetryEvent:
    """Base class for retry events."""
    pass


@dataclass
class RetryScheduled(RetryEvent):
    """A resubmission will happen after `delay_seconds`."""
    method: str
    delay_seconds: float
    reason: RetryReason
    attempt_number: int  # 1-based number of the attempt that just failed
    cohort: Optional[Hashable] = None
    error_code: Optional[int] = None  # None for transport errors
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryAbandoned(RetryEvent):
    """The loop gave up and returns the Failure to the caller."""
    method: str
    error_code: int
    reason: AbandonReason
    attempt_number: int
    effective_wait: Optional[float] = None
    timestamp: float = field(default_factory=time.time)


EventListener = Callable[[RetryEvent], Any]
