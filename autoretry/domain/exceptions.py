"""Exceptions raised by the retry middleware.

Structured API failures are never raised; they travel as Failure values.
These exceptions cover the conditions that cannot be expressed as a response.
"""

from typing import Optional


class AutoRetryError(Exception):
    """Base class for all errors raised by autoretry."""


class TransportError(AutoRetryError):
    """The transport could not complete the request at all (e.g. connection reset).

    Transports should raise this (or a subclass) for network level failures so
    the retrying caller can tell them apart from programming errors.
    """

    def __init__(self, message: str, original_exception: Optional[BaseException] = None):
        self.original_exception = original_exception
        super().__init__(message)


class RequestAbortedError(AutoRetryError):
    """Raised when a call's cancellation signal fires while waiting between retries."""

    def __init__(self, method: str, remaining_delay: Optional[float] = None):
        self.method = method
        self.remaining_delay = remaining_delay
        super().__init__(f"Request '{method}' aborted while waiting between retries")


class ConfigurationError(AutoRetryError, ValueError):
    """A configuration value could not be interpreted."""

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration value for '{key}': {value!r} ({reason})")
