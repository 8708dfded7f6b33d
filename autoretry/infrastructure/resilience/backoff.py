"""Exponential backoff sequence for server and transport errors."""

from autoretry.domain.models.policy import RetryPolicy


class ExponentialBackoff:
    """Per-call backoff state.

    Each call to `next_delay()` returns the current delay and grows the next
    one by `factor`, capped at `maximum`. `reset()` starts over, which the
    retrying caller does after every rate-limit driven retry.
    """

    def __init__(self, initial: float, factor: float, maximum: float):
        self.initial = initial
        self.factor = factor
        self.maximum = maximum
        self._next = initial

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> "ExponentialBackoff":
        return cls(
            initial=policy.initial_backoff_seconds,
            factor=policy.backoff_factor,
            maximum=policy.max_backoff_seconds,
        )

    @property
    def peek(self) -> float:
        """The delay the next call to `next_delay()` will return."""
        return self._next

    def next_delay(self) -> float:
        delay = self._next
        self._next = min(self.maximum, delay * self.factor)
        return delay

    def reset(self) -> None:
        self._next = self.initial
