"""Interface for the store of cohort 'resume not before' timestamps.

Requests in the same cohort share one timestamp, so a rate limit reported
to one request also delays its siblings.
"""

import abc
from typing import Hashable, Optional


class CohortStore(abc.ABC):
    """Abstract Base Class for cohort timestamp storage."""

    @abc.abstractmethod
    def get(self, key: Hashable) -> Optional[float]:
        """Returns the most recently published resume timestamp for `key`.

        Args:
            key: The cohort key.

        Returns:
            The timestamp (same clock as the caller), or None if the cohort
            has never been rate limited.
        """
        pass

    @abc.abstractmethod
    def publish(self, key: Hashable, resume_at: float) -> None:
        """Records a new resume timestamp, superseding any earlier value.

        Args:
            key: The cohort key.
            resume_at: Earliest time at which the cohort may resubmit.
        """
        pass
