"""In-memory cohort timestamp store.

Holds one 'resume not before' timestamp per cohort key. Entries are
overwritten, never removed, so the size is bounded by the number of distinct
cohort keys seen (in practice, the number of distinct method names).
"""

import logging
import threading
from typing import Dict, Hashable, Optional

from autoretry.domain.interfaces.cohort_store import CohortStore

logger = logging.getLogger(__name__)


class InMemoryCohortStore(CohortStore):
    """Dictionary-backed store guarded by a lock.

    The lock is only held for a single read or write, never across an await,
    so it is safe to share one store between event loops or threads.
    """

    def __init__(self):
        self._resume_at: Dict[Hashable, float] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[float]:
        with self._lock:
            return self._resume_at.get(key)

    def publish(self, key: Hashable, resume_at: float) -> None:
        with self._lock:
            self._resume_at[key] = resume_at
        logger.debug(f"Cohort {key!r} resumes at {resume_at:.3f}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._resume_at)
