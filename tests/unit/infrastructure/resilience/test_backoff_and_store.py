import threading

from autoretry.domain.models.policy import RetryPolicy
from autoretry.infrastructure.resilience.backoff import ExponentialBackoff
from autoretry.infrastructure.resilience.cohort_store import InMemoryCohortStore


def test_backoff_doubles_until_cap():
    backoff = ExponentialBackoff(initial=3, factor=2, maximum=20)

    delays = [backoff.next_delay() for _ in range(5)]

    assert delays == [3, 6, 12, 20, 20]


def test_backoff_reset_starts_over():
    backoff = ExponentialBackoff.from_policy(RetryPolicy())
    backoff.next_delay()
    backoff.next_delay()

    backoff.reset()

    assert backoff.peek == 3.0
    assert backoff.next_delay() == 3.0


def test_backoff_default_policy_reaches_one_hour():
    backoff = ExponentialBackoff.from_policy(RetryPolicy())

    delays = [backoff.next_delay() for _ in range(12)]

    assert delays[:4] == [3.0, 6.0, 12.0, 24.0]
    assert delays[-1] == 3600.0
    assert all(later >= earlier for earlier, later in zip(delays, delays[1:]))


def test_store_publish_supersedes_previous_value():
    store = InMemoryCohortStore()
    assert store.get("sendMessage") is None

    store.publish("sendMessage", 50.0)
    store.publish("sendMessage", 20.0)

    assert store.get("sendMessage") == 20.0
    assert len(store) == 1


def test_store_concurrent_writers_leave_a_published_value():
    store = InMemoryCohortStore()
    values = [float(i) for i in range(50)]

    threads = [threading.Thread(target=store.publish, args=("sendMessage", v)) for v in values]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get("sendMessage") in values
    assert len(store) == 1
