import math

import pytest

from autoretry.domain.models.api import Failure, Success
from autoretry.domain.models.policy import RetryPolicy


@pytest.mark.parametrize(
    "parameters, expected",
    [
        ({"retry_after": 3}, 3.0),
        ({"retry_after": 0.5}, 0.5),
        ({"retry_after": 0}, 0.0),
        ({"retry_after": "3"}, None),
        ({"retry_after": True}, None),
        ({"retry_after": -1}, None),
        ({"retry_after": math.nan}, None),
        ({"retry_after": math.inf}, None),
        ({"migrate_to_chat_id": 42}, None),
        (None, None),
    ]
)
def test_failure_retry_after(parameters, expected):
    failure = Failure(error_code=429, parameters=parameters)
    assert failure.retry_after == expected


def test_response_ok_flags():
    assert Success(result=1).ok is True
    assert Failure(error_code=400).ok is False


def test_server_error_threshold():
    assert Failure(error_code=500).is_server_error
    assert not Failure(error_code=499).is_server_error


def test_failure_to_dict():
    failure = Failure.rate_limited(5)
    assert failure.to_dict() == {
        "ok": False,
        "error_code": 429,
        "description": "Too Many Requests",
        "parameters": {"retry_after": 5},
    }


def test_policy_defaults_are_unbounded():
    policy = RetryPolicy()
    assert math.isinf(policy.max_delay_seconds)
    assert math.isinf(policy.max_retry_attempts)
    assert policy.retry_server_errors is True
    assert policy.retry_transport_errors is True
    assert policy.initial_backoff_seconds == 3.0
    assert policy.max_backoff_seconds == 3600.0


def test_policy_cohort_key_defaults_to_method():
    assert RetryPolicy().cohort_key("sendMessage", {"chat_id": 1}) == "sendMessage"
    policy = RetryPolicy(wait_key=lambda method, payload: payload["chat_id"])
    assert policy.cohort_key("sendMessage", {"chat_id": 1}) == 1


@pytest.mark.parametrize(
    "fields",
    [
        {"max_delay_seconds": -1},
        {"max_retry_attempts": -1},
        {"max_retry_attempts": 1.5},
        {"initial_backoff_seconds": 0},
        {"backoff_factor": 0.5},
        {"initial_backoff_seconds": 10, "max_backoff_seconds": 5},
    ]
)
def test_policy_rejects_invalid_values(fields):
    with pytest.raises(ValueError):
        RetryPolicy(**fields)


def test_policy_accepts_whole_float_attempts():
    assert RetryPolicy(max_retry_attempts=2.0).max_retry_attempts == 2
