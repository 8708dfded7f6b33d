import os

import pytest

from autoretry.domain.models.policy import RetryPolicy
from autoretry.infrastructure.config import settings
from autoretry.infrastructure.resilience.clock import VirtualClock
from autoretry.infrastructure.resilience.retrying_caller import RetryingCaller


@pytest.fixture
def clock():
    """Virtual time: sleeps are recorded and advance the clock instantly."""
    return VirtualClock(start=1000.0)


@pytest.fixture
def events():
    """Collects every event emitted by callers built with make_caller."""
    return []


@pytest.fixture
def make_caller(clock, events):
    """Builds a RetryingCaller on virtual time with the given policy fields."""
    def factory(transport, cohort_store=None, **policy_fields):
        return RetryingCaller(
            transport,
            RetryPolicy(**policy_fields),
            cohort_store=cohort_store,
            on_event=events.append,
            clock=clock,
            sleep=clock.sleep,
        )
    return factory


def _drop_autoretry_env():
    for key in list(os.environ):
        if key.startswith(settings.ENV_PREFIX):
            del os.environ[key]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps tests independent of the developer's config files and environment."""
    _drop_autoretry_env()
    settings.clear_test_config()
    settings.reset_configuration()
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_FILE", tmp_path / "no-such-config.yaml")
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv writes straight into os.environ
    _drop_autoretry_env()
    settings.clear_test_config()
    settings.reset_configuration()
