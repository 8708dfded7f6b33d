import logging

import pytest
from typer.testing import CliRunner

from autoretry.domain.events.retry_events import RetryReason, RetryScheduled
from autoretry.domain.models.api import Success
from autoretry.infrastructure.cli.display import ConsoleDisplay
from autoretry.main import app


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keeps rich from wrapping table cells."""
    monkeypatch.setenv("COLUMNS", "200")
    yield
    # setup_logging attaches handlers to the runner's captured stdout
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)


@pytest.fixture
def mock_console_display(mocker):
    """Replaces the ConsoleDisplay used by the CLI commands with a MagicMock."""
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch("autoretry.main.ConsoleDisplay", return_value=mock)
    return mock


def test_simulate_rate_limit_then_success(runner):
    result = runner.invoke(app, ["simulate", "429:2", "ok", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "rate_limit" in result.output
    assert "Success after 2 attempt(s)" in result.output


def test_simulate_server_errors_show_backoff(runner):
    result = runner.invoke(app, ["simulate", "500", "502", "ok", "--dry-run", "--initial-backoff", "1.5"])

    assert result.exit_code == 0, result.output
    assert "server_error" in result.output
    assert "1.50" in result.output
    assert "3.00" in result.output


def test_simulate_final_failure_exits_with_one(runner):
    result = runner.invoke(app, ["simulate", "429:60", "ok", "--max-delay", "5", "--dry-run"])

    assert result.exit_code == 1
    assert "delay_exceeds_threshold" in result.output
    assert "Failure 429 after 1 attempt(s)" in result.output


def test_simulate_script_played_once_when_budget_unbounded(runner):
    result = runner.invoke(app, ["simulate", "500", "500", "--dry-run"])

    assert result.exit_code == 1
    assert "budget_exhausted" in result.output
    assert "Failure 500 after 2 attempt(s)" in result.output


def test_simulate_propagated_transport_error_exits_with_two(runner):
    result = runner.invoke(app, ["simulate", "net", "ok", "--no-transport-retry"])

    assert result.exit_code == 2
    assert "TransportError" in result.output


def test_simulate_rejects_unknown_outcome(runner):
    result = runner.invoke(app, ["simulate", "sometimes"])

    assert result.exit_code == 2
    assert "Unknown outcome" in result.output


def test_show_config_reads_environment(runner, monkeypatch):
    monkeypatch.setenv("AUTORETRY_RETRY_MAX_DELAY_SECONDS", "12")

    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 0, result.output
    assert "max_delay_seconds" in result.output
    assert "12" in result.output
    assert "unbounded" in result.output


def test_simulate_hands_events_and_outcome_to_display(runner, mock_console_display):
    result = runner.invoke(app, ["simulate", "503", "ok", "--dry-run"])

    assert result.exit_code == 0, result.output
    (events,), _ = mock_console_display.display_events.call_args
    assert len(events) == 1
    assert isinstance(events[0], RetryScheduled)
    assert events[0].reason is RetryReason.SERVER_ERROR
    assert events[0].delay_seconds == 3.0
    mock_console_display.display_outcome.assert_called_once_with(Success(result=True), 2)
    mock_console_display.display_error.assert_not_called()


def test_simulate_transport_errors_outliving_script(runner, mock_console_display):
    """Running out of scripted transport errors is reported, not treated as a crash."""
    result = runner.invoke(app, ["simulate", "net", "net", "--dry-run"])

    assert result.exit_code == 1
    mock_console_display.display_error.assert_not_called()
    mock_console_display.display_outcome.assert_not_called()
    (message,), _ = mock_console_display.display_info.call_args
    assert "Script ran out after 2 attempt(s)" in message


def test_simulate_transport_errors_outliving_script_output(runner):
    result = runner.invoke(app, ["simulate", "net", "net", "--dry-run"])

    assert result.exit_code == 1
    assert "transport_error" in result.output
    assert "Script ran out after 2 attempt(s)" in result.output
    assert "ScriptExhaustedError" not in result.output


def test_simulate_rejects_fractional_attempt_budget(runner):
    result = runner.invoke(app, ["simulate", "500", "ok", "--max-attempts", "1.5"])

    assert result.exit_code == 2
    assert "whole number" in result.output
