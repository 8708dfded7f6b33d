"""Developer CLI for autoretry.

Replays scripted transport outcomes through a RetryingCaller so the retry
decisions for a given policy can be inspected without a real API.
"""

import asyncio
import dataclasses
import logging
import math
from typing import List, Optional

import typer
from typing_extensions import Annotated

from autoretry.domain.events.retry_events import RetryEvent
from autoretry.domain.exceptions import ConfigurationError
from autoretry.infrastructure.cli.display import ConsoleDisplay
from autoretry.infrastructure.config.settings import (
    get_config, load_configuration, load_retry_policy, parse_attempt_limit, parse_limit
)
from autoretry.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from autoretry.infrastructure.resilience.clock import VirtualClock
from autoretry.infrastructure.resilience.retrying_caller import RetryingCaller
from autoretry.infrastructure.transport.scripted import ScriptExhaustedError, ScriptedTransport

logger = logging.getLogger(__name__)

EXIT_FAILURE_RESPONSE = 1
EXIT_PROPAGATED_ERROR = 2

app = typer.Typer(
    name="autoretry",
    help="Inspect how autoretry resubmits rate-limited and failing API calls.",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", "-l", help="Logging level (debug, info, warning). Defaults to 'logging.level' config.")
    ] = None,
):
    """Loads configuration and sets up logging before any command runs."""
    try:
        load_configuration()
    except ConfigurationError as e:
        ConsoleDisplay().display_error(str(e))
        raise typer.Exit(code=EXIT_PROPAGATED_ERROR)
    setup_logging(
        log_level=log_level or get_config("logging.level", "WARNING"),
        log_format=get_config("logging.format", DEFAULT_LOG_FORMAT),
        log_file=get_config("logging.file"),
    )


@app.command()
def simulate(
    outcomes: Annotated[
        List[str],
        typer.Argument(help="Transport outcomes in order: ok, net, <code> or <code>:<retry_after>, e.g. 429:3 502 ok")
    ],
    method: Annotated[str, typer.Option("--method", "-m", help="API method name to call.")] = "sendMessage",
    max_delay: Annotated[Optional[str], typer.Option("--max-delay", help="max_delay_seconds (number or 'inf').")] = None,
    max_attempts: Annotated[Optional[str], typer.Option("--max-attempts", help="max_retry_attempts (number or 'inf').")] = None,
    initial_backoff: Annotated[Optional[float], typer.Option("--initial-backoff", help="First backoff delay in seconds.")] = None,
    no_server_retry: Annotated[bool, typer.Option("--no-server-retry", help="Return server errors (>= 500) immediately.")] = False,
    no_transport_retry: Annotated[bool, typer.Option("--no-transport-retry", help="Propagate transport errors immediately.")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Use virtual time instead of really sleeping.")] = False,
):
    """Run one logical call against a scripted transport and show every retry decision."""
    display = ConsoleDisplay()
    try:
        transport = ScriptedTransport(outcomes, repeat_last=False)
        policy = load_retry_policy(
            max_delay_seconds=parse_limit("--max-delay", max_delay) if max_delay is not None else None,
            max_retry_attempts=parse_attempt_limit("--max-attempts", max_attempts) if max_attempts is not None else None,
            initial_backoff_seconds=initial_backoff,
            retry_server_errors=False if no_server_retry else None,
            retry_transport_errors=False if no_transport_retry else None,
        )
        if math.isinf(policy.max_retry_attempts):
            # play the script exactly once
            policy = dataclasses.replace(policy, max_retry_attempts=len(outcomes) - 1)
    except ValueError as e:
        display.display_error(str(e))
        raise typer.Exit(code=EXIT_PROPAGATED_ERROR)

    events: List[RetryEvent] = []
    caller_options = {}
    if dry_run:
        clock = VirtualClock()
        caller_options = {"clock": clock, "sleep": clock.sleep}
    caller = RetryingCaller(transport, policy, on_event=events.append, **caller_options)

    try:
        response = asyncio.run(caller(method))
    except ScriptExhaustedError:
        # transport errors do not use up the budget, so the caller may outlive the script
        display.display_events(events)
        display.display_info(
            f"Script ran out after {transport.call_count} attempt(s) while the caller was still retrying. "
            "Append more outcomes to see how the call ends."
        )
        raise typer.Exit(code=EXIT_FAILURE_RESPONSE)
    except Exception as e:
        logger.debug(f"Simulated call raised {type(e).__name__}", exc_info=True)
        display.display_events(events)
        display.display_error(f"{type(e).__name__}: {e} (after {transport.call_count} attempt(s))")
        raise typer.Exit(code=EXIT_PROPAGATED_ERROR)

    display.display_events(events)
    display.display_outcome(response, transport.call_count)
    if not response.ok:
        raise typer.Exit(code=EXIT_FAILURE_RESPONSE)


@app.command(name="show-config")
def show_config():
    """Print the retry policy built from configuration and environment."""
    display = ConsoleDisplay()
    try:
        policy = load_retry_policy()
    except ConfigurationError as e:
        display.display_error(str(e))
        raise typer.Exit(code=EXIT_PROPAGATED_ERROR)
    display.display_policy(policy)


def cli_entry_point():
    """Function called by the console script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
