"""Rich console rendering for the developer CLI."""

import logging
import math
from datetime import datetime
from typing import List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from autoretry.domain.events.retry_events import RetryAbandoned, RetryEvent, RetryScheduled
from autoretry.domain.models.api import ApiResponse
from autoretry.domain.models.policy import RetryPolicy

logger = logging.getLogger(__name__)

REASON_STYLES = {
    "rate_limit": "yellow",
    "server_error": "magenta",
    "transport_error": "red",
}


def _format_limit(value: float) -> str:
    return "unbounded" if math.isinf(value) else f"{value:g}"


class ConsoleDisplay:
    """Renders retry events, outcomes and policies using rich."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def display_error(self, error_message: str) -> None:
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_events(self, events: List[RetryEvent]) -> None:
        """Prints one table row per retry event."""
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1), title="Retry events")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Time", style="dim")
        table.add_column("Method", style="bold")
        table.add_column("Attempt", justify="right")
        table.add_column("Event")
        table.add_column("Delay (s)", justify="right")
        table.add_column("Error", justify="right")

        for i, event in enumerate(events, 1):
            timestamp = datetime.fromtimestamp(getattr(event, "timestamp", 0.0)).strftime("%H:%M:%S")
            if isinstance(event, RetryScheduled):
                style = REASON_STYLES.get(event.reason.value, "white")
                table.add_row(
                    str(i),
                    timestamp,
                    event.method,
                    str(event.attempt_number),
                    f"[{style}]retry: {event.reason.value}[/{style}]",
                    f"{event.delay_seconds:.2f}",
                    str(event.error_code) if event.error_code is not None else "-",
                )
            elif isinstance(event, RetryAbandoned):
                table.add_row(
                    str(i),
                    timestamp,
                    event.method,
                    str(event.attempt_number),
                    f"[bold red]gave up: {event.reason.value}[/bold red]",
                    f"{event.effective_wait:.2f}" if event.effective_wait is not None else "-",
                    str(event.error_code),
                )
            else:
                logger.debug(f"Skipping unknown event type {type(event).__name__}")

        if not events:
            self.console.print("[dim]No retries were needed.[/dim]")
            return
        self.console.print(table)

    def display_outcome(self, response: ApiResponse, attempts: int) -> None:
        if response.ok:
            body = f"Success after {attempts} attempt(s): {response.result!r}"
            self.console.print(Panel(Text(body), title="[bold green]Result[/bold green]", border_style="green", box=ROUNDED))
        else:
            body = f"Failure {response.error_code} after {attempts} attempt(s): {response.description}"
            if response.retry_after is not None:
                body += f" (retry_after={response.retry_after:g})"
            self.console.print(Panel(Text(body), title="[bold red]Result[/bold red]", border_style="red", box=ROUNDED))

    def display_policy(self, policy: RetryPolicy) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1), title="Retry policy")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="bold")
        table.add_row("max_delay_seconds", _format_limit(policy.max_delay_seconds))
        table.add_row("max_retry_attempts", _format_limit(policy.max_retry_attempts))
        table.add_row("retry_server_errors", str(policy.retry_server_errors))
        table.add_row("retry_transport_errors", str(policy.retry_transport_errors))
        table.add_row("initial_backoff_seconds", f"{policy.initial_backoff_seconds:g}")
        table.add_row("max_backoff_seconds", f"{policy.max_backoff_seconds:g}")
        table.add_row("backoff_factor", f"{policy.backoff_factor:g}")
        self.console.print(table)
