"""A transport that replays a fixed script of outcomes.

Used by the `simulate` CLI command and by tests. Each call consumes the next
outcome; once the script runs out, the last outcome repeats (or, with
`repeat_last=False`, the call raises ScriptExhaustedError).

Outcome tokens (see `parse_outcome`):
    ok          -> Success
    400, 502    -> Failure with that error code
    429:3       -> Failure 429 with retry_after=3
    net         -> raises TransportError
"""

import asyncio
import logging
from typing import Any, List, Optional, Sequence, Union

from autoretry.domain.exceptions import TransportError
from autoretry.domain.models.api import ApiResponse, Failure, Request, Success

logger = logging.getLogger(__name__)

Outcome = Union[Success, Failure, BaseException]

TRANSPORT_ERROR_TOKENS = ("net", "network", "error")


class ScriptExhaustedError(RuntimeError):
    """Raised when a non-repeating script has no outcomes left."""


def parse_outcome(token: str) -> Outcome:
    """Parses a single outcome token.

    Raises:
        ValueError: If the token is not recognised.
    """
    text = token.strip().lower()
    if text == "ok":
        return Success(result=True)
    if text in TRANSPORT_ERROR_TOKENS:
        return TransportError("Network request failed (scripted)")

    code_text, _, retry_after_text = text.partition(":")
    try:
        error_code = int(code_text)
    except ValueError:
        raise ValueError(f"Unknown outcome '{token}'. Expected ok, net, <code> or <code>:<retry_after>") from None
    if not retry_after_text:
        return Failure(error_code=error_code, description=f"Error {error_code}")
    try:
        retry_after = float(retry_after_text)
    except ValueError:
        raise ValueError(f"Invalid retry_after in outcome '{token}'") from None
    if retry_after.is_integer():
        retry_after = int(retry_after)
    return Failure.rate_limited(retry_after, error_code=error_code, description=f"Error {error_code}: retry after {retry_after}")


class ScriptedTransport:
    """Transport returning (or raising) scripted outcomes in order."""

    def __init__(
        self,
        outcomes: Sequence[Union[Outcome, str]],
        latency_s: float = 0.0,
        repeat_last: bool = True,
    ):
        """Initializes the transport.

        Args:
            outcomes: Outcome objects or tokens understood by `parse_outcome`.
            latency_s: Simulated time each request takes.
            repeat_last: Keep replaying the last outcome once the script is
                used up. If False, further calls raise ScriptExhaustedError.
        """
        if not outcomes:
            raise ValueError("ScriptedTransport needs at least one outcome")
        self.outcomes: List[Outcome] = [
            parse_outcome(o) if isinstance(o, str) else o for o in outcomes
        ]
        self.latency_s = latency_s
        self.repeat_last = repeat_last
        self.calls: List[Request] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def __call__(
        self,
        method: str,
        payload: Any = None,
        signal: Optional[asyncio.Event] = None,
    ) -> ApiResponse:
        if not self.repeat_last and len(self.calls) >= len(self.outcomes):
            raise ScriptExhaustedError(f"Script of {len(self.outcomes)} outcome(s) exhausted on call to '{method}'")
        index = min(len(self.calls), len(self.outcomes) - 1)
        self.calls.append(Request(method=method, payload=payload))
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        outcome = self.outcomes[index]
        logger.debug(f"Scripted call #{len(self.calls)} to '{method}' -> {outcome!r}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
