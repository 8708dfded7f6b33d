"""Interface for the transport wrapped by the retrying caller.

A transport sends one request and returns a Success or Failure, or raises
when the request could not be completed at all.
"""

import asyncio
from typing import Any, Optional, Protocol

from autoretry.domain.models.api import ApiResponse


class Transport(Protocol):
    """Anything awaitable with the (method, payload, signal) call shape.

    Plain coroutine functions satisfy this protocol, and so does a
    RetryingCaller, so callers can be stacked.
    """

    async def __call__(
        self,
        method: str,
        payload: Any = None,
        signal: Optional[asyncio.Event] = None,
    ) -> ApiResponse:
        """Sends a request.

        Args:
            method: The remote API method name.
            payload: Opaque request payload; resubmitted unchanged on retry.
            signal: Optional cancellation signal for the logical call.

        Returns:
            A Success or a Failure.

        Raises:
            TransportError: If the request could not be completed.
        """
        ...
