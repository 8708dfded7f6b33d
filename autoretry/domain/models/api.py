"""Value objects exchanged with a transport.

A transport answers every request with either a Success or a Failure.
Failures are ordinary values (not exceptions) carrying the numeric error
code reported by the remote API and an optional parameters block.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

RETRY_AFTER = "retry_after"


@dataclass(frozen=True)
class Request:
    """An immutable, replayable (method, payload) pair."""
    method: str
    payload: Any = None


@dataclass(frozen=True)
class Success:
    """The remote call succeeded."""
    result: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """The remote call returned a well-formed error."""
    error_code: int
    description: str = ""
    parameters: Optional[Mapping[str, Any]] = field(default=None)

    @property
    def ok(self) -> bool:
        return False

    @property
    def retry_after(self) -> Optional[float]:
        """The server's 'retry after N seconds' hint, if it sent a usable one.

        Only real, finite, non-negative numbers count. Booleans, strings,
        negative values and NaN/infinity are treated as if no hint was sent.
        """
        if not self.parameters:
            return None
        value = self.parameters.get(RETRY_AFTER)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value) or value < 0:
            return None
        return float(value)

    @property
    def is_server_error(self) -> bool:
        return self.error_code >= 500

    @classmethod
    def rate_limited(cls, retry_after: float, error_code: int = 429, description: str = "Too Many Requests") -> "Failure":
        """Convenience constructor for a failure carrying a retry_after hint."""
        return cls(error_code=error_code, description=description, parameters={RETRY_AFTER: retry_after})

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ok": False, "error_code": self.error_code, "description": self.description}
        if self.parameters:
            data["parameters"] = dict(self.parameters)
        return data


ApiResponse = Union[Success, Failure]
