"""Error taxonomy shared by the gateway, geocoder, aggregator and HTTP layer.

Failures are classified where they happen; callers branch on `kind` and never
on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced by the pipeline."""
    NOT_FOUND = "not_found"      # geocoder returned no match for a place name
    NO_MATCH = "no_match"        # reverse geocoder found no name-bearing field
    UPSTREAM = "upstream"        # non-2xx or malformed payload from a service
    NETWORK = "network"          # timeout / connection failure, after one retry
    DECODE = "decode"            # 2xx response whose body is not usable JSON
    VALIDATION = "validation"    # caller input rejected before any network call

    @property
    def is_retryable(self) -> bool:
        """True when repeating the same request later may succeed."""
        return self is ErrorKind.NETWORK


class WeatherServiceError(Exception):
    """Base error for the weather pipeline, tagged with an ErrorKind."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class GatewayError(WeatherServiceError):
    """Failure of a single upstream HTTP call.

    `status_code` and `body` are set when the server answered with a non-2xx
    status; `body` is already truncated to the configured diagnostic limit.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        url: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(kind, message)
        self.url = url
        self.status_code = status_code
        self.body = body
