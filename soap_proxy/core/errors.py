"""Failure values passed between proxy components.

Components return ``value | ProxyError`` instead of raising, so the dispatcher
is the single place where failures turn into HTTP responses.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx


class ProxyErrorKind(str, Enum):
    """Categories of failure a proxied request can run into."""

    MALFORMED_SOAP_MESSAGE = "MalformedSoapMessage"
    NO_DESTINATION = "NoDestination"
    TRANSPORT_FAILURE = "TransportFailure"
    # The destination answered with a non-2xx status. Relayed as-is, never rendered as a proxy failure.
    UPSTREAM_ERROR = "UpstreamError"


@dataclass(frozen=True)
class ProxyError:
    """A failure of the proxy itself while handling one request."""

    kind: ProxyErrorKind
    message: str
    cause: Optional[BaseException] = None
    destination: Optional[str] = None

    @property
    def is_timeout(self) -> bool:
        """True if the failure came from a connect or response-wait timeout."""
        return isinstance(self.cause, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError))

    def with_destination(self, destination: str) -> "ProxyError":
        return ProxyError(kind=self.kind, message=self.message, cause=self.cause, destination=destination)

    def describe(self) -> str:
        """Message plus the underlying cause, for logs."""
        if self.cause is None:
            return self.message
        return f"{self.message} (caused by {self.cause.__class__.__name__}: {self.cause})"
