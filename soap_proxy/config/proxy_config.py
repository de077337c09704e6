"""Runtime configuration of the SOAP header stripping and forwarding behaviour."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONNECT_TIMEOUT_MS = 10000
DEFAULT_SOCKET_TIMEOUT_MS = 30000


class ProxyConfig(BaseModel):
    """
    Immutable snapshot of the proxy configuration.

    A request reads one snapshot at its start and uses it throughout; changing
    the configuration means publishing a new snapshot through ProxyConfigStore.

    Attributes:
        remove_coordination_context: Strip WS-Coordination CoordinationContext header elements.
        remove_wsat_elements: Strip any header element in a WS-AtomicTransaction namespace.
        remove_transaction_elements: Strip header elements whose local name mentions
            Transaction, Coordination or Activity.
        allow_restricted_headers: Forward hop-by-hop style headers (connection, upgrade, ...).
        detailed_logging: Log headers, SOAP payloads and upstream responses per request.
        connect_timeout_ms: Limit for establishing the outbound connection.
        socket_timeout_ms: Limit for the whole wait on the destination's response.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    remove_coordination_context: bool = True
    remove_wsat_elements: bool = True
    remove_transaction_elements: bool = True
    allow_restricted_headers: bool = False
    detailed_logging: bool = True
    connect_timeout_ms: int = Field(default=DEFAULT_CONNECT_TIMEOUT_MS, gt=0)
    socket_timeout_ms: int = Field(default=DEFAULT_SOCKET_TIMEOUT_MS, gt=0)

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def socket_timeout_seconds(self) -> float:
        return self.socket_timeout_ms / 1000.0


class ProxyConfigUpdate(BaseModel):
    """A partial change to ProxyConfig. Fields left as None keep their current value."""

    model_config = ConfigDict(extra="forbid")

    remove_coordination_context: Optional[bool] = None
    remove_wsat_elements: Optional[bool] = None
    remove_transaction_elements: Optional[bool] = None
    allow_restricted_headers: Optional[bool] = None
    detailed_logging: Optional[bool] = None
    connect_timeout_ms: Optional[int] = Field(default=None, gt=0)
    socket_timeout_ms: Optional[int] = Field(default=None, gt=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
