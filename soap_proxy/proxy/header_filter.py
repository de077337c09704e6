"""Decides which inbound headers are copied onto the outbound request."""

import logging
from typing import Iterable, List, Tuple

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.routing.destination import DESTINATION_HEADER_PREFIX

logger = logging.getLogger(__name__)

# Never forwarded; the outbound client sets these itself
ALWAYS_DROPPED_HEADERS = frozenset({"host", "content-length", "transfer-encoding"})

# Connection-level headers, forwarded only when allow_restricted_headers is on
RESTRICTED_HEADERS = frozenset(
    {
        "connection",
        "upgrade",
        "proxy-connection",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "expect",
    }
)


def is_restricted_header(name: str) -> bool:
    return name.lower() in RESTRICTED_HEADERS


def should_forward_header(name: str, config: ProxyConfig) -> bool:
    lowered = name.lower()
    if lowered in ALWAYS_DROPPED_HEADERS or lowered.startswith(DESTINATION_HEADER_PREFIX):
        return False
    if lowered in RESTRICTED_HEADERS:
        if config.detailed_logging:
            action = "Allowing" if config.allow_restricted_headers else "Skipping"
            logger.info(f"{action} restricted header: {name}")
        return config.allow_restricted_headers
    return True


def filter_headers(
    headers: Iterable[Tuple[str, str]],
    config: ProxyConfig,
    extra_dropped: Iterable[str] = (),
) -> List[Tuple[str, str]]:
    """
    Filters inbound headers for forwarding.

    Order and repeated headers are preserved; names and values are passed through
    unchanged.

    Args:
        headers: Inbound (name, value) pairs.
        config: Snapshot deciding whether restricted headers pass.
        extra_dropped: Further header names (case-insensitive) the caller replaces itself.

    Returns:
        The (name, value) pairs to send to the destination.
    """
    dropped = {name.lower() for name in extra_dropped}
    return [
        (name, value)
        for name, value in headers
        if name.lower() not in dropped and should_forward_header(name, config)
    ]
