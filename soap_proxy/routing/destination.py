"""Works out where an inbound request should be forwarded.

Routing priority:
1. WS-Addressing ``To`` element in the SOAP header.
2. ``X-Proxy-Destination-URL`` header, joined with the request path.
3. ``X-Proxy-Destination-Host`` / ``-Port`` / ``-Protocol`` headers, all three together.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import httpx

from soap_proxy.core.errors import ProxyError, ProxyErrorKind
from soap_proxy.core.inbound_request import InboundRequest
from soap_proxy.soap.envelope import SoapEnvelope

logger = logging.getLogger(__name__)

DESTINATION_HEADER_PREFIX = "x-proxy-destination"
DESTINATION_URL_HEADER = "X-Proxy-Destination-URL"
DESTINATION_HOST_HEADER = "X-Proxy-Destination-Host"
DESTINATION_PORT_HEADER = "X-Proxy-Destination-Port"
DESTINATION_PROTOCOL_HEADER = "X-Proxy-Destination-Protocol"

WS_ADDRESSING_NAMESPACE = "http://www.w3.org/2005/08/addressing"
WS_ADDRESSING_2004_NAMESPACE = "http://schemas.xmlsoap.org/ws/2004/08/addressing"

ALLOWED_SCHEMES = ("http", "https")


class DestinationSource(str, Enum):
    """Where a destination was taken from."""

    SOAP_ADDRESSING = "soap_addressing"
    URL_HEADER = "url_header"
    COMPONENT_HEADERS = "component_headers"


@dataclass(frozen=True)
class DestinationTarget:
    """A validated absolute http(s) URL to forward to."""

    url: str
    source: DestinationSource

    @classmethod
    def from_url(cls, url: str, source: DestinationSource) -> Union["DestinationTarget", ProxyError]:
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as e:
            return ProxyError(
                kind=ProxyErrorKind.NO_DESTINATION,
                message=f"Destination URL {url!r} is not a valid URL: {e}",
                cause=e,
            )
        if parsed.scheme not in ALLOWED_SCHEMES or not parsed.host:
            return ProxyError(
                kind=ProxyErrorKind.NO_DESTINATION,
                message=f"Destination URL {url!r} must be an absolute http or https URL",
            )
        return cls(url=url, source=source)

    @classmethod
    def from_components(
        cls, scheme: str, host: str, port: str, path: str, query_string: str
    ) -> Union["DestinationTarget", ProxyError]:
        if not path.startswith("/"):
            path = "/" + path
        url = append_query(f"{scheme}://{host}:{port}{path}", query_string)
        return cls.from_url(url, DestinationSource.COMPONENT_HEADERS)


def append_query(url: str, query_string: str) -> str:
    """Appends a query string, using '&' when the URL already has one."""
    if not query_string:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query_string}"


def service_path(path: str, context_path: str = "") -> str:
    """The request path with the proxy's own context prefix removed."""
    if context_path and (path == context_path or path.startswith(context_path + "/")):
        return path[len(context_path) :]
    return path


def join_path(base_url: str, path: str) -> str:
    """Joins a base URL and a path with exactly one '/' between them.

    An empty or root-only path leaves the base URL as it is.
    """
    if not path.strip("/"):
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _is_addressing_namespace(namespace: Optional[str]) -> bool:
    if not namespace:
        return False
    return (
        "addressing" in namespace
        or namespace == WS_ADDRESSING_NAMESPACE
        or namespace == WS_ADDRESSING_2004_NAMESPACE
    )


def address_from_envelope(envelope: SoapEnvelope) -> Optional[str]:
    """The trimmed text of the first non-empty WS-Addressing To header element, if any."""
    for element in envelope.header_elements():
        if element.local_name == "To" and _is_addressing_namespace(element.namespace):
            address = element.text.strip()
            if address:
                return address
    return None


def destination_from_envelope(
    envelope: SoapEnvelope, query_string: str
) -> Union[DestinationTarget, ProxyError, None]:
    """Destination from the WS-Addressing To field, or None if the header has no usable one."""
    address = address_from_envelope(envelope)
    if address is None:
        return None
    return DestinationTarget.from_url(append_query(address, query_string), DestinationSource.SOAP_ADDRESSING)


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def destination_from_headers(
    request: InboundRequest, context_path: str = ""
) -> Union[DestinationTarget, ProxyError, None]:
    """Destination from the X-Proxy-Destination-* headers, or None if they do not name one."""
    path = service_path(request.path, context_path)

    base_url = _non_blank(request.get_header(DESTINATION_URL_HEADER))
    if base_url is not None:
        url = append_query(join_path(base_url, path), request.query_string)
        return DestinationTarget.from_url(url, DestinationSource.URL_HEADER)

    host = _non_blank(request.get_header(DESTINATION_HOST_HEADER))
    port = _non_blank(request.get_header(DESTINATION_PORT_HEADER))
    protocol = _non_blank(request.get_header(DESTINATION_PROTOCOL_HEADER))
    if host and port and protocol:
        return DestinationTarget.from_components(protocol, host, port, path, request.query_string)

    if host or port or protocol:
        logger.warning(
            f"Ignoring incomplete destination headers for {request.uri}: "
            f"{DESTINATION_HOST_HEADER}, {DESTINATION_PORT_HEADER} and {DESTINATION_PROTOCOL_HEADER} "
            "must all be provided together"
        )
    return None


def resolve_destination(
    request: InboundRequest,
    envelope: Optional[SoapEnvelope] = None,
    context_path: str = "",
) -> Union[DestinationTarget, ProxyError]:
    """
    Resolves the forwarding target for a request.

    The SOAP To field is tried first when an envelope is given; the destination
    headers are only consulted if it yields nothing.

    Returns:
        The target, or a NO_DESTINATION ProxyError if no source names a valid one.
    """
    if envelope is not None:
        target = destination_from_envelope(envelope, request.query_string)
        if target is not None:
            return target
        logger.debug(f"No WS-Addressing To field found for {request.uri}, falling back to HTTP headers")

    target = destination_from_headers(request, context_path)
    if target is not None:
        return target

    return ProxyError(
        kind=ProxyErrorKind.NO_DESTINATION,
        message=(
            "No destination URL found in SOAP message To field or HTTP headers. "
            "Provide a WS-Addressing To header or the "
            f"{DESTINATION_URL_HEADER} header or the {DESTINATION_HOST_HEADER}/"
            f"{DESTINATION_PORT_HEADER}/{DESTINATION_PROTOCOL_HEADER} headers."
        ),
    )
