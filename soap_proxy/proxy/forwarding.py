import asyncio
import logging
from typing import List, Optional, Sequence, Tuple, Union

import httpx

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.core.errors import ProxyError, ProxyErrorKind
from soap_proxy.core.outbound_result import OutboundResult
from soap_proxy.proxy.debugging import masked_header_value
from soap_proxy.routing.destination import DestinationTarget

SOAP_CONTENT_TYPE = "text/xml; charset=UTF-8"


def _preview(content: Optional[bytes]) -> str:
    if not content:
        return ""
    return content.decode("utf-8", errors="replace")


def _as_wire_headers(headers: Sequence[Tuple[str, str]]) -> List[Tuple[bytes, bytes]]:
    # Inbound values are latin-1 decoded; httpx would encode str values as ASCII
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]


class ForwardingClient:
    """
    Sends the rewritten request to its destination and collects the answer.

    Any status the destination returns, 4xx and 5xx included, is a result; only
    transport faults become a ProxyError. Nothing is retried.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def build_timeout(config: ProxyConfig) -> httpx.Timeout:
        return httpx.Timeout(
            config.socket_timeout_seconds,
            connect=config.connect_timeout_seconds,
            pool=config.connect_timeout_seconds,
        )

    async def forward(
        self,
        method: str,
        target: DestinationTarget,
        headers: Sequence[Tuple[str, str]],
        config: ProxyConfig,
        body: Optional[bytes] = None,
    ) -> Union[OutboundResult, ProxyError]:
        """
        Issues one outbound call.

        Args:
            method: "GET" or "POST".
            target: Validated destination.
            headers: Already filtered headers to copy onto the request.
            config: Snapshot supplying timeouts and the logging switch.
            body: Serialized SOAP message for POST.

        Returns:
            The destination's status, headers and body, or a TRANSPORT_FAILURE ProxyError.
            The total wait is bounded by socket_timeout_ms.
        """
        outbound_headers: List[Tuple[str, str]] = list(headers)
        if method == "POST":
            outbound_headers.append(("Content-Type", SOAP_CONTENT_TYPE))

        if config.detailed_logging:
            self.logger.info(f"Outgoing {method} request to {target.url}")
            for name, value in outbound_headers:
                self.logger.info(f"  {name}: {masked_header_value(name, value)}")
            if body:
                self.logger.info(f"Outgoing SOAP content:\n{_preview(body)}")

        try:
            response = await asyncio.wait_for(
                self.http_client.request(
                    method,
                    target.url,
                    headers=_as_wire_headers(outbound_headers),
                    content=body,
                    timeout=self.build_timeout(config),
                ),
                timeout=config.socket_timeout_seconds,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            self.logger.error(f"Timeout during {method} to {target.url}: {e!r}")
            return ProxyError(
                kind=ProxyErrorKind.TRANSPORT_FAILURE,
                message=(
                    f"Timed out waiting for {target.url} "
                    f"(connect timeout {config.connect_timeout_ms}ms, socket timeout {config.socket_timeout_ms}ms)"
                ),
                cause=e,
                destination=target.url,
            )
        except (httpx.RequestError, httpx.StreamError) as e:
            self.logger.error(f"Transport error during {method} to {target.url}: {e!r}")
            return ProxyError(
                kind=ProxyErrorKind.TRANSPORT_FAILURE,
                message=f"Could not reach {target.url}: {e.__class__.__name__}: {e}",
                cause=e,
                destination=target.url,
            )

        result = OutboundResult(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            body=response.content,
        )

        if config.detailed_logging:
            self.logger.info(f"Response from {target.url}: status {result.status_code}")
            for name, value in result.headers:
                self.logger.info(f"  {name}: {masked_header_value(name, value)}")
            self.logger.info(f"Response content:\n{_preview(result.body)}")

        return result
