import asyncio
import contextlib
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Union

import fastapi
from fastapi import status
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.core.dependency_container import DependencyContainer
from soap_proxy.core.errors import ProxyError, ProxyErrorKind
from soap_proxy.core.inbound_request import InboundRequest
from soap_proxy.core.outbound_result import OutboundResult
from soap_proxy.core.request_stage import RequestStage
from soap_proxy.proxy.debugging import log_proxy_failure, log_request_headers, log_request_stage
from soap_proxy.proxy.header_filter import filter_headers
from soap_proxy.proxy.status_page import render_status_page
from soap_proxy.proxy.utils import decompress_content, is_encoded
from soap_proxy.routing.destination import DestinationTarget, resolve_destination
from soap_proxy.soap.envelope import parse_envelope
from soap_proxy.soap.sanitizer import sanitize_header

logger = logging.getLogger(__name__)

# Query string markers of a service definition fetch (?wsdl, ?xsd=1, ...)
DEFINITION_QUERY_MARKERS = ("wsdl", "xsd")

DISCONNECT_POLL_INTERVAL_SECONDS = 0.1

Outcome = Union[OutboundResult, ProxyError]


def is_definition_request(query_string: str) -> bool:
    lowered = query_string.lower()
    return any(marker in lowered for marker in DEFINITION_QUERY_MARKERS)


@dataclass(frozen=True)
class Exchange:
    """A completed outbound call and where it went."""

    target: DestinationTarget
    result: OutboundResult


@dataclass(frozen=True)
class Failure:
    """A ProxyError and the last stage the request reached before it."""

    error: ProxyError
    stage: RequestStage


async def _wait_for_disconnect(request: fastapi.Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL_SECONDS)


async def forward_unless_disconnected(request: fastapi.Request, forward_call: Awaitable[Outcome]) -> Outcome:
    """
    Runs the outbound call while watching for the client going away.

    If the client disconnects first, the outbound call is cancelled instead of
    being left to run to completion unobserved.
    """
    forward_task = asyncio.ensure_future(forward_call)
    disconnect_task = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({forward_task, disconnect_task}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        forward_task.cancel()
        disconnect_task.cancel()
        raise

    if forward_task.done():
        disconnect_task.cancel()
        return forward_task.result()

    forward_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await forward_task
    return ProxyError(
        kind=ProxyErrorKind.TRANSPORT_FAILURE,
        message="Client disconnected, outbound call was cancelled",
    )


class RequestDispatcher:
    """
    Runs one inbound request through the proxy pipeline.

    POST: decode body, parse SOAP, resolve destination (To field, then headers),
    sanitize header, filter headers, forward, relay.
    GET with ?wsdl/?xsd: resolve destination from headers only and forward the GET.
    Any other GET: render the status page.
    """

    def __init__(self, dependencies: DependencyContainer):
        self.dependencies = dependencies
        self.forwarding_client = dependencies.forwarding_client
        self.context_path = dependencies.settings.get_context_path()
        self.admin_enabled = dependencies.settings.get_admin_enabled()

    async def dispatch(self, request: fastapi.Request) -> Response:
        request_id = str(uuid.uuid4())
        # One snapshot for the whole request, even if the config is replaced meanwhile
        config = self.dependencies.config_store.get()

        body = await request.body()
        inbound = InboundRequest.from_fastapi(request, body)
        log_request_stage(
            request_id,
            RequestStage.RECEIVED,
            {"method": inbound.method, "uri": inbound.uri, "body_length": len(body)},
        )

        if inbound.method == "GET" and not is_definition_request(inbound.query_string):
            return HTMLResponse(content=render_status_page(config, admin_enabled=self.admin_enabled))

        if config.detailed_logging:
            logger.info(f"[{request_id}] Incoming {inbound.method} request for {inbound.uri}")
            log_request_headers(request_id, inbound.headers)

        try:
            if inbound.method == "POST":
                outcome = await self._proxy_soap_request(request, inbound, config, request_id)
            else:
                outcome = await self._proxy_definition_request(request, inbound, config, request_id)
        except Exception as e:
            logger.exception(
                f"[{request_id}] Unhandled exception while proxying {inbound.uri}",
                extra={"request_uri": inbound.uri, "error_type": e.__class__.__name__},
            )
            log_request_stage(request_id, RequestStage.FAILED, {"unexpected": True})
            return PlainTextResponse(
                content=f"Proxy Error: {e.__class__.__name__}: {e}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if isinstance(outcome, Failure):
            log_request_stage(request_id, RequestStage.FAILED, {"error_kind": outcome.error.kind.value})
            log_proxy_failure(request_id, inbound.uri, outcome.error, outcome.stage)
            return self.error_response(outcome.error)

        target, result = outcome.target, outcome.result
        if result.is_upstream_error:
            logger.warning(
                f"[{request_id}] {ProxyErrorKind.UPSTREAM_ERROR.value}: {target.url} answered "
                f"{result.status_code}, relaying it unchanged",
                extra={"request_uri": inbound.uri, "destination": target.url, "status_code": result.status_code},
            )

        response = Response(content=result.body, status_code=result.status_code, media_type="text/xml")
        log_request_stage(request_id, RequestStage.RESPONDED, {"status_code": result.status_code})
        return response

    async def _proxy_soap_request(
        self, request: fastapi.Request, inbound: InboundRequest, config: ProxyConfig, request_id: str
    ) -> Union[Exchange, Failure]:
        encoding = inbound.get_header("content-encoding")
        try:
            content = decompress_content(inbound.body, encoding)
        except ValueError as e:
            error = ProxyError(
                kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE,
                message=f"Could not decode request body: {e}",
                cause=e,
            )
            return Failure(error, RequestStage.RECEIVED)

        if config.detailed_logging:
            logger.info(f"[{request_id}] Incoming SOAP content:\n{content.decode('utf-8', errors='replace')}")

        envelope = parse_envelope(content)
        if isinstance(envelope, ProxyError):
            return Failure(envelope, RequestStage.RECEIVED)
        log_request_stage(request_id, RequestStage.PARSED)

        target = resolve_destination(inbound, envelope, self.context_path)
        if isinstance(target, ProxyError):
            return Failure(target, RequestStage.PARSED)
        log_request_stage(
            request_id,
            RequestStage.DESTINATION_RESOLVED,
            {"destination": target.url, "source": target.source.value},
        )

        removed = sanitize_header(envelope, config)
        log_request_stage(request_id, RequestStage.SANITIZED, {"removed": [e.qualified_name for e in removed]})
        payload = envelope.to_bytes()
        if config.detailed_logging:
            logger.info(
                f"[{request_id}] Removed {len(removed)} header element(s); forwarding to {target.url}:\n"
                f"{payload.decode('utf-8', errors='replace')}"
            )

        # Content-Type is set by the forwarding client; a decoded body is sent as identity
        replaced = ["content-type"]
        if is_encoded(encoding):
            replaced.append("content-encoding")
        headers = filter_headers(inbound.headers, config, extra_dropped=replaced)

        result = await forward_unless_disconnected(
            request, self.forwarding_client.forward("POST", target, headers, config, body=payload)
        )
        if isinstance(result, ProxyError):
            return Failure(result.with_destination(target.url), RequestStage.SANITIZED)
        log_request_stage(request_id, RequestStage.FORWARDED, {"status_code": result.status_code})
        return Exchange(target=target, result=result)

    async def _proxy_definition_request(
        self, request: fastapi.Request, inbound: InboundRequest, config: ProxyConfig, request_id: str
    ) -> Union[Exchange, Failure]:
        # No SOAP message to read a To field from, so headers only
        target = resolve_destination(inbound, None, self.context_path)
        if isinstance(target, ProxyError):
            return Failure(target, RequestStage.RECEIVED)
        log_request_stage(
            request_id,
            RequestStage.DESTINATION_RESOLVED,
            {"destination": target.url, "source": target.source.value},
        )

        headers = filter_headers(inbound.headers, config)
        result = await forward_unless_disconnected(
            request, self.forwarding_client.forward("GET", target, headers, config)
        )
        if isinstance(result, ProxyError):
            return Failure(result.with_destination(target.url), RequestStage.DESTINATION_RESOLVED)
        log_request_stage(request_id, RequestStage.FORWARDED, {"status_code": result.status_code})
        return Exchange(target=target, result=result)

    @staticmethod
    def error_response(error: ProxyError) -> Response:
        # Every proxy-side failure is a 500, client-input ones included
        return PlainTextResponse(
            content=f"Proxy Error: {error.message}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
