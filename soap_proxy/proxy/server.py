import logging

from fastapi import APIRouter, Depends, Request, Response

from soap_proxy.core.dependencies import get_dependencies
from soap_proxy.core.dependency_container import DependencyContainer
from soap_proxy.proxy.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


async def _handle_proxy_request(request: Request, dependencies: DependencyContainer) -> Response:
    """
    Common handler for proxied requests.
    Hands the request to the dispatcher and logs what came back.
    """
    client_ip = request.client.host if request.client else "unknown"

    logger.info(
        "Proxy request received",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "query_params": dict(request.query_params),
            "headers_count": len(request.headers),
        },
    )

    response = await RequestDispatcher(dependencies).dispatch(request)

    logger.info(
        "Proxy response sent",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "client_ip": client_ip,
        },
    )
    return response


# GET and POST on any path are the same endpoint; the dispatcher branches on method


@router.post("/{full_path:path}", include_in_schema=False)
async def soap_proxy_endpoint(
    request: Request,
    full_path: str,
    dependencies: DependencyContainer = Depends(get_dependencies),
):
    """
    SOAP proxy endpoint.

    The body is parsed as a SOAP envelope, transaction coordination header
    elements are stripped, and the message is forwarded to the WS-Addressing To
    address or to the destination given in X-Proxy-Destination-* headers.
    """
    return await _handle_proxy_request(request, dependencies)


@router.get("/{full_path:path}", include_in_schema=False)
async def soap_proxy_get_endpoint(
    request: Request,
    full_path: str,
    dependencies: DependencyContainer = Depends(get_dependencies),
):
    """
    GET endpoint.

    ?wsdl / ?xsd requests are forwarded to the destination given in headers;
    anything else returns the proxy status page.
    """
    return await _handle_proxy_request(request, dependencies)
