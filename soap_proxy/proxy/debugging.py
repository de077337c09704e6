"""Logging helpers for the proxy pipeline."""

import logging
from datetime import UTC, datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from soap_proxy.core.errors import ProxyError
from soap_proxy.core.request_stage import RequestStage

# Headers whose values are masked in detailed logs
SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "set-cookie"})


def masked_header_value(name: str, value: str) -> str:
    return "***" if name.lower() in SENSITIVE_HEADERS else value


def log_request_stage(request_id: str, stage: RequestStage, details: Optional[Dict[str, Any]] = None) -> None:
    """Log that a request reached a processing stage."""
    logger = logging.getLogger("soap_proxy.proxy.request")
    logger.debug(
        f"[{request_id}] Request reached stage {stage.value}",
        extra={"stage": stage.value, "timestamp": datetime.now(UTC).isoformat(), **(details or {})},
    )


def log_request_headers(request_id: str, headers: Iterable[Tuple[str, str]]) -> None:
    logger = logging.getLogger("soap_proxy.proxy.request")
    logger.info(f"[{request_id}] Request headers:")
    for name, value in headers:
        logger.info(f"[{request_id}]   {name}: {masked_header_value(name, value)}")


def log_proxy_failure(request_id: str, request_uri: str, error: ProxyError, stage: RequestStage) -> None:
    """Log a failed request with enough context to diagnose it without reproducing it."""
    logger = logging.getLogger("soap_proxy.proxy.request")
    logger.error(
        f"[{request_id}] {error.kind.value} while handling {request_uri}: {error.describe()}",
        exc_info=error.cause,
        extra={
            "request_id": request_id,
            "request_uri": request_uri,
            "destination": error.destination,
            "error_kind": error.kind.value,
            "failed_after_stage": stage.value,
        },
    )
