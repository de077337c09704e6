"""Processing stages a proxied request passes through."""

from enum import Enum


class RequestStage(str, Enum):
    """Stages of one proxied request. Any stage may be followed by FAILED."""

    RECEIVED = "received"
    PARSED = "parsed"
    DESTINATION_RESOLVED = "destination_resolved"
    SANITIZED = "sanitized"
    FORWARDED = "forwarded"
    RESPONDED = "responded"
    FAILED = "failed"
