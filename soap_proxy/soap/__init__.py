from soap_proxy.soap.envelope import HeaderElement, SoapEnvelope, parse_envelope
from soap_proxy.soap.rules import (
    CoordinationContextRule,
    HeaderRemovalRule,
    TransactionNameRule,
    WsatNamespaceRule,
    active_rules,
)
from soap_proxy.soap.sanitizer import RemovedElement, sanitize_header

__all__ = [
    "HeaderElement",
    "SoapEnvelope",
    "parse_envelope",
    "HeaderRemovalRule",
    "CoordinationContextRule",
    "WsatNamespaceRule",
    "TransactionNameRule",
    "active_rules",
    "RemovedElement",
    "sanitize_header",
]
