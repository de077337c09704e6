"""Parsing and serialization of SOAP envelopes.

Only the header is ever looked at; the body element is carried through
untouched so it serializes back to the same bytes.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from lxml import etree

from soap_proxy.core.errors import ProxyError, ProxyErrorKind

logger = logging.getLogger(__name__)

SOAP_11_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_12_NAMESPACE = "http://www.w3.org/2003/05/soap-envelope"
SOAP_NAMESPACES = (SOAP_11_NAMESPACE, SOAP_12_NAMESPACE)

# No DTD loading, entity expansion or network access while parsing untrusted input
_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    huge_tree=False,
    remove_blank_text=False,
    strip_cdata=False,
)


@dataclass(frozen=True)
class HeaderElement:
    """Read-only view of one top-level SOAP header child."""

    element: etree._Element

    @property
    def local_name(self) -> str:
        return etree.QName(self.element).localname

    @property
    def namespace(self) -> Optional[str]:
        return etree.QName(self.element).namespace

    @property
    def qualified_name(self) -> str:
        prefix = self.element.prefix
        return f"{prefix}:{self.local_name}" if prefix else self.local_name

    @property
    def text(self) -> str:
        """Concatenated text content of the element and its descendants."""
        return "".join(self.element.itertext())


class SoapEnvelope:
    """A parsed SOAP envelope: an optional header and exactly one body."""

    def __init__(self, root: etree._Element, header: Optional[etree._Element], body: etree._Element):
        self._root = root
        self._header = header
        self._body = body

    @property
    def soap_namespace(self) -> str:
        return etree.QName(self._root).namespace

    @property
    def has_header(self) -> bool:
        return self._header is not None

    @property
    def body(self) -> etree._Element:
        return self._body

    def header_elements(self) -> List[HeaderElement]:
        """Snapshot of the header's element children, in document order.

        Comments and processing instructions are skipped. The list is a copy, so
        removing elements while iterating it is safe.
        """
        if self._header is None:
            return []
        return [HeaderElement(child) for child in self._header if isinstance(child.tag, str)]

    def remove_header_element(self, header_element: HeaderElement) -> None:
        if self._header is None or header_element.element.getparent() is not self._header:
            raise ValueError(f"{header_element.qualified_name} is not a child of this envelope's header")
        self._header.remove(header_element.element)

    def body_bytes(self) -> bytes:
        return etree.tostring(self._body)

    def to_bytes(self) -> bytes:
        return etree.tostring(self._root, xml_declaration=True, encoding="UTF-8")


def parse_envelope(content: bytes) -> Union[SoapEnvelope, ProxyError]:
    """Parses raw bytes into a SoapEnvelope.

    Returns:
        The envelope, or a MALFORMED_SOAP_MESSAGE ProxyError if the content is not
        well-formed XML or not a SOAP 1.1/1.2 envelope with exactly one Body.
    """
    if not content or not content.strip():
        return ProxyError(kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE, message="Empty SOAP message")

    try:
        root = etree.fromstring(content, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        return ProxyError(
            kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE,
            message=f"Request body is not well-formed XML: {e}",
            cause=e,
        )

    root_name = etree.QName(root)
    if root_name.localname != "Envelope" or root_name.namespace not in SOAP_NAMESPACES:
        return ProxyError(
            kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE,
            message=f"Root element {root.tag} is not a SOAP Envelope",
        )

    soap_ns = root_name.namespace
    headers = root.findall(f"{{{soap_ns}}}Header")
    bodies = root.findall(f"{{{soap_ns}}}Body")
    if len(bodies) != 1:
        return ProxyError(
            kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE,
            message=f"SOAP Envelope must contain exactly one Body, found {len(bodies)}",
        )
    if len(headers) > 1:
        return ProxyError(
            kind=ProxyErrorKind.MALFORMED_SOAP_MESSAGE,
            message=f"SOAP Envelope must contain at most one Header, found {len(headers)}",
        )

    return SoapEnvelope(root=root, header=headers[0] if headers else None, body=bodies[0])
