import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.soap.envelope import HeaderElement, SoapEnvelope
from soap_proxy.soap.rules import HeaderRemovalRule, active_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovedElement:
    """A header element that was stripped, and the first rule that matched it."""

    qualified_name: str
    namespace: Optional[str]
    rule: str


def _first_match(element: HeaderElement, rules: Sequence[HeaderRemovalRule]) -> Optional[HeaderRemovalRule]:
    for rule in rules:
        if rule.matches(element):
            return rule
    return None


def sanitize_header(envelope: SoapEnvelope, config: ProxyConfig) -> List[RemovedElement]:
    """
    Strips transaction coordination elements from the envelope's header in place.

    Each top-level header element is evaluated exactly once against all active
    rules combined; matches are collected first and removed afterwards, so a
    removal never shifts which sibling is examined next. Children of header
    elements are not inspected. Running it again on the result removes nothing.

    Args:
        envelope: The parsed envelope. Its body is never touched.
        config: Snapshot deciding which rules are active.

    Returns:
        The removed elements in document order.
    """
    rules = active_rules(config)
    if not rules or not envelope.has_header:
        return []

    doomed = []
    for element in envelope.header_elements():
        rule = _first_match(element, rules)
        if rule is not None:
            doomed.append((element, rule))

    removed: List[RemovedElement] = []
    for element, rule in doomed:
        envelope.remove_header_element(element)
        removed.append(
            RemovedElement(qualified_name=element.qualified_name, namespace=element.namespace, rule=rule.name)
        )
        logger.info(f"Removed SOAP header element {element.qualified_name} ({rule.name})")

    return removed
