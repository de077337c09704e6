import abc
from typing import List, Tuple

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.soap.envelope import HeaderElement


class HeaderRemovalRule(abc.ABC):
    """
    Abstract base class for rules deciding whether a SOAP header element is stripped.

    Rules only look at the element's own name and namespace, never at its children.
    """

    name: str

    @abc.abstractmethod
    def matches(self, element: HeaderElement) -> bool:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, self.__class__)

    def __hash__(self) -> int:
        return hash(self.__class__.__name__)


class CoordinationContextRule(HeaderRemovalRule):
    """WS-Coordination CoordinationContext elements."""

    name = "coordination_context"
    namespace_markers: Tuple[str, ...] = ("wscoor", "coordination")

    def matches(self, element: HeaderElement) -> bool:
        namespace = element.namespace
        if element.local_name != "CoordinationContext" or not namespace:
            return False
        return any(marker in namespace for marker in self.namespace_markers)


class WsatNamespaceRule(HeaderRemovalRule):
    """Any element in a WS-AtomicTransaction namespace."""

    name = "wsat_namespace"
    namespace_markers: Tuple[str, ...] = ("wsat", "atomictransaction", "atomic-transaction")

    def matches(self, element: HeaderElement) -> bool:
        namespace = element.namespace
        if not namespace:
            return False
        return any(marker in namespace for marker in self.namespace_markers)


class TransactionNameRule(HeaderRemovalRule):
    """Elements whose local name mentions a transaction concept, in any namespace."""

    name = "transaction_name"
    name_markers: Tuple[str, ...] = ("Transaction", "Coordination", "Activity")

    def matches(self, element: HeaderElement) -> bool:
        local_name = element.local_name
        return any(marker in local_name for marker in self.name_markers)


def active_rules(config: ProxyConfig) -> List[HeaderRemovalRule]:
    """The rules switched on in the given configuration, in evaluation order."""
    rules: List[HeaderRemovalRule] = []
    if config.remove_coordination_context:
        rules.append(CoordinationContextRule())
    if config.remove_wsat_elements:
        rules.append(WsatNamespaceRule())
    if config.remove_transaction_elements:
        rules.append(TransactionNameRule())
    return rules
