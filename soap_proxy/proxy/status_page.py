"""Informational page served for plain GET requests."""

from soap_proxy.config.loader import CONFIG_KEYS
from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.proxy.header_filter import RESTRICTED_HEADERS
from soap_proxy.routing.destination import (
    DESTINATION_HOST_HEADER,
    DESTINATION_PORT_HEADER,
    DESTINATION_PROTOCOL_HEADER,
    DESTINATION_URL_HEADER,
)

_CONFIG_LABELS = {
    "remove_coordination_context": "Remove CoordinationContext",
    "remove_wsat_elements": "Remove WS-AT Elements",
    "remove_transaction_elements": "Remove Transaction Elements",
    "allow_restricted_headers": "Allow Restricted Headers",
    "detailed_logging": "Detailed Logging",
    "connect_timeout_ms": "Connection Timeout (ms)",
    "socket_timeout_ms": "Socket Timeout (ms)",
}


def _admin_note(admin_enabled: bool) -> str:
    if not admin_enabled:
        return (
            "<p>Runtime changes are disabled. Set <code>SOAP_PROXY_ADMIN_ENABLED=true</code> to serve "
            "<code>GET</code> and <code>PATCH /_proxy/config</code>.</p>"
        )
    return (
        "<p>The running configuration can be changed with <code>PATCH /_proxy/config</code>. "
        "<code>GET /_proxy/config</code> is answered by the proxy itself and is never forwarded, "
        "with or without <code>?wsdl</code>.</p>"
    )


def render_status_page(config: ProxyConfig, admin_enabled: bool = False) -> str:
    """Renders the status page from a configuration snapshot. Makes no outbound calls."""
    values = config.model_dump()
    config_rows = "".join(
        f"<tr><td>{label}</td><td>{values[field]}</td><td><code>{CONFIG_KEYS[field]}</code></td></tr>"
        for field, label in _CONFIG_LABELS.items()
    )
    restricted = ", ".join(sorted(RESTRICTED_HEADERS))

    return (
        "<html><head><title>SOAP Proxy</title></head><body>"
        "<h1>SOAP Proxy</h1>"
        "<p>This proxy removes WS-Coordination and WS-AtomicTransaction elements from SOAP headers "
        "and forwards requests based on the WS-Addressing To field, or on HTTP headers as a fallback.</p>"
        "<p>Status: Active</p>"
        "<h3>Configuration</h3>"
        "<table><tr><th>Setting</th><th>Value</th><th>Override</th></tr>"
        f"{config_rows}</table>"
        "<h3>Usage</h3>"
        "<p><strong>SOAP requests (POST):</strong> the destination is taken from the WS-Addressing To "
        "header element. If it is missing, the destination headers below are used.</p>"
        "<p><strong>WSDL/XSD requests (GET with <code>?wsdl</code> or <code>?xsd</code>):</strong> "
        "the destination must be given with headers:</p>"
        "<ul>"
        f"<li><code>{DESTINATION_URL_HEADER}</code>: complete destination URL, the request path is appended</li>"
        f"<li><code>{DESTINATION_HOST_HEADER}</code>: destination host</li>"
        f"<li><code>{DESTINATION_PORT_HEADER}</code>: destination port</li>"
        f"<li><code>{DESTINATION_PROTOCOL_HEADER}</code>: destination protocol (http/https)</li>"
        "</ul>"
        "<p>Host, port and protocol must all be provided together.</p>"
        "<h3>Restricted headers</h3>"
        f"<p>Forwarded only when Allow Restricted Headers is enabled: {restricted}</p>"
        "<h3>Overrides</h3>"
        "<p>Values come from the properties file named by <code>SOAP_PROXY_CONFIG_FILE</code>; "
        "environment variables of the same name take precedence.</p>"
        f"{_admin_note(admin_enabled)}"
        "</body></html>"
    )
