"""Builds the startup ProxyConfig from layered sources.

Precedence per setting, lowest first: built-in defaults, the properties file
named by SOAP_PROXY_CONFIG_FILE, then the process environment.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.settings import Settings

logger = logging.getLogger(__name__)

# ProxyConfig field -> key looked up in the properties file and the environment
CONFIG_KEYS: Dict[str, str] = {
    "remove_coordination_context": "PROXY_REMOVE_COORDINATION_CONTEXT",
    "remove_wsat_elements": "PROXY_REMOVE_WSAT_ELEMENTS",
    "remove_transaction_elements": "PROXY_REMOVE_TRANSACTION_ELEMENTS",
    "detailed_logging": "PROXY_LOGGING_DETAILED",
    "allow_restricted_headers": "PROXY_ALLOW_RESTRICTED_HEADERS",
    "connect_timeout_ms": "PROXY_CONNECTION_TIMEOUT_MS",
    "socket_timeout_ms": "PROXY_SOCKET_TIMEOUT_MS",
}

INTEGER_FIELDS = {"connect_timeout_ms", "socket_timeout_ms"}


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() == "true"


def _parse_positive_int(key: str, raw: str, source: str) -> Optional[int]:
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid number format for {key}={raw!r} in {source}; ignoring it")
        return None
    if value <= 0:
        logger.warning(f"{key} must be positive, got {value} in {source}; ignoring it")
        return None
    return value


def read_properties_file(path: str) -> Dict[str, str]:
    """Reads a dotenv-style properties file. A missing file yields no values."""
    if not Path(path).is_file():
        logger.info(f"No proxy properties file at {path}, using default configuration")
        return {}
    values = {key: value for key, value in dotenv_values(path).items() if value is not None}
    logger.info(f"Configuration loaded from {path}")
    return values


def build_proxy_config(properties: Mapping[str, str], overrides: Mapping[str, str]) -> ProxyConfig:
    """Merges the two tiers over the defaults, the override tier winning per setting."""
    resolved: Dict[str, Any] = {}
    overridden = []

    for field_name, key in CONFIG_KEYS.items():
        for source_name, source in (("properties file", properties), ("environment", overrides)):
            raw = source.get(key)
            if raw is None:
                continue
            if field_name in INTEGER_FIELDS:
                value = _parse_positive_int(key, raw, source_name)
                if value is None:
                    continue
            else:
                value = _parse_bool(raw)
            resolved[field_name] = value
            if source is overrides:
                overridden.append(f"{key}={raw}")

    if overridden:
        logger.info(f"Environment overrides applied: {', '.join(overridden)}")

    return ProxyConfig(**resolved)


def log_proxy_config(config: ProxyConfig) -> None:
    logger.info(
        "Proxy configuration: "
        f"remove_coordination_context={config.remove_coordination_context}, "
        f"remove_wsat_elements={config.remove_wsat_elements}, "
        f"remove_transaction_elements={config.remove_transaction_elements}, "
        f"detailed_logging={config.detailed_logging}, "
        f"allow_restricted_headers={config.allow_restricted_headers}, "
        f"connect_timeout_ms={config.connect_timeout_ms}, "
        f"socket_timeout_ms={config.socket_timeout_ms}"
    )


def load_proxy_config(settings: Settings, environ: Optional[Mapping[str, str]] = None) -> ProxyConfig:
    """Loads the startup ProxyConfig from the properties file and the environment."""
    properties = read_properties_file(settings.get_proxy_config_file())
    config = build_proxy_config(properties, os.environ if environ is None else environ)
    log_proxy_config(config)
    return config
