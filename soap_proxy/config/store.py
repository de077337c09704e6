import logging
import threading

from soap_proxy.config.proxy_config import ProxyConfig, ProxyConfigUpdate

logger = logging.getLogger(__name__)


class ProxyConfigStore:
    """Holds the process-wide ProxyConfig and swaps it atomically.

    Readers call get() once per request and keep the returned snapshot; writers
    publish a complete new snapshot, so a reader never sees a half-applied change.
    """

    def __init__(self, initial: ProxyConfig) -> None:
        self._lock = threading.Lock()
        self._current = initial

    def get(self) -> ProxyConfig:
        return self._current

    def replace(self, new_config: ProxyConfig) -> ProxyConfig:
        """Publish new_config as the current snapshot and return the previous one."""
        with self._lock:
            previous = self._current
            self._current = new_config
        logger.info(
            "Proxy configuration replaced",
            extra={"previous": previous.model_dump(), "current": new_config.model_dump()},
        )
        return previous

    def update(self, update: ProxyConfigUpdate) -> ProxyConfig:
        """Apply a partial change on top of the current snapshot and publish the result.

        Raises:
            pydantic.ValidationError: If the merged configuration is invalid.
        """
        changes = update.changes()
        with self._lock:
            merged = ProxyConfig.model_validate({**self._current.model_dump(), **changes})
            self._current = merged
        for name, value in changes.items():
            logger.info(f"Proxy configuration '{name}' updated to: {value}")
        return merged
