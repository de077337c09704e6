import logging

import httpx
from fastapi import HTTPException, Request, status

from soap_proxy.config.loader import load_proxy_config
from soap_proxy.config.store import ProxyConfigStore
from soap_proxy.core.dependency_container import DependencyContainer
from soap_proxy.settings import Settings

logger = logging.getLogger(__name__)

# --- Dependency Providers --- #


def get_dependencies(request: Request) -> DependencyContainer:
    """Dependency to retrieve the DependencyContainer from application state."""
    dependencies: DependencyContainer | None = getattr(request.app.state, "dependencies", None)
    if dependencies is None:
        logger.critical(
            "DependencyContainer not found in application state. "
            "This indicates a critical setup error in the application lifespan."
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Application dependencies not initialized.",
        )
    return dependencies


async def initialize_app_dependencies(app_settings: Settings) -> DependencyContainer:
    """Initialize and configure core application dependencies.

    Loads the startup ProxyConfig and creates the shared HTTP client. Timeouts are
    applied per request from the current ProxyConfig, so the client carries none.

    Args:
        app_settings: The application settings instance.

    Returns:
        A DependencyContainer instance populated with initialized dependencies.

    Raises:
        RuntimeError: If the configuration cannot be loaded.
    """
    logger.info("Initializing core application dependencies...")

    try:
        config_store = ProxyConfigStore(load_proxy_config(app_settings))
    except Exception as config_exc:
        logger.critical(f"Failed to load proxy configuration: {config_exc}")
        raise RuntimeError(f"Failed to load proxy configuration: {config_exc}") from config_exc

    http_client = httpx.AsyncClient(timeout=None, follow_redirects=False)
    logger.info("HTTP Client initialized for DependencyContainer.")

    dependencies = DependencyContainer(
        settings=app_settings,
        http_client=http_client,
        config_store=config_store,
    )
    logger.info("Dependency Container created successfully.")
    return dependencies
