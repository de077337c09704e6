import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from soap_proxy.admin.router import router as admin_router
from soap_proxy.core.dependencies import initialize_app_dependencies
from soap_proxy.core.logging import setup_logging
from soap_proxy.proxy.server import router as proxy_router
from soap_proxy.settings import Settings

setup_logging()


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifespan of the application resources.

    Loads settings and the startup ProxyConfig, creates the shared HTTP client
    on startup, and closes the client on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: After startup procedures are complete, allowing the application to run.

    Raises:
        RuntimeError: If application dependencies fail to initialize during startup.
    """
    logger.info("Application startup sequence initiated.")

    app_settings = Settings()
    logger.info("Settings loaded.")

    try:
        initialized_dependencies = await initialize_app_dependencies(app_settings)
        app.state.dependencies = initialized_dependencies
        logger.info("Core application dependencies initialized and stored in app state.")
    except Exception as init_exc:
        logger.critical(f"Fatal error during application dependency initialization: {init_exc}", exc_info=True)
        raise RuntimeError(
            f"Application startup failed due to dependency initialization error: {init_exc}"
        ) from init_exc

    yield  # Application runs here

    logger.info("Application shutdown sequence initiated.")

    await initialized_dependencies.http_client.aclose()
    logger.info("HTTP Client from DependencyContainer closed.")

    logger.info("Application shutdown complete.")


def create_app(settings: Settings) -> FastAPI:
    """Builds the application.

    The runtime configuration routes are only included when
    SOAP_PROXY_ADMIN_ENABLED is set. They are registered ahead of the catch-all
    proxy route, so with them enabled a GET to /_proxy/config is answered
    locally and never forwarded, /_proxy/config?wsdl included.
    """
    application = FastAPI(
        title="SOAP Proxy",
        description="A SOAP forwarding proxy that strips WS-Coordination and WS-AtomicTransaction headers.",
        version="0.1.0",
        lifespan=lifespan,
    )

    if settings.get_admin_enabled():
        logger.warning("Runtime configuration endpoint /_proxy/config enabled on the proxy listener.")
        application.include_router(admin_router)
    application.include_router(proxy_router)
    return application


app = create_app(Settings())


# --- Run with Uvicorn (for local development) --- #

if __name__ == "__main__":
    import uvicorn

    dev_settings = Settings()
    uvicorn.run(
        "soap_proxy.main:app",
        host=dev_settings.get_app_host(),
        port=dev_settings.get_app_port(),
        reload=dev_settings.get_app_reload(),
        log_level=dev_settings.get_log_level().lower(),
    )
