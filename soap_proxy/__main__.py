"""
Main entry point for running the SOAP proxy server.
"""

import uvicorn

from soap_proxy.settings import Settings


def main():
    """Run the proxy server."""
    settings = Settings()

    uvicorn.run(
        "soap_proxy.main:app",
        host=settings.get_app_host(),
        port=settings.get_app_port(),
        reload=settings.get_app_reload(),
        log_level=settings.get_log_level().lower(),
    )


if __name__ == "__main__":
    main()
