"""
Development runner for the SOAP proxy with auto-reload.
"""

from pathlib import Path

import uvicorn

from soap_proxy.settings import Settings


def main():
    """Run the proxy with reload enabled, over TLS when local certificates exist."""
    settings = Settings()

    ssl_args = {}
    cert_dir = Path(__file__).parent / "certs"
    ssl_keyfile = cert_dir / "localhost.key"
    ssl_certfile = cert_dir / "fullchain.crt"
    if ssl_keyfile.exists() and ssl_certfile.exists():
        ssl_args.update({"ssl_keyfile": str(ssl_keyfile), "ssl_certfile": str(ssl_certfile)})

    uvicorn.run(
        "soap_proxy.main:app",
        host=settings.get_app_host(),
        port=settings.get_app_port(),
        reload=True,
        reload_dirs=["soap_proxy"],  # Only watch our package directory
        log_level="debug",
        **ssl_args,
    )


if __name__ == "__main__":
    main()
