import os

from dotenv import load_dotenv

# Load .env file variables into environment
load_dotenv(verbose=True)


class Settings:
    """Process-level settings loaded from environment variables.

    The transaction-stripping behaviour itself lives in ProxyConfig
    (see soap_proxy.config); this class only covers how the service is run.
    """

    # --- Server Settings ---
    def get_app_host(self) -> str:
        """Returns the interface the server binds to."""
        return os.getenv("SOAP_PROXY_HOST", "0.0.0.0")  # nosec B104

    def get_app_port(self) -> int:
        """Returns the port the server listens on."""
        try:
            return int(os.getenv("SOAP_PROXY_PORT", "8080"))
        except ValueError:
            raise ValueError("SOAP_PROXY_PORT environment variable must be an integer.")

    def get_app_reload(self) -> bool:
        """Returns True if uvicorn should run with auto-reload."""
        return os.getenv("SOAP_PROXY_RELOAD", "false").lower() == "true"

    def get_admin_enabled(self) -> bool:
        """Returns True if the runtime configuration endpoints under /_proxy are served.

        They share the proxy listener, so they are off unless explicitly enabled.
        """
        return os.getenv("SOAP_PROXY_ADMIN_ENABLED", "false").lower() == "true"

    # --- Routing Settings ---
    def get_context_path(self) -> str:
        """Returns the path prefix the proxy is mounted under, without a trailing slash.

        The prefix is stripped from inbound paths before they are appended to a
        header-supplied destination.
        """
        context_path = os.getenv("SOAP_PROXY_CONTEXT_PATH", "").strip()
        if context_path and not context_path.startswith("/"):
            context_path = "/" + context_path
        return context_path.rstrip("/")

    # --- Proxy Configuration Source ---
    def get_proxy_config_file(self) -> str:
        """Returns the path of the properties file holding ProxyConfig values."""
        return os.getenv("SOAP_PROXY_CONFIG_FILE", "proxy.env")

    # --- Logging Settings ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()

    def get_loki_url(self) -> str | None:
        """Returns the Loki push endpoint base URL, if set."""
        return os.getenv("LOKI_URL")
