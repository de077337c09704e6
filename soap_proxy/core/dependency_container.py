# Dependency Injection Container.

import httpx

from soap_proxy.config.store import ProxyConfigStore
from soap_proxy.proxy.forwarding import ForwardingClient
from soap_proxy.settings import Settings


class DependencyContainer:
    """Holds shared dependencies for the application.

    Everything a request handler needs from outside the request itself lives here,
    which keeps handlers free of globals and lets tests swap in a mock transport.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        config_store: ProxyConfigStore,
    ) -> None:
        """
        Initializes the container.

        Args:
            settings: Process settings.
            http_client: Shared asynchronous HTTP client for outbound calls.
            config_store: Holder of the current ProxyConfig snapshot.
        """
        self.settings = settings
        self.http_client = http_client
        self.config_store = config_store
        self.forwarding_client = ForwardingClient(http_client)
