import os
from typing import Callable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from soap_proxy.config.proxy_config import ProxyConfig
from soap_proxy.config.store import ProxyConfigStore
from soap_proxy.core.dependency_container import DependencyContainer
from soap_proxy.main import create_app
from soap_proxy.settings import Settings

SOAP_11_NS = "http://schemas.xmlsoap.org/soap/envelope/"
WSA_NS = "http://www.w3.org/2005/08/addressing"
WSCOOR_NS = "http://docs.oasis-open.org/ws-tx/wscoor/2006/06"
WSAT_NS = "http://docs.oasis-open.org/ws-tx/wsat/2006/06"
WSSE_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"

DEFAULT_BODY = '<bank:transfer xmlns:bank="urn:example:bank"><bank:amount>100</bank:amount></bank:transfer>'


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path):
    """AUTOUSE: Removes proxy settings from the environment and points the
    properties file at a path that does not exist, so every test starts from
    the built-in defaults. Restores the original environment afterwards.
    """
    original_environ = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("PROXY_") or key.startswith("SOAP_PROXY_"):
            del os.environ[key]
    os.environ["SOAP_PROXY_CONFIG_FILE"] = str(tmp_path / "missing-proxy.env")

    yield

    os.environ.clear()
    os.environ.update(original_environ)


@pytest.fixture
def make_envelope() -> Callable[..., bytes]:
    """Returns a builder for SOAP envelopes with the given header children and body content."""

    def _make_envelope(
        header_xml: Optional[str] = "", body_xml: str = DEFAULT_BODY, soap_ns: str = SOAP_11_NS
    ) -> bytes:
        header = "" if header_xml is None else f"<soap:Header>{header_xml}</soap:Header>"
        return (
            f'<soap:Envelope xmlns:soap="{soap_ns}" xmlns:wsa="{WSA_NS}" '
            f'xmlns:wscoor="{WSCOOR_NS}" xmlns:wsat="{WSAT_NS}" xmlns:wsse="{WSSE_NS}">'
            f"{header}<soap:Body>{body_xml}</soap:Body></soap:Envelope>"
        ).encode("utf-8")

    return _make_envelope


class RecordingUpstream:
    """Stands in for the destination service behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.headers = {"content-type": "text/xml; charset=utf-8"}
        self.body = f'<soap:Envelope xmlns:soap="{SOAP_11_NS}"><soap:Body/></soap:Envelope>'.encode("utf-8")
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, content=self.body)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no outbound request was made"
        return self.requests[-1]


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def mock_http_client(upstream: RecordingUpstream) -> httpx.AsyncClient:
    """A real httpx.AsyncClient whose transport answers from the upstream fixture."""
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream), follow_redirects=False)


@pytest.fixture
def proxy_config() -> ProxyConfig:
    return ProxyConfig()


@pytest.fixture
def config_store(proxy_config: ProxyConfig) -> ProxyConfigStore:
    return ProxyConfigStore(proxy_config)


@pytest.fixture
def mock_settings() -> MagicMock:
    """Provides a mock Settings instance."""
    settings = MagicMock(spec=Settings)
    settings.get_context_path.return_value = ""
    settings.get_proxy_config_file.return_value = "proxy.env"
    settings.get_log_level.return_value = "INFO"
    settings.get_loki_url.return_value = None
    settings.get_admin_enabled.return_value = False
    return settings


@pytest.fixture
def dependency_container(
    mock_settings: MagicMock, mock_http_client: httpx.AsyncClient, config_store: ProxyConfigStore
) -> DependencyContainer:
    return DependencyContainer(settings=mock_settings, http_client=mock_http_client, config_store=config_store)


@pytest.fixture
def client(mocker, dependency_container: DependencyContainer, mock_settings: MagicMock):
    """Pytest fixture for the FastAPI TestClient, runtime configuration routes disabled.

    The lifespan runs for real, with dependency initialization patched to hand
    back a container whose HTTP client talks to the upstream fixture.
    """
    mocker.patch(
        "soap_proxy.main.initialize_app_dependencies",
        new_callable=AsyncMock,
        return_value=dependency_container,
    )
    with TestClient(create_app(mock_settings)) as test_client:
        yield test_client


@pytest.fixture
def admin_client(mocker, dependency_container: DependencyContainer, mock_settings: MagicMock):
    """Like client, with SOAP_PROXY_ADMIN_ENABLED turned on."""
    mock_settings.get_admin_enabled.return_value = True
    mocker.patch(
        "soap_proxy.main.initialize_app_dependencies",
        new_callable=AsyncMock,
        return_value=dependency_container,
    )
    with TestClient(create_app(mock_settings)) as test_client:
        yield test_client
