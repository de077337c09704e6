import logging
from unittest.mock import MagicMock

import pytest
from soap_proxy.config.loader import (
    CONFIG_KEYS,
    build_proxy_config,
    load_proxy_config,
    read_properties_file,
)
from soap_proxy.config.proxy_config import ProxyConfig


def test_no_sources_gives_defaults():
    assert build_proxy_config({}, {}) == ProxyConfig()


def test_every_field_has_a_key():
    assert set(CONFIG_KEYS) == set(ProxyConfig.model_fields)


def test_properties_file_values_apply():
    properties = {
        "PROXY_REMOVE_WSAT_ELEMENTS": "false",
        "PROXY_ALLOW_RESTRICTED_HEADERS": "true",
        "PROXY_CONNECTION_TIMEOUT_MS": "1500",
    }

    config = build_proxy_config(properties, {})

    assert config.remove_wsat_elements is False
    assert config.allow_restricted_headers is True
    assert config.connect_timeout_ms == 1500
    assert config.remove_coordination_context is True


def test_environment_wins_over_properties_file():
    properties = {"PROXY_LOGGING_DETAILED": "false", "PROXY_SOCKET_TIMEOUT_MS": "1000"}
    overrides = {"PROXY_LOGGING_DETAILED": "true", "PROXY_SOCKET_TIMEOUT_MS": "2000"}

    config = build_proxy_config(properties, overrides)

    assert config.detailed_logging is True
    assert config.socket_timeout_ms == 2000


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("TRUE", True), (" True ", True), ("false", False), ("yes", False), ("1", False), ("", False)],
)
def test_boolean_parsing(raw, expected):
    config = build_proxy_config({}, {"PROXY_REMOVE_TRANSACTION_ELEMENTS": raw})

    assert config.remove_transaction_elements is expected


def test_invalid_environment_integer_falls_back_to_properties_file(caplog):
    caplog.set_level(logging.WARNING, logger="soap_proxy.config.loader")

    config = build_proxy_config({"PROXY_CONNECTION_TIMEOUT_MS": "4000"}, {"PROXY_CONNECTION_TIMEOUT_MS": "soon"})

    assert config.connect_timeout_ms == 4000
    assert "Invalid number format for PROXY_CONNECTION_TIMEOUT_MS" in caplog.text


@pytest.mark.parametrize("raw", ["0", "-250", "ten"])
def test_invalid_integer_everywhere_keeps_default(raw):
    config = build_proxy_config({"PROXY_SOCKET_TIMEOUT_MS": raw}, {"PROXY_SOCKET_TIMEOUT_MS": raw})

    assert config.socket_timeout_ms == 30000


def test_environment_overrides_are_logged(caplog):
    caplog.set_level(logging.INFO, logger="soap_proxy.config.loader")

    build_proxy_config({}, {"PROXY_REMOVE_WSAT_ELEMENTS": "false", "UNRELATED": "x"})

    assert "Environment overrides applied: PROXY_REMOVE_WSAT_ELEMENTS=false" in caplog.text
    assert "UNRELATED" not in caplog.text


def test_read_properties_file_missing(tmp_path):
    assert read_properties_file(str(tmp_path / "nope.env")) == {}


def test_read_properties_file(tmp_path):
    path = tmp_path / "proxy.env"
    path.write_text(
        "# proxy settings\n"
        "PROXY_REMOVE_COORDINATION_CONTEXT=false\n"
        "PROXY_SOCKET_TIMEOUT_MS=12000\n"
        "EMPTY_KEY\n"
    )

    values = read_properties_file(str(path))

    assert values == {"PROXY_REMOVE_COORDINATION_CONTEXT": "false", "PROXY_SOCKET_TIMEOUT_MS": "12000"}


def test_load_proxy_config_layers_file_and_environment(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="soap_proxy.config.loader")
    path = tmp_path / "proxy.env"
    path.write_text("PROXY_REMOVE_WSAT_ELEMENTS=false\nPROXY_CONNECTION_TIMEOUT_MS=3000\n")
    settings = MagicMock()
    settings.get_proxy_config_file.return_value = str(path)

    config = load_proxy_config(settings, environ={"PROXY_CONNECTION_TIMEOUT_MS": "6000"})

    assert config.remove_wsat_elements is False
    assert config.connect_timeout_ms == 6000
    assert "Proxy configuration: " in caplog.text
    assert "connect_timeout_ms=6000" in caplog.text


def test_load_proxy_config_reads_process_environment(monkeypatch, mock_settings):
    mock_settings.get_proxy_config_file.return_value = "/does/not/exist.env"
    monkeypatch.setenv("PROXY_ALLOW_RESTRICTED_HEADERS", "true")

    config = load_proxy_config(mock_settings)

    assert config.allow_restricted_headers is True
