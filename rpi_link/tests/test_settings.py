import json

import pytest

from rpi_link.config import RpiLinkSettings, get_settings


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("RPI_LINK_CONFIG_FILE", "RPI_LINK_DEVICE_HOST", "RPI_LINK_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_match_device_behaviour():
    settings = RpiLinkSettings()

    assert settings.device_ws_url == "wss://localhost/ws"
    assert settings.settle_delay_seconds == 0.05
    assert settings.reconnect_base_delay_seconds == 15.0
    assert settings.send_max_retries == 10
    assert settings.send_retry_delay_seconds == 1.0
    assert settings.remote_error_cooldown_seconds == 5.0
    assert settings.connection_closed_cooldown_seconds == 10.0
    assert settings.response_timeout_seconds is None
    assert settings.config_path is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RPI_LINK_DEVICE_HOST", "pi.local:8443")
    monkeypatch.setenv("RPI_LINK_LOG_LEVEL", "debug")

    settings = RpiLinkSettings()

    assert settings.device_ws_url == "wss://pi.local:8443/ws"
    assert settings.log_level == "DEBUG"


def test_yaml_file_source(tmp_path, monkeypatch):
    config = tmp_path / "client.yaml"
    config.write_text("device_host: lab-pi\ndevice_scheme: ws\ndevice_path: socket\n", encoding="utf-8")
    monkeypatch.setenv("RPI_LINK_CONFIG_FILE", str(config))

    settings = RpiLinkSettings()

    assert settings.device_ws_url == "ws://lab-pi/socket"
    assert settings.config_path == config


def test_default_location_yml_is_found(tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "client.yml").write_text("send_max_retries: 3\n", encoding="utf-8")

    assert RpiLinkSettings().send_max_retries == 3


def test_explicit_json_file(tmp_path, monkeypatch):
    config = tmp_path / "client.json"
    config.write_text(json.dumps({"transport": "loopback"}), encoding="utf-8")
    monkeypatch.setenv("RPI_LINK_CONFIG_FILE", str(config))

    assert RpiLinkSettings().transport == "loopback"


def test_invalid_file_is_reported(tmp_path, monkeypatch):
    config = tmp_path / "client.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("RPI_LINK_CONFIG_FILE", str(config))

    with pytest.raises(ValueError):
        RpiLinkSettings()


def test_get_settings_is_memoized_and_resolves_download_dir(tmp_path):
    settings = get_settings()

    assert settings is get_settings()
    assert settings.download_dir == (tmp_path / "downloads").resolve()
