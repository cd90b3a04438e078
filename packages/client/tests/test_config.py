"""Tests for configuration loading."""

import pytest
import structlog
import yaml

from logbook_client.config import ClientConfig, load_config
from logbook_client.main import configure_logging


def test_load_config_from_yaml(tmp_path):
    config_data = {
        "api": {"url": "https://logbook.example.com", "token_env": "MY_TOKEN"},
        "state": {"db_path": "/var/lib/logbook/state.db"},
        "logging": {"level": "debug", "format": "json"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config_data))

    cfg = load_config(path)
    assert cfg.api.url == "https://logbook.example.com"
    assert cfg.api.token_env == "MY_TOKEN"
    assert cfg.state.db_path == "/var/lib/logbook/state.db"
    assert cfg.logging.format == "json"


def test_load_config_defaults():
    cfg = ClientConfig()
    assert cfg.api.url == "http://localhost:8000"
    assert cfg.state.db_path == "./data/logbook_client.db"
    assert cfg.logging.level == "warning"


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == ClientConfig()


def test_token_read_from_environment(monkeypatch):
    cfg = ClientConfig()
    monkeypatch.delenv("LOGBOOK_TOKEN", raising=False)
    assert cfg.api.token is None
    monkeypatch.setenv("LOGBOOK_TOKEN", "secret")
    assert cfg.api.token == "secret"


def test_invalid_log_format_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.dump({"logging": {"format": "xml"}}))
    with pytest.raises(Exception):
        load_config(path)


def test_load_config_file_not_found():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/path.yaml")


@pytest.mark.parametrize("fmt", ["text", "json"])
def test_configure_logging_writes_to_stderr(capsys, fmt):
    configure_logging("debug", fmt)
    structlog.get_logger().debug("client.config_loaded", api_url="http://localhost:8000")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "client.config_loaded" in captured.err
