"""
Tests for configuration loading in tuido.
"""
import logging

import yaml
import pytest

from tuido.config import DEFAULT_CONFIG, load_config, setup_logging


def test_config_creation(tmp_path):
    """Test that default config is created when missing."""
    config_file = tmp_path / "tuido" / "config.yaml"
    config = load_config(config_file)
    assert config == DEFAULT_CONFIG
    assert config_file.exists()
    with config_file.open("r", encoding="utf-8") as f:
        assert yaml.safe_load(f) == DEFAULT_CONFIG


def test_config_loading(tmp_path):
    """Test that user values override the defaults and the rest are kept."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump({"data_file": "/srv/todos.json", "first_weekday": "monday"}),
                           encoding="utf-8")
    config = load_config(config_file)
    assert config["data_file"] == "/srv/todos.json"
    assert config["first_weekday"] == "monday"
    assert config["log_file"] == DEFAULT_CONFIG["log_file"]


@pytest.mark.parametrize("content", ["data_file: [unclosed", "- just\n- a list\n"])
def test_broken_config_falls_back_to_defaults(tmp_path, content, caplog):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(content, encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        config = load_config(config_file)
    assert config == DEFAULT_CONFIG
    assert "Error loading config file" in caplog.text


def test_empty_config_file_uses_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("", encoding="utf-8")
    assert load_config(config_file) == DEFAULT_CONFIG


def test_default_data_file_is_per_user():
    assert DEFAULT_CONFIG["data_file"].endswith("/.local/share/tdui/todos.json")


def test_setup_logging_passes_file_and_level(monkeypatch, tmp_path):
    seen = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: seen.update(kwargs))
    setup_logging({"log_file": str(tmp_path / "tuido.log"), "log_level": "warning"})
    assert seen["filename"] == str(tmp_path / "tuido.log")
    assert seen["level"] == logging.WARNING
