"""Tests for configuration loading and :class:`MonitorSettings`."""

from __future__ import annotations

import math

import pytest

from ocular_monitor.configuration import CONFIG_ENV_VAR, load_config, load_project_config
from ocular_monitor.errors import ConfigurationError
from ocular_monitor.settings import DEFAULT_PREDICTION_PATH, MonitorSettings


PYPROJECT = """
[project]
name = "clinic"

[tool.ocular_monitor.sources]
telemetry_url = "https://feeds.example.test/channels/1/feeds.json"
prediction_url = "/api/predict"
base_url = "http://127.0.0.1:8000/"

[tool.ocular_monitor.polling]
interval = 2.5
timeout = 4

[tool.ocular_monitor.ranges."Tear Film"]
min = 8
"""


def test_load_config_reads_tool_section(pyproject_factory) -> None:
    path = pyproject_factory(PYPROJECT)

    config = load_config(path)

    assert config["_config_path"] == path.resolve()
    assert config["sources"]["base_url"] == "http://127.0.0.1:8000/"
    assert config["polling"] == {"interval": 2.5, "timeout": 4}


def test_load_config_accepts_directories(pyproject_factory, tmp_path) -> None:
    pyproject_factory(PYPROJECT)

    config = load_config(tmp_path)

    assert config["polling"]["interval"] == 2.5


def test_load_config_uses_environment(pyproject_factory, monkeypatch, tmp_path) -> None:
    path = pyproject_factory(PYPROJECT)
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_config()["sources"]["prediction_url"] == "/api/predict"


def test_load_config_without_files_is_empty(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    assert load_config() == {"_config_path": None}


def test_explicit_path_without_section_is_an_error(pyproject_factory) -> None:
    path = pyproject_factory('[project]\nname = "other"\n')

    with pytest.raises(ConfigurationError):
        load_config(path)
    with pytest.raises(ConfigurationError):
        load_config(path.parent / "missing.toml")


def test_standalone_toml_is_the_section(tmp_path) -> None:
    path = tmp_path / "monitor.toml"
    path.write_text('[sources]\ntelemetry_url = "https://example.test/feed"\n', encoding="utf8")

    loaded = load_project_config(path)

    assert loaded is not None
    payload, resolved = loaded
    assert payload == {"sources": {"telemetry_url": "https://example.test/feed"}}
    assert resolved == path.resolve()


def test_invalid_toml_is_a_configuration_error(tmp_path) -> None:
    path = tmp_path / "monitor.toml"
    path.write_text("[sources\n", encoding="utf8")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_settings_from_config(pyproject_factory) -> None:
    settings = MonitorSettings.from_config(load_config(pyproject_factory(PYPROJECT)))

    assert settings.poll_interval == 2.5
    assert settings.timeout == 4.0
    assert settings.channel_count == 18
    assert settings.require_prediction_url() == "http://127.0.0.1:8000/api/predict"
    tear_film = settings.ranges["Tear Film"]
    assert tear_film.minimum == 8.0
    assert tear_film.maximum is None
    assert tear_film.unit == "s"
    assert settings.ranges["Oxygenation"].minimum == 95.0


def test_settings_defaults() -> None:
    settings = MonitorSettings.from_config({})

    assert settings.telemetry_url is None
    assert settings.prediction_url == DEFAULT_PREDICTION_PATH
    assert settings.poll_interval == 5.0
    assert settings.timeout == 10.0
    assert settings.delimiter == ","
    with pytest.raises(ConfigurationError):
        settings.require_telemetry_url()
    with pytest.raises(ConfigurationError):
        settings.require_prediction_url()


def test_settings_accept_flat_keys() -> None:
    settings = MonitorSettings.from_config(
        {"telemetry_url": "https://example.test/feed", "poll_interval": 3, "timeout": "7.5"}
    )

    assert settings.require_telemetry_url() == "https://example.test/feed"
    assert settings.poll_interval == 3.0
    assert settings.timeout == 7.5


def test_absolute_prediction_url_ignores_base() -> None:
    settings = MonitorSettings(
        prediction_url="https://predict.example.test/api/predict",
        base_url="http://127.0.0.1:8000",
    )

    assert settings.require_prediction_url() == "https://predict.example.test/api/predict"


@pytest.mark.parametrize(
    "config",
    [
        {"polling": {"interval": "fast"}},
        {"polling": {"interval": 0}},
        {"polling": {"timeout": -1}},
        {"polling": {"channel_count": 17}},
        {"polling": {"channel_count": True}},
        {"polling": {"delimiter": ""}},
        {"ranges": {"Pupil Size": {"min": 1}}},
        {"ranges": {"Hydration": 50}},
        {"ranges": {"Hydration": {"min": 70}}},
    ],
)
def test_invalid_settings_are_rejected(config) -> None:
    with pytest.raises(ConfigurationError):
        MonitorSettings.from_config(config)


def test_infinite_max_means_open_ended() -> None:
    settings = MonitorSettings.from_config({"ranges": {"Hydration": {"max": math.inf}}})

    hydration = settings.ranges["Hydration"]
    assert hydration.maximum is None
    assert hydration.contains(500.0)


def test_with_overrides_ignores_none() -> None:
    settings = MonitorSettings(telemetry_url="https://example.test/feed")

    updated = settings.with_overrides(poll_interval=1.5, timeout=None, base_url="http://host")

    assert updated.poll_interval == 1.5
    assert updated.timeout == settings.timeout
    assert updated.base_url == "http://host"
    assert updated.telemetry_url == settings.telemetry_url
    assert settings.poll_interval == 5.0
