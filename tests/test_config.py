"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from tandem.config import TandemConfig
from tandem.core.env import get_config, load_env


def test_defaults_without_environment():
    cfg = TandemConfig.load({})

    assert cfg.scheduler.default_concurrency == 4
    assert cfg.scheduler.mode == "fail_fast"
    assert cfg.system.log_level == "INFO"
    assert cfg.system.log_format == "plain"
    assert cfg.system.log_include_trace is False


def test_environment_overrides():
    cfg = TandemConfig.load(
        {
            "TANDEM_CONCURRENCY": "8",
            "TANDEM_SCHEDULER_MODE": "DRAIN",
            "TANDEM_LOG_LEVEL": "debug",
            "TANDEM_LOG_FORMAT": "JSON",
            "TANDEM_LOG_INCLUDE_TRACE": "yes",
            "UNRELATED": "ignored",
        }
    )

    assert cfg.scheduler.default_concurrency == 8
    assert cfg.scheduler.mode == "drain"
    assert cfg.system.log_level == "DEBUG"
    assert cfg.system.log_format == "json"
    assert cfg.system.log_include_trace is True


@pytest.mark.parametrize(
    "env",
    [
        {"TANDEM_CONCURRENCY": "0"},
        {"TANDEM_CONCURRENCY": "many"},
        {"TANDEM_SCHEDULER_MODE": "eventually"},
        {"TANDEM_LOG_LEVEL": "LOUD"},
        {"TANDEM_LOG_FORMAT": "xml"},
    ],
)
def test_invalid_values_rejected(env):
    with pytest.raises(ValidationError):
        TandemConfig.load(env)


def test_load_env_reads_dotenv_file(tmp_path, monkeypatch):
    dotenv = tmp_path / ".env"
    dotenv.write_text("TANDEM_CONCURRENCY=7\nTANDEM_SCHEDULER_MODE=drain\n")
    # Record the variables so monkeypatch removes what load_dotenv sets.
    for name in ("TANDEM_CONCURRENCY", "TANDEM_SCHEDULER_MODE"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)

    cfg = load_env(dotenv, reload_config=True)

    assert cfg.scheduler.default_concurrency == 7
    assert cfg.scheduler.mode == "drain"


def test_load_env_keeps_existing_variables(tmp_path, monkeypatch):
    dotenv = tmp_path / ".env"
    dotenv.write_text("TANDEM_CONCURRENCY=7\n")
    monkeypatch.setenv("TANDEM_CONCURRENCY", "2")

    cfg = load_env(dotenv, reload_config=True)

    assert cfg.scheduler.default_concurrency == 2


def test_load_env_without_reload_returns_global_config(tmp_path):
    assert load_env(tmp_path / "missing.env") is get_config()
