import pytest
from pydantic import ValidationError

from thinkcode.config import ExecutionSettings, load_config


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
database_url: sqlite://steps.db
execution:
  max_retries: 1
  backoff_base: 3
  fallback_to_mock: true
providers:
  - name: groq-free
    type: groq
    model: llama-3.1-8b-instant
    priority: 2
  - name: offline
    type: mock
    priority: 5
    enabled: false
"""
    )
    monkeypatch.setenv("THINKCODE_CONFIG", str(config_path))
    monkeypatch.delenv("THINKCODE_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config()
    assert config.database_url == "sqlite://steps.db"
    assert config.execution.max_retries == 1
    assert config.execution.backoff_base == 3
    assert config.execution.fallback_to_mock is True
    assert config.execution.temperature == 0.7
    assert [p.name for p in config.providers] == ["groq-free", "offline"]
    assert config.providers[1].enabled is False


def test_load_config_defaults_and_env_database(tmp_path, monkeypatch):
    monkeypatch.setenv("THINKCODE_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("THINKCODE_DATABASE_URL", "sqlite://override.db")

    config = load_config()
    assert config.database_url == "sqlite://override.db"
    assert config.execution.max_retries == 3
    assert config.execution.max_tokens == 2000
    assert config.providers == []


@pytest.mark.parametrize("field", ["max_retries", "backoff_base", "backoff_jitter"])
def test_execution_settings_reject_negative_values(field):
    with pytest.raises(ValidationError):
        ExecutionSettings(**{field: -1})


def test_negative_retries_in_yaml_are_rejected(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("execution:\n  max_retries: -1\n")

    with pytest.raises(ValidationError):
        load_config(str(config_path))
