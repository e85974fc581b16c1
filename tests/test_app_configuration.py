from pathlib import Path

import pytest

from modsentry.configuration.app_configuration import AppConfig

CONFIG_YAML = """
ai_settings:
  base_url: "http://localhost:8000/v1"
  api_key_env: "TEST_CLASSIFIER_KEY"
  model_name: "test-model"
  request_timeout_seconds: 5
  max_concurrent_classifications: 0
enforcement:
  action_timeout_seconds: 3
audit:
  write_attempts: 5
  retry_backoff_seconds: 0.5
dashboard:
  enabled: false
  port: 8080
database:
  path: "./somewhere/test.db"
"""


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path, monkeypatch) -> None:
    config_path.write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setenv("TEST_CLASSIFIER_KEY", "sk-test")

    config = AppConfig(config_path)

    ai_settings = config.ai_settings
    assert ai_settings.base_url == "http://localhost:8000/v1"
    assert ai_settings.api_key == "sk-test"
    assert ai_settings.model_name == "test-model"
    assert ai_settings.request_timeout_seconds == pytest.approx(5.0)
    assert ai_settings.max_completion_tokens == 500
    assert ai_settings.max_concurrent_classifications == 1
    assert config.enforcement.action_timeout_seconds == pytest.approx(3.0)
    assert config.enforcement.ban_history_lookback_seconds == 86400
    assert config.audit.write_attempts == 5
    assert config.dashboard.enabled is False
    assert config.dashboard.port == 8080
    assert config.database.path.name == "test.db"


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.ai_settings.model_name == "gpt-5-mini"
    assert config.ai_settings.prompt_template is None
    assert config.audit.write_attempts == 3
    assert config.dashboard.port == 5000
    assert config.dashboard.recent_logs_default_limit == 5
    assert config.database.path.name == "app.db"


@pytest.mark.parametrize("content", ["ai_settings: [unclosed", "- just\n- a list\n"])
def test_app_config_malformed_file_returns_defaults(config_path: Path, content: str) -> None:
    config_path.write_text(content, encoding="utf-8")

    config = AppConfig(config_path)

    assert config.data == {}
    assert config.enforcement.action_timeout_seconds == pytest.approx(10.0)


def test_app_config_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("dashboard:\n  port: 1\n", encoding="utf-8")
    config = AppConfig(config_path)
    assert config.dashboard.port == 1

    config_path.write_text("dashboard:\n  port: 2\n", encoding="utf-8")
    config.reload()

    assert config.dashboard.port == 2
    assert config.get("dashboard") == {"port": 2}
