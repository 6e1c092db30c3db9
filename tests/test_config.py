import logging

import pytest

from vault_tasks.config import ConfigError, load_config


def test_load_config_requires_vault_path(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert "VAULT_TASKS_VAULT_PATH" in str(excinfo.value)


def test_load_config_reads_env_with_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VAULT_TASKS_VAULT_PATH", str(tmp_path))

    config = load_config()

    assert config.vault_path == tmp_path.resolve()
    assert config.service_token is None
    assert config.log_level == logging.INFO
    assert config.log_file is None
    assert config.host == "127.0.0.1"
    assert config.port == 18170
    assert config.max_response_tokens == 15000


def test_load_config_reads_dotenv_relative_path(monkeypatch, tmp_path):
    service_root = tmp_path / "service"
    service_root.mkdir()
    (service_root / ".env").write_text(
        'VAULT_TASKS_VAULT_PATH="./vault"\n'
        "export VAULT_TASKS_SERVICE_TOKEN='s3cret'\n"
        "# VAULT_TASKS_PORT=1\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(service_root)

    config = load_config()

    assert config.vault_path == (service_root / "vault").resolve()
    assert config.vault_path.is_absolute()
    assert config.service_token == "s3cret"
    assert config.port == 18170


def test_load_config_prefers_env_over_dotenv(monkeypatch, tmp_path):
    env_root = tmp_path / "env"
    env_root.mkdir()
    dotenv_root = tmp_path / "dotenv"
    dotenv_root.mkdir()
    (tmp_path / ".env").write_text(
        f"VAULT_TASKS_VAULT_PATH={dotenv_root}\nVAULT_TASKS_PORT=9000\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("VAULT_TASKS_VAULT_PATH", str(env_root))
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.vault_path == env_root.resolve()
    assert config.port == 9000


def test_load_config_reads_service_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VAULT_TASKS_VAULT_PATH", str(tmp_path))
    monkeypatch.setenv("VAULT_TASKS_SERVICE_TOKEN", "  token  ")
    monkeypatch.setenv("VAULT_TASKS_LOG_LEVEL", "debug")
    monkeypatch.setenv("VAULT_TASKS_LOG_FILE", str(tmp_path / "logs" / "tasks.log"))
    monkeypatch.setenv("VAULT_TASKS_HOST", "0.0.0.0")
    monkeypatch.setenv("VAULT_TASKS_PORT", "8080")
    monkeypatch.setenv("VAULT_TASKS_MAX_RESPONSE_TOKENS", "500")

    config = load_config()

    assert config.service_token == "token"
    assert config.log_level == logging.DEBUG
    assert config.log_file == tmp_path / "logs" / "tasks.log"
    assert config.host == "0.0.0.0"
    assert config.port == 8080
    assert config.max_response_tokens == 500


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("VAULT_TASKS_PORT", "eighty"),
        ("VAULT_TASKS_PORT", "0"),
        ("VAULT_TASKS_MAX_RESPONSE_TOKENS", "-5"),
        ("VAULT_TASKS_LOG_LEVEL", "chatty"),
    ],
)
def test_load_config_rejects_invalid_values(monkeypatch, tmp_path, key, value):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VAULT_TASKS_VAULT_PATH", str(tmp_path))
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert key in str(excinfo.value)
