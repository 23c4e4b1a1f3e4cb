import os

import pytest

from sheet_scanner.config import DEFAULT_MODEL, Settings, load_key, load_settings

ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_KEY_FILE",
    "GEMINI_MODEL",
    "GEMINI_API_BASE",
    "GEMINI_TIMEOUT_SECONDS",
    "APP_ENV",
    "NODE_ENV",
    "MAX_UPLOAD_MB",
    "UPLOAD_DIR",
    "HOST",
    "PORT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_KEY_FILE", str(tmp_path / "absent.key"))
    return str(tmp_path / "absent.env")


def test_defaults(clean_env):
    settings = load_settings(clean_env)

    assert settings.api_key is None
    assert settings.model_name == DEFAULT_MODEL
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert settings.max_upload_mb == 10
    assert settings.timeout_seconds == 120.0
    assert settings.is_development is False


def test_environment_overrides(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", " abc123 ")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-other")
    monkeypatch.setenv("GEMINI_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("MAX_UPLOAD_MB", "2")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "staging"))
    monkeypatch.setenv("APP_ENV", "Development")
    monkeypatch.setenv("PORT", "8080")

    settings = load_settings(clean_env)

    assert settings.api_key == "abc123"
    assert settings.model_name == "gemini-other"
    assert settings.timeout_seconds == 30.0
    assert settings.max_upload_bytes == 2 * 1024 * 1024
    assert settings.upload_dir.endswith("staging")
    assert settings.is_development is True
    assert settings.port == 8080


def test_node_env_alias_enables_development(clean_env, monkeypatch):
    monkeypatch.setenv("NODE_ENV", "development")

    assert load_settings(clean_env).is_development is True


def test_dotenv_file_is_read(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-dotenv\nGEMINI_MODEL=gemini-dotenv\n")

    try:
        settings = load_settings(str(env_file))
    finally:
        # load_dotenv writes into os.environ.
        os.environ.pop("GEMINI_API_KEY", None)
        os.environ.pop("GEMINI_MODEL", None)

    assert settings.api_key == "from-dotenv"
    assert settings.model_name == "gemini-dotenv"


def test_key_file_fallback(clean_env, tmp_path):
    key_file = tmp_path / "gemini.key"
    key_file.write_text("from-file\n")

    assert load_key(str(key_file)) == "from-file"
    assert load_key(str(tmp_path / "missing.key")) is None


def test_invalid_number_raises(clean_env, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_MB", "ten")

    with pytest.raises(ValueError):
        load_settings(clean_env)


def test_settings_are_immutable():
    settings = Settings()

    with pytest.raises(Exception):
        settings.api_key = "changed"
