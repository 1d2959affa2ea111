from opsdash.config import AppConfig, get_config, reset_config


def test_defaults(monkeypatch, tmp_path):
    for name in ("OPSDASH_DATABASE_URL", "DATABASE_URL", "OPSDASH_API_URL", "OLLAMA_ENABLED", "GOOGLE_CLIENT_ID"):
        monkeypatch.delenv(name, raising=False)
    cfg = AppConfig.from_env()
    assert cfg.database_url.startswith("sqlite:///")
    assert cfg.api_url == "http://localhost:8000"
    assert cfg.onboarding_timeout == 35.0
    assert cfg.max_description_chars == 3000
    assert cfg.ollama_enabled is True
    assert cfg.google_client_id is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("OPSDASH_DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("DATABASE_URL", "postgresql://ignored")
    monkeypatch.setenv("OPSDASH_API_URL", "http://api:9000/")
    monkeypatch.setenv("OPSDASH_ONBOARDING_TIMEOUT", "not-a-number")
    monkeypatch.setenv("OLLAMA_ENABLED", "off")
    monkeypatch.setenv("OPSDASH_LOG_LEVEL", "debug")
    cfg = AppConfig.from_env()
    assert cfg.database_url == "sqlite:///:memory:"
    assert cfg.api_url == "http://api:9000"
    assert cfg.onboarding_timeout == 35.0
    assert cfg.ollama_enabled is False
    assert cfg.log_level == "DEBUG"


def test_get_config_is_cached(monkeypatch):
    reset_config()
    monkeypatch.setenv("OPSDASH_API_URL", "http://one")
    first = get_config()
    monkeypatch.setenv("OPSDASH_API_URL", "http://two")
    assert get_config() is first
    reset_config()
    assert get_config().api_url == "http://two"
    reset_config()
