"""Runtime configuration for the dashboard API and UI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ClassVar, Optional

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def env_setting(name: str, default: Any = None, cast: Callable[[str], Any] = str) -> Any:
    """Stripped env value converted with `cast`; unset, blank or unparseable -> default."""
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


def env_flag(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class AppConfig:
    """Configuration shared by the REST service and the Streamlit pages.

    DB selection:
    - OPSDASH_DATABASE_URL: dashboard-specific DB URL (preferred)
    - DATABASE_URL: shared DB URL
    - If neither is set, defaults to local SQLite at data/opsdash.db

    UI -> API:
    - OPSDASH_API_URL: base URL of the REST service (default: http://localhost:8000)
    - OPSDASH_REQUEST_TIMEOUT: seconds per request (default: 15)
    - OPSDASH_ONBOARDING_TIMEOUT: wall-clock seconds the onboarding view waits
      for the completion stream before reverting (default: 35)

    Completion provider (Ollama via LangChain):
    - OLLAMA_ENABLED, OLLAMA_BASE_URL, OLLAMA_MODEL, OLLAMA_TEMPERATURE

    Calendar provider:
    - GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_CLIENT_URI (redirect URI)

    Logging:
    - OPSDASH_LOG_LEVEL (default: INFO), OPSDASH_LOG_DIR (file logging when set)
    """

    database_url: str
    api_url: str
    request_timeout: float
    onboarding_timeout: float
    max_description_chars: int

    ollama_enabled: bool
    ollama_base_url: str
    ollama_model: str
    ollama_temperature: float

    google_client_id: Optional[str]
    google_client_secret: Optional[str]
    google_redirect_uri: Optional[str]

    log_level: str
    log_dir: Optional[str]

    DEFAULT_API_URL: ClassVar[str] = "http://localhost:8000"
    DEFAULT_OLLAMA_BASE_URL: ClassVar[str] = "http://localhost:11434"
    DEFAULT_OLLAMA_MODEL: ClassVar[str] = "llama3.1"

    @classmethod
    def from_env(cls) -> "AppConfig":
        db_url = env_setting("OPSDASH_DATABASE_URL") or env_setting("DATABASE_URL")
        if not db_url:
            data_dir = _repo_root() / "data"
            data_dir.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{(data_dir / 'opsdash.db').as_posix()}"

        return cls(
            database_url=db_url,
            api_url=env_setting("OPSDASH_API_URL", cls.DEFAULT_API_URL).rstrip("/"),
            request_timeout=max(1.0, env_setting("OPSDASH_REQUEST_TIMEOUT", 15.0, float)),
            onboarding_timeout=max(1.0, env_setting("OPSDASH_ONBOARDING_TIMEOUT", 35.0, float)),
            max_description_chars=max(1, env_setting("OPSDASH_MAX_DESCRIPTION_CHARS", 3000, int)),
            ollama_enabled=env_flag("OLLAMA_ENABLED", True),
            ollama_base_url=env_setting("OLLAMA_BASE_URL", cls.DEFAULT_OLLAMA_BASE_URL),
            ollama_model=env_setting("OLLAMA_MODEL", cls.DEFAULT_OLLAMA_MODEL),
            ollama_temperature=env_setting("OLLAMA_TEMPERATURE", 0.2, float),
            google_client_id=env_setting("GOOGLE_CLIENT_ID"),
            google_client_secret=env_setting("GOOGLE_CLIENT_SECRET"),
            google_redirect_uri=env_setting("GOOGLE_CLIENT_URI"),
            log_level=env_setting("OPSDASH_LOG_LEVEL", "INFO").upper(),
            log_dir=env_setting("OPSDASH_LOG_DIR"),
        )


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the app configuration (cached)."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
