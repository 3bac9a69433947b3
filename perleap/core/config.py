from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    jwt_secret: str
    jwt_audience: str
    openai_api_key: str | None
    openai_base_url: str
    chat_model: str
    assessment_model: str
    llm_timeout_seconds: float
    exempt_activity_pattern: str

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)


def _parse_bool(name: str, raw: str) -> bool:
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("", "0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")
    timeout_raw = _getenv("LLM_TIMEOUT_SECONDS", "60")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        llm_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"LLM_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if llm_timeout <= 0:
        raise ValueError(f"LLM_TIMEOUT_SECONDS must be positive (got {llm_timeout})")

    jwt_secret = _getenv("JWT_SECRET", "")
    if not jwt_secret:
        if app_env_raw == "prod":
            raise ValueError("JWT_SECRET is required when APP_ENV=prod")
        # Tokens signed with an ephemeral secret die with the process.
        jwt_secret = secrets.token_urlsafe(32)

    exempt_pattern = _getenv("EXEMPT_ACTIVITY_PATTERN", "perleap").lower()
    if not exempt_pattern:
        raise ValueError("EXEMPT_ACTIVITY_PATTERN must be non-empty")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_parse_bool("LOG_JSON", log_json_raw),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        jwt_secret=jwt_secret,
        jwt_audience=_getenv("JWT_AUDIENCE", "authenticated"),
        openai_api_key=_getenv("OPENAI_API_KEY", "") or None,
        openai_base_url=_getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        chat_model=_getenv("CHAT_MODEL", "gpt-4o-mini"),
        assessment_model=_getenv("ASSESSMENT_MODEL", "gpt-4.1"),
        llm_timeout_seconds=llm_timeout,
        exempt_activity_pattern=exempt_pattern,
    )


SETTINGS = load_settings()
