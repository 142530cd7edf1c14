import hashlib

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PASSWORD_HASH = hashlib.sha256(b"fitmemory2024").hexdigest()


def _split_csv(raw_value: str) -> list[str]:
    return [part.strip() for part in raw_value.split(",") if part.strip()]


def _normalize_env(raw_value: str) -> str:
    normalized = raw_value.strip().lower()
    return "production" if normalized == "production" else "development"


def _is_permissive_origin(value: str) -> bool:
    normalized = value.strip().lower()
    if not normalized:
        return False
    if normalized == "*":
        return True
    return "://*" in normalized


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "info"

    # CORS
    CORS_ALLOW_ORIGINS: str = ""

    # Database
    DATABASE_URL: str = ""
    DB_STATEMENT_TIMEOUT_MS: int = 5000
    DB_SLOW_QUERY_MS: int = 300

    # Auth
    AUTH_SESSION_SECRET: str
    AUTH_PASSWORD_HASH: str = DEFAULT_PASSWORD_HASH
    SESSION_COOKIE_NAME: str = "fitmemory-session"
    REFRESH_COOKIE_NAME: str = "fitmemory-refresh"
    SESSION_MAX_AGE_SEC: int = 2592000  # 30 days

    # Streak
    STREAK_TIMEZONE: str = "UTC"
    STREAK_RECORD_ID: str = "local"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def env_mode(self) -> str:
        return _normalize_env(self.APP_ENV)

    def is_production(self) -> bool:
        return self.env_mode() == "production"

    def get_cors_allow_origins(self) -> list[str]:
        configured = _split_csv(self.CORS_ALLOW_ORIGINS)
        if configured:
            if self.is_production() and any(_is_permissive_origin(origin) for origin in configured):
                raise ValueError("Permissive CORS origin is not allowed in production")
            return configured

        if self.is_production():
            return []

        return [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ]

    def get_session_max_age_sec(self) -> int:
        return max(1, int(self.SESSION_MAX_AGE_SEC))


settings = Settings()
