from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    AUTH_JWT_SECRET: str
    AUTH_ACCESS_TTL_MIN: int = 15
    AUTH_REFRESH_TTL_DAYS: int = 7
    AUTH_BCRYPT_ROUNDS: int = 12
    AUTH_ISS: str = "tasklist-api"
    AUTH_AUD: str = "tasklist-clients"
    DATABASE_URL: str = "sqlite+aiosqlite:///./tasklist.db"
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    REFRESH_COOKIE_NAME: str = "RefreshToken"
    REFRESH_COOKIE_SECURE: bool = False
    REFRESH_COOKIE_SAMESITE: str = "lax"
    REFRESH_COOKIE_PATH: str = "/api/auth"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("AUTH_JWT_SECRET")
    @classmethod
    def _secret_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("AUTH_JWT_SECRET must not be empty")
        return value

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("dev", "development")


@lru_cache
def get_settings() -> Settings:
    # Raises at startup when AUTH_JWT_SECRET is missing.
    return Settings()
