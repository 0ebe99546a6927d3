# digital_menu/config.py
from functools import lru_cache
from pathlib import Path
from typing import Literal

from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env sits at the project root, next to pyproject.toml
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"


class Settings(BaseSettings):
    APP_ENV: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Public base URL, used to build shareable menu links (QR info)
    APP_URL: str | None = None

    # ---- database ----
    DATABASE_URL: str | None = None  # overrides the DB_* parts below
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_NAME: str = "digital_menu"
    DB_USER: str = "root"
    DB_PASSWORD: str | None = None

    # ---- sessions ----
    JWT_SECRET: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "session"
    SESSION_MAX_AGE_DAYS: int = 30
    COOKIE_DOMAIN: str | None = None

    # ---- verification codes ----
    VERIFICATION_CODE_TTL_MINUTES: int = 30

    # ---- email ----
    EMAIL_BACKEND: Literal["smtp", "resend", "console"] = "smtp"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 1025
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str = "noreply@digital-menu.local"
    RESEND_API_KEY: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD or ''}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )

    @property
    def cookie_secure(self) -> bool:
        return self.APP_ENV == "production"


@lru_cache
def get_settings() -> "Settings":
    return Settings()


def get_app_settings(request: Request) -> Settings:
    # the instance create_app() was built with
    return request.app.state.settings
