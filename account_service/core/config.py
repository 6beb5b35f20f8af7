import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET = "change-me"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
SERVER_NAME = os.getenv("SERVER_NAME", "Account Service")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = _get_bool(os.getenv("RELOAD"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./account_service.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEFAULT_SECRET)
JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "")
JWT_RESET_SECRET_KEY = os.getenv("JWT_RESET_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_EXPIRES_MINUTES = int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES", "60"))
JWT_REFRESH_EXPIRES_MINUTES = int(os.getenv("JWT_REFRESH_EXPIRES_MINUTES", str(60 * 24 * 30)))
JWT_RESET_EXPIRES_MINUTES = int(os.getenv("JWT_RESET_EXPIRES_MINUTES", "10"))

OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
OTP_EXPIRES_MINUTES = int(os.getenv("OTP_EXPIRES_MINUTES", "10"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS = _get_bool(os.getenv("SMTP_USE_TLS"), default=True)
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@localhost")


@dataclass(frozen=True)
class PurposeSettings:
    secret_key: str
    expires_minutes: int


@dataclass(frozen=True)
class TokenSettings:
    """Signing configuration for every token purpose, fixed at startup."""

    algorithm: str
    access: PurposeSettings
    refresh: PurposeSettings
    reset: PurposeSettings


def load_token_settings() -> TokenSettings:
    if not JWT_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY must be set.")
    return TokenSettings(
        algorithm=JWT_ALGORITHM,
        access=PurposeSettings(JWT_SECRET_KEY, JWT_ACCESS_EXPIRES_MINUTES),
        refresh=PurposeSettings(JWT_REFRESH_SECRET_KEY or JWT_SECRET_KEY, JWT_REFRESH_EXPIRES_MINUTES),
        reset=PurposeSettings(JWT_RESET_SECRET_KEY or JWT_SECRET_KEY, JWT_RESET_EXPIRES_MINUTES),
    )


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == DEFAULT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    load_token_settings()
