"""Application configuration classes and helpers."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Local development reads a .env file next to this module. Deployments should
# inject real environment variables instead.
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)


def _bool(value: str | None, default: bool = False) -> bool:
    """Parse environment flags such as "true", "1", "yes"."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y"}


def _split(value: str | None, default: Iterable[str]) -> list[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _database_url() -> str:
    """Prefer DATABASE_URL, else assemble a MySQL URL from the DB_* variables."""
    url = os.getenv("DATABASE_URL")
    if url:
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url
    host = os.getenv("DB_HOST")
    if not host:
        return "sqlite:///kumbam.db"
    user = quote_plus(os.getenv("DB_USER", ""))
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    port = os.getenv("DB_PORT", "3306")
    name = os.getenv("DB_NAME", "kumbam")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"


class BaseConfig:
    """Shared configuration defaults used by every environment."""

    APP_NAME = "KUMBAM"
    VERSION = "0.1.0"

    SECRET_KEY = os.getenv("SECRET_KEY", "please-change-me")
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json").lower()
    LOG_MASK_EMAILS = _bool(os.getenv("LOG_MASK_EMAILS"), default=True)
    REDACT_KEYS = _split(
        os.getenv("REDACT_KEYS"),
        ("password", "otp", "token", "Authorization", "SMTP_PASS"),
    )
    JSON_SORT_KEYS = False

    CORS_ORIGINS = _split(os.getenv("CORS_ORIGINS"), ("*",))
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", str(Path("uploads").resolve()))

    # One-time passcodes.
    OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "5"))
    OTP_PURGE_GRACE_MINUTES = int(os.getenv("OTP_PURGE_GRACE_MINUTES", "60"))
    # The login response historically carried the raw code. Turn this off once
    # every client reads the code from the email instead.
    OTP_ECHO_IN_LOGIN = _bool(os.getenv("OTP_ECHO_IN_LOGIN"), default=True)

    # Business failures answer HTTP 200 with success=false; only store and
    # unexpected failures answer 500. Disable to use per-error status codes.
    LEGACY_STATUS_CODES = _bool(os.getenv("LEGACY_STATUS_CODES"), default=True)

    PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "120000"))

    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", os.getenv("EMAIL_USER", ""))
    SMTP_PASS = os.getenv("SMTP_PASS", os.getenv("EMAIL_PASS", ""))
    SMTP_USE_TLS = _bool(os.getenv("SMTP_USE_TLS"), default=True)
    SMTP_USE_SSL = _bool(os.getenv("SMTP_USE_SSL"), default=False)
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "15"))
    EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER)
    MAIL_SUPPRESS_SEND = _bool(os.getenv("MAIL_SUPPRESS_SEND"), default=False)


class DevConfig(BaseConfig):
    """Development defaults with verbose logging."""

    DEBUG = True
    ENV = "development"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "plain").lower()


class ProdConfig(BaseConfig):
    """Production defaults focused on security."""

    DEBUG = False
    ENV = "production"
    OTP_ECHO_IN_LOGIN = _bool(os.getenv("OTP_ECHO_IN_LOGIN"), default=False)


class TestConfig(BaseConfig):
    """Isolated settings for the pytest suite."""

    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    LOG_LEVEL = "WARNING"
    LOG_FORMAT = "plain"
    MAIL_SUPPRESS_SEND = True
    EMAIL_FROM = "no-reply@kumbam.test"
    OTP_ECHO_IN_LOGIN = True
    LEGACY_STATUS_CODES = True
    PASSWORD_HASH_ROUNDS = 1000
