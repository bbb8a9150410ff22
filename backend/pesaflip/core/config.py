"""Application configuration with security-first defaults.

Environment variables override all defaults.
CRITICAL: JWT_SECRET must be set in .env - will fail fast if missing in production.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load backend/.env for local development; real env vars win
_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pesaflip.db")

    # JWT Security - CRITICAL
    JWT_SECRET: str = os.getenv("JWT_SECRET", None)
    if not JWT_SECRET:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if ENVIRONMENT == "production":
            raise ValueError(
                "CRITICAL: JWT_SECRET must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "JWT_SECRET not set in environment. Using development default. "
            "Set JWT_SECRET in .env to a strong random value before deploying.",
            RuntimeWarning
        )
        JWT_SECRET = "development-only-weak-default-change-in-production"

    JWT_ALGORITHM: str = "HS256"
    # Dashboard sessions last a week
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))
    AUTH_COOKIE_NAME: str = "token"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _env_list("CORS_ORIGINS", [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])
    ALLOWED_HOSTS: List[str] = _env_list("ALLOWED_HOSTS", [
        "localhost",
        "127.0.0.1",
        "testserver",
    ])

    # Cookies
    SECURE_COOKIES: bool = ENVIRONMENT == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Password Policy
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))
    REQUIRE_NUMBERS: bool = True

    # Groq API Key (Must be set via .env, never in code)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

    # EmailJS (invoice reminders)
    EMAILJS_SERVICE_ID: str = os.getenv("EMAILJS_SERVICE_ID", "")
    EMAILJS_TEMPLATE_ID: str = os.getenv("EMAILJS_TEMPLATE_ID", "")
    EMAILJS_PUBLIC_KEY: str = os.getenv("EMAILJS_PUBLIC_KEY", "")
    EMAILJS_PRIVATE_KEY: str = os.getenv("EMAILJS_PRIVATE_KEY", "")
    EMAILJS_API_URL: str = os.getenv("EMAILJS_API_URL", "https://api.emailjs.com/api/v1.0/email/send")

    # Reminder job
    REMINDER_SCHEDULER_ENABLED: bool = _env_bool("REMINDER_SCHEDULER_ENABLED", False)
    REMINDER_INTERVAL_SECONDS: int = int(os.getenv("REMINDER_INTERVAL_SECONDS", "86400"))
    REMINDER_DAYS_AHEAD: int = int(os.getenv("REMINDER_DAYS_AHEAD", "3"))

    # Seeded admin account
    ADMIN_PHONE_NUMBER: str = os.getenv("ADMIN_PHONE_NUMBER", "+254700000000")

    # Business defaults (Kenya)
    CURRENCY: str = os.getenv("CURRENCY", "KES")
    DEFAULT_TAX_RATE: Decimal = Decimal(os.getenv("DEFAULT_TAX_RATE", "16"))

    # Credit line
    CREDIT_LIMIT: Decimal = Decimal(os.getenv("CREDIT_LIMIT", "500000"))
    CREDIT_INTEREST_RATE: Decimal = Decimal(os.getenv("CREDIT_INTEREST_RATE", "13.5"))
    MIN_LOAN_AMOUNT: Decimal = Decimal(os.getenv("MIN_LOAN_AMOUNT", "5000"))
    BASE_CREDIT_SCORE: int = int(os.getenv("BASE_CREDIT_SCORE", "700"))


settings = Settings()
