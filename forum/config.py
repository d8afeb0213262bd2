import os

from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///forum.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # A second writer waits this long for the lock before the store gives up.
    STORE_BUSY_TIMEOUT_SECONDS = _env_float("STORE_BUSY_TIMEOUT_SECONDS", 5.0)
    STORE_WRITE_RETRIES = _env_int("STORE_WRITE_RETRIES", 2)
    STORE_RETRY_DELAY_SECONDS = _env_float("STORE_RETRY_DELAY_SECONDS", 0.05)

    SESSION_LIFETIME_HOURS = _env_int("SESSION_LIFETIME_HOURS", 24)
    AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "session_token")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

    PASSWORD_MIN_LENGTH = _env_int("PASSWORD_MIN_LENGTH", 8)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
