import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
APP_NAME = os.getenv("APP_NAME", "Clinic Scheduling API")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

SESSION_DURATION_MINUTES = int(os.getenv("SESSION_DURATION_MINUTES", "60"))
MIN_BOOKING_HOURS = int(os.getenv("MIN_BOOKING_HOURS", "2"))
CALENDAR_DAYS = int(os.getenv("CALENDAR_DAYS", "14"))
MAX_CALENDAR_DAYS = int(os.getenv("MAX_CALENDAR_DAYS", "60"))
MAX_BOOKING_NOTES_LENGTH = int(os.getenv("MAX_BOOKING_NOTES_LENGTH", "600"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SESSION_DURATION_MINUTES <= 0:
        raise RuntimeError("SESSION_DURATION_MINUTES must be positive.")
    if CALENDAR_DAYS > MAX_CALENDAR_DAYS:
        raise RuntimeError("CALENDAR_DAYS cannot exceed MAX_CALENDAR_DAYS.")
