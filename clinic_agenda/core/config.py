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

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_agenda.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

# Agenda grid. Slot size drives both the grid and the conflict window.
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))
AGENDA_DAY_START = os.getenv("AGENDA_DAY_START", "07:00")
AGENDA_DAY_END = os.getenv("AGENDA_DAY_END", "19:30")
DEFAULT_VIEW_MODE = os.getenv("DEFAULT_VIEW_MODE", "week")
MAX_RECURRENCE_WEEKS = int(os.getenv("MAX_RECURRENCE_WEEKS", "52"))

# Messaging gateway (WhatsApp delivery function).
WHATSAPP_FUNCTION_URL = os.getenv("WHATSAPP_FUNCTION_URL", "")
WHATSAPP_API_TOKEN = os.getenv("WHATSAPP_API_TOKEN", "")
WHATSAPP_TIMEOUT_SECONDS = float(os.getenv("WHATSAPP_TIMEOUT_SECONDS", "10"))
WHATSAPP_ENABLED = _get_bool(os.getenv("WHATSAPP_ENABLED"), default=bool(WHATSAPP_FUNCTION_URL))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_DURATION_MINUTES <= 0 or 60 % SLOT_DURATION_MINUTES != 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must divide an hour evenly.")
    if DEFAULT_VIEW_MODE not in {"day", "week"}:
        raise RuntimeError("DEFAULT_VIEW_MODE must be 'day' or 'week'.")
