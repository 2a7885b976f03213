"""Runtime configuration, read from the environment with development defaults"""
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Auth collaborator (set BOOKING_SECRET_KEY in every real deployment)
SECRET_KEY = os.getenv("BOOKING_SECRET_KEY", "dev-only-secret-key-change-me")
ALGORITHM = os.getenv("BOOKING_JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("BOOKING_TOKEN_EXPIRE_MINUTES", "30"))

# Upper bound for any single availability store call
STORE_TIMEOUT_SECONDS = float(os.getenv("BOOKING_STORE_TIMEOUT_SECONDS", "2.0"))

CURRENCY = os.getenv("BOOKING_CURRENCY", "USD")

LOG_LEVEL = os.getenv("BOOKING_LOG_LEVEL", "INFO")
LOG_JSON = _env_bool("BOOKING_LOG_JSON", False)

SEED_DEMO_DATA = _env_bool("BOOKING_SEED_DEMO_DATA", True)
