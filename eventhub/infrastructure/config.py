# eventhub/infrastructure/config.py

import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite+pysqlite:///./eventhub.db")


def sqlite_busy_timeout_seconds() -> float:
    return float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30"))


def mock_payments_enabled() -> bool:
    return _env_flag("ENABLE_MOCK_PAYMENTS")


def razorpay_credentials() -> tuple[str, str] | None:
    key_id = os.getenv("RAZORPAY_KEY_ID")
    key_secret = os.getenv("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        return None
    return key_id, key_secret


def payment_currency() -> str:
    return os.getenv("PAYMENT_CURRENCY", "INR").upper()


def service_fee_percent() -> int:
    return int(os.getenv("SERVICE_FEE_PERCENT", "10"))


def reservation_ttl_seconds() -> int:
    # 0 keeps pending bookings (and their held inventory) forever.
    return int(os.getenv("RESERVATION_TTL_SECONDS", "900"))


def mock_payment_delay_seconds() -> float:
    return float(os.getenv("MOCK_PAYMENT_DELAY_SECONDS", "0"))


def seed_demo_data_enabled() -> bool:
    return _env_flag("SEED_DEMO_DATA", "true")


def is_development() -> bool:
    return os.getenv("APP_ENV", "production").lower() == "development"


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
