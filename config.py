import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./prepaid.db")
    # e.g. "SERIALIZABLE" on PostgreSQL; None keeps the driver default
    DB_ISOLATION_LEVEL = data.get("DB_ISOLATION_LEVEL", None)
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Optimistic concurrency retry budget for balance mutations
    DEDUCTION_MAX_ATTEMPTS = data.get("DEDUCTION_MAX_ATTEMPTS", 8)
    RETRY_BASE_DELAY_SECONDS = data.get("RETRY_BASE_DELAY_SECONDS", 0.05)
    RETRY_BACKOFF_FACTOR = data.get("RETRY_BACKOFF_FACTOR", 2.0)
    RETRY_MAX_DELAY_SECONDS = data.get("RETRY_MAX_DELAY_SECONDS", 1.0)

    # Prepaid billing
    CURRENCY = data.get("CURRENCY", "USD")
    DEFAULT_INVOICE_DUE_DAYS = data.get("DEFAULT_INVOICE_DUE_DAYS", 30)
    LOW_BALANCE_RATIO = data.get("LOW_BALANCE_RATIO", 0.25)  # "low" below this share of target
    TOP_UP_NOTIFICATION_WEBHOOK = data.get("TOP_UP_NOTIFICATION_WEBHOOK", None)

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
