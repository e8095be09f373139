import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
]

# Fallback opening window for resources without hours for the requested weekday
DEFAULT_OPEN_TIME = os.getenv("DEFAULT_OPEN_TIME", "08:00")
DEFAULT_CLOSE_TIME = os.getenv("DEFAULT_CLOSE_TIME", "20:00")

SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
ALLOWED_SLOT_MINUTES = (15, 30, 60, 120)

PAYMENT_PENDING_TIMEOUT_MINUTES = int(os.getenv("PAYMENT_PENDING_TIMEOUT_MINUTES", "30"))

# Payment provider webhook credentials (HTTP Basic Auth)
WEBHOOK_USERNAME = os.getenv("WEBHOOK_USERNAME", "")
WEBHOOK_PASSWORD = os.getenv("WEBHOOK_PASSWORD", "")

# Staff credentials for confirm/complete (HTTP Basic Auth)
STAFF_USERNAME = os.getenv("STAFF_USERNAME", "")
STAFF_PASSWORD = os.getenv("STAFF_PASSWORD", "")

# Optional notification/audit collaborator endpoint for transition events
NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL")
