import logging
import os

logger = logging.getLogger(__name__)

# --- File Paths ---
DATA_DIR = os.environ.get("DATA_DIR", "public/data")
REPORT_FILE = os.path.join(DATA_DIR, "availability_report.json")

# --- URLs & API ---
API_BASE_URL = os.environ.get("API_BASE_URL")
AUTH_TOKEN = os.environ.get("AUTH_TOKEN")
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "30"))

if not API_BASE_URL:
    logger.warning("API_BASE_URL is not configured. Remote calls will fail.")

# --- Scheduling ---
# Zone in which the doctor's grid is laid out. Remote instants are UTC.
TIMEZONE = os.environ.get("TIMEZONE", "UTC")

APPOINTMENT_DURATION_DEFAULT = 15  # minutes

SLOT_START_HOUR = 9
SLOT_END_HOUR = 17
SLOT_INTERVAL_MINUTES = 15
INCLUDE_END_TIME = True

# Slots shown per day before the day is expanded
VISIBLE_SLOTS = 9

# --- Telegram ---
TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")
if not TELEGRAM_BOT_TOKEN or not TELEGRAM_CHAT_ID:
    logger.warning("Telegram configuration incomplete. Skipping notifications.")
