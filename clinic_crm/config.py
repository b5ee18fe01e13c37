"""
Centralized configuration for the clinic CRM.
Every value can be overridden from the environment or a local .env file.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

# --- Database ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./crm.db")

# --- Auth ---
SECRET_KEY = os.getenv("SECRET_KEY", "your_secret_key_here_change_later")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# --- Consultations ---
VIDEO_BASE_URL = os.getenv("VIDEO_BASE_URL", "https://meet.jit.si")
ROOM_PREFIX = os.getenv("ROOM_PREFIX", "Prakvedaa")

# --- Notifications ---
WHATSAPP_BASE_URL = os.getenv("WHATSAPP_BASE_URL", "https://wa.me")
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "")  # e.g. "Asia/Kolkata"; empty = as stored

# --- Client ---
API_URL = os.getenv("API_URL", "http://127.0.0.1:8000")
REFRESH_INTERVAL_SECONDS = float(os.getenv("REFRESH_INTERVAL_SECONDS", "10"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
