"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", "") or PROJECT_ROOT / "data")
OUTPUT_DIR = PROJECT_ROOT / "output"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# Database (DB_PATH is a plain file path; DATABASE_URL wins when both are set)
DB_PATH = os.getenv("DB_PATH", "").strip() or str(DATA_DIR / "email.db")
DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{DB_PATH}"

# Group config written by the setup wizard and read on startup
GROUP_CONFIG_PATH = Path(os.getenv("GROUP_CONFIG_PATH", "").strip() or DATA_DIR / "config.json")
SKIP_WIZARD = os.getenv("SKIP_WIZARD", "false").lower() == "true"

# HTTP API
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "") or os.getenv("PORT", "") or "3000")

# Inbox defaults
DEFAULT_INBOX_LIMIT = int(os.getenv("DEFAULT_INBOX_LIMIT", "10"))
BODY_PREVIEW_LENGTH = int(os.getenv("BODY_PREVIEW_LENGTH", "500"))

# Logging
LOG_DIR = OUTPUT_DIR / "logs"
LOG_FILE = LOG_DIR / "app.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)
