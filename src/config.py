"""Runtime settings read from the environment."""
import os
from pathlib import Path
from zoneinfo import ZoneInfo

# Determine database location - support /app/data for production, local file otherwise
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    DB_PATH = os.getenv("DATABASE_PATH")
    if not DB_PATH:
        data_dir = Path("/app/data")
        DB_PATH = str(data_dir / "tokens.db") if data_dir.exists() else "tokens.db"
    DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"

# Seconds a SQLite connection waits on the write lock before giving up
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

# Day/month buckets roll over at local midnight of this zone
VOTE_TZ = os.getenv("VOTE_TZ", "UTC")
TZ = ZoneInfo(VOTE_TZ)

# Only voters from this company may submit Good Catch reports
PRIVILEGED_COMPANY_ID = os.getenv("PRIVILEGED_COMPANY_ID", "WALSH")

DAILY_MAX_PER_VOTER = int(os.getenv("DAILY_MAX_PER_VOTER", "3"))
MONTHLY_MAX_PER_COMPANY = int(os.getenv("MONTHLY_MAX_PER_COMPANY", "30"))

CODE_PAD = int(os.getenv("CODE_PAD", "4"))

# Sticker prefix -> project; anything else is rejected at registration
PROJECT_PREFIXES = {
    prefix.strip().upper(): prefix.strip().upper()
    for prefix in os.getenv("PROJECT_PREFIXES", "NBK,JP").split(",")
    if prefix.strip()
}

FEEDBACK_SALT = os.getenv("FEEDBACK_SALT", "rotate-me")

LOG_DIR = os.getenv("LOG_DIR")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

PORT = int(os.getenv("PORT", "3003"))
