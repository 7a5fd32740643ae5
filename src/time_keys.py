"""Timezone-aware bucket keys for counters and reports."""
import calendar
from datetime import datetime, timezone, tzinfo
from typing import Optional

from src import config


def local_now(now: Optional[datetime] = None, tz: tzinfo = None) -> datetime:
    """Convert an instant (default: wall clock) into the voting timezone."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        # Naive values come back from SQLite and are stored as UTC
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz or config.TZ)


def day_key(now: Optional[datetime] = None, tz: tzinfo = None) -> str:
    return local_now(now, tz).strftime("%Y-%m-%d")


def month_key(now: Optional[datetime] = None, tz: tzinfo = None) -> str:
    return local_now(now, tz).strftime("%Y-%m")


def is_valid_month_key(value: Optional[str]) -> bool:
    if not value or len(value) != 7 or value[4] != "-":
        return False
    year, month = value[:4], value[5:]
    return year.isdigit() and month.isdigit() and 1 <= int(month) <= 12


def is_voting_open(now: Optional[datetime] = None, tz: tzinfo = None) -> bool:
    """Voting is open for the entire calendar month, with no blackout days."""
    local = local_now(now, tz)
    last_day = calendar.monthrange(local.year, local.month)[1]
    return 1 <= local.day <= last_day
