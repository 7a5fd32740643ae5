"""Logging configuration and the vote audit stream."""
import json
import logging
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from src import config

# One JSON line per vote attempt
audit_logger = logging.getLogger("votes.audit")


def setup_logging():
    """Configure the root logger once; add a rotating audit file when LOG_DIR is set."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if config.LOG_DIR and not audit_logger.handlers:
        log_dir = Path(config.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = TimedRotatingFileHandler(
            log_dir / "votes.log",
            when="midnight",
            interval=1,
            backupCount=7,  # Keep 7 days of logs
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        audit_logger.addHandler(handler)
        audit_logger.setLevel(logging.INFO)


def log_vote(voter_code, target_code, vote_type, status, **extra):
    """Write one vote attempt to the audit stream."""
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "voterCode": voter_code,
        "targetCode": target_code,
        "voteType": vote_type,
        "status": status,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    audit_logger.info(json.dumps(entry))
