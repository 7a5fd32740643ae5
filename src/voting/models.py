"""SQLAlchemy models for votes, quota counters and notifications."""
from sqlalchemy import Column, String, Integer, DateTime, Boolean
from src.database import Base
from src.models import utcnow


class Vote(Base):
    """Immutable record of one accepted token or Good Catch."""

    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    voter_code = Column(String, nullable=False, index=True)
    target_code = Column(String, nullable=False, index=True)
    voter_company_id = Column(String, nullable=False, default="")
    target_company_id = Column(String, nullable=False, default="")
    project = Column(String, nullable=False)
    vote_type = Column(String, nullable=False, default="token")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    day_key = Column(String, nullable=False, index=True)
    month_key = Column(String, nullable=False, index=True)

    def __repr__(self):
        return f"<Vote(id={self.id}, voter={self.voter_code}, target={self.target_code}, type={self.vote_type})>"


class VoteCounter(Base):
    """Per-bucket token count.

    ``id`` is ``voterDaily_{code}_{dayKey}`` or
    ``companyMonthly_{companyId}_{monthKey}``. Rows are created on first
    increment and never decremented; a new period simply uses a new id.
    """

    __tablename__ = "vote_counters"

    id = Column(String, primary_key=True)
    kind = Column(String, nullable=False)
    voter_code = Column(String, nullable=True)
    company_id = Column(String, nullable=True)
    day_key = Column(String, nullable=True)
    month_key = Column(String, nullable=True)
    count = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<VoteCounter(id={self.id}, count={self.count})>"


class Notification(Base):
    """Inbox entry telling a worker they received a vote."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_code = Column(String, nullable=False, index=True)
    voter_code = Column(String, nullable=False)
    vote_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    body = Column(String, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "targetCode": self.target_code,
            "voterCode": self.voter_code,
            "voteType": self.vote_type,
            "title": self.title,
            "body": self.body,
            "read": self.read,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
