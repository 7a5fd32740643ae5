"""SQLAlchemy models for worker feedback."""
from sqlalchemy import Column, String, Integer, Text, DateTime
from src.database import Base
from src.models import utcnow


class Feedback(Base):
    """App rating left by a worker; the sticker code is stored only as a keyed hash."""

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    note = Column(Text, nullable=False, default="")
    voter_company_id = Column(String, nullable=True)
    voter_code_hash = Column(String, nullable=False)
    day_key = Column(String, nullable=False)
    month_key = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Feedback(id={self.id}, project={self.project}, rating={self.rating})>"
