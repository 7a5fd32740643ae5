"""SQLAlchemy models for the worker directory."""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer
from src.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Company(Base):
    """Static reference data, seeded separately."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)

    def __repr__(self):
        return f"<Company(id={self.id}, name={self.name})>"


class Worker(Base):
    """A person holding a sticker, keyed by sticker code.

    Canonical rows use ``NBK0001``; rows keyed ``NBK-0001`` are legacy and get
    moved to the canonical key by ``migrate_legacy_worker``.
    """

    __tablename__ = "workers"

    code = Column(String, primary_key=True)
    project = Column(String, nullable=False)
    full_name = Column(String, nullable=False, default="")
    full_name_lower = Column(String, nullable=False, default="", index=True)
    company_id = Column(String, nullable=False, default="", index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
    last_feedback_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "code": self.code,
            "project": self.project,
            "fullName": self.full_name,
            "fullNameLower": self.full_name_lower,
            "companyId": self.company_id,
        }

    def __repr__(self):
        return f"<Worker(code={self.code}, project={self.project}, company_id={self.company_id})>"


class WorkerMigration(Base):
    """Audit trail of legacy identifiers moved to canonical ones."""

    __tablename__ = "worker_migrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    legacy_code = Column(String, nullable=False)
    canonical_code = Column(String, nullable=False, index=True)
    trigger = Column(String, nullable=False)
    migrated_at = Column(DateTime(timezone=True), default=utcnow)
