"""Worker lookup, registration and legacy identifier migration."""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codes import normalize_sticker, project_for_code, to_dashed, UnknownProjectError
from src.models import Company, Worker, WorkerMigration, utcnow

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 500


class RegistrationError(ValueError):
    """Registration payload rejected; ``code`` is the stable reason code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


async def migrate_legacy_worker(
    session: AsyncSession, code: str, trigger: str = "read"
) -> Optional[Worker]:
    """
    Move a worker stored under the dashed identifier to the canonical one.

    Runs at most once per code: when the canonical row exists, nothing is
    touched. Changes are flushed, not committed; the caller owns the
    transaction.

    Args:
        session: Open session
        code: Canonical code (``NBK0001``)
        trigger: What caused the migration, kept in the audit row

    Returns:
        The canonical worker, or None if neither form exists
    """
    canonical = await session.get(Worker, code)
    if canonical is not None:
        return canonical

    legacy_code = to_dashed(code)
    if legacy_code == code:
        return None
    legacy = await session.get(Worker, legacy_code)
    if legacy is None:
        return None

    migrated = Worker(
        code=code,
        project=legacy.project,
        full_name=legacy.full_name,
        full_name_lower=legacy.full_name_lower or (legacy.full_name or "").lower(),
        company_id=legacy.company_id,
        created_at=legacy.created_at or utcnow(),
        updated_at=utcnow(),
        last_feedback_at=legacy.last_feedback_at,
    )
    await session.delete(legacy)
    # Old row goes before the replacement is inserted
    await session.flush()
    session.add(migrated)
    session.add(WorkerMigration(legacy_code=legacy_code, canonical_code=code, trigger=trigger))
    await session.flush()

    logger.info("Migrated worker %s -> %s (%s)", legacy_code, code, trigger)
    return migrated


async def resolve_worker(session: AsyncSession, raw_code: str) -> Optional[Worker]:
    """Find a worker by any spelling of their code, healing legacy rows."""
    code = normalize_sticker(raw_code, strict=True)
    if not code:
        return None
    return await migrate_legacy_worker(session, code, trigger="read")


async def list_legacy_codes(session: AsyncSession) -> List[str]:
    """Codes still stored in the dashed format."""
    result = await session.execute(select(Worker.code).where(Worker.code.like("%-%")))
    return list(result.scalars().all())


async def list_companies(session: AsyncSession) -> List[Company]:
    result = await session.execute(select(Company).order_by(Company.name))
    return list(result.scalars().all())


async def register_worker(
    session: AsyncSession,
    raw_code: str,
    full_name: str,
    company_id: str,
    project: Optional[str] = None,
) -> Worker:
    """
    Create or update a worker profile and commit.

    Both identifier forms are read inside the same transaction so a person
    can never end up with one row under each form.
    """
    code = normalize_sticker(raw_code, strict=True)
    if not code:
        raise RegistrationError("INVALID_CODE", "Sticker code must look like NBK0001")

    try:
        derived_project = project_for_code(code)
    except UnknownProjectError:
        raise RegistrationError("UNKNOWN_PROJECT", f"Unknown project for sticker {code}") from None

    if project and project.strip().upper() != derived_project:
        raise RegistrationError("INVALID_PROJECT", f"Sticker {code} belongs to project {derived_project}")

    full_name = (full_name or "").strip()
    company_id = (company_id or "").strip()
    if not full_name or not company_id:
        raise RegistrationError("MISSING_FIELDS", "Missing fields")

    if await session.get(Company, company_id) is None:
        raise RegistrationError("UNKNOWN_COMPANY", f"Unknown company {company_id}")

    worker = await migrate_legacy_worker(session, code, trigger="register")
    now = utcnow()
    if worker is None:
        worker = Worker(code=code, created_at=now)
        session.add(worker)

    worker.project = derived_project
    worker.full_name = full_name
    worker.full_name_lower = full_name.lower()
    worker.company_id = company_id
    worker.updated_at = now

    await session.commit()
    logger.info("Registered worker %s (company=%s)", code, company_id)
    return worker


async def search_workers(
    session: AsyncSession, q: str = "", company_id: str = ""
) -> List[Worker]:
    """Admin lookup: exact code first, then name/code contains."""
    q = (q or "").strip()
    company_id = (company_id or "").strip()

    if q:
        code = normalize_sticker(q, strict=True)
        if code:
            worker = await resolve_worker(session, code)
            if worker is not None:
                await session.commit()
                return [worker]
            # Not found by code, fall through to the contains search

    stmt = select(Worker)
    if company_id:
        stmt = stmt.where(Worker.company_id == company_id)
    if q:
        term = q.lower()
        stmt = stmt.where(
            Worker.full_name_lower.contains(term, autoescape=True)
            | Worker.code.contains(q.upper(), autoescape=True)
        )
    stmt = stmt.order_by(Worker.code).limit(SEARCH_LIMIT)

    result = await session.execute(stmt)
    return list(result.scalars().all())
