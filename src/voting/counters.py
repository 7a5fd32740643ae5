"""Quota counters with an atomic compare-and-increment primitive."""
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import utcnow
from src.voting.models import VoteCounter

VOTER_DAILY = "voterDaily"
COMPANY_MONTHLY = "companyMonthly"


def voter_daily_id(voter_code: str, day_key: str) -> str:
    return f"{VOTER_DAILY}_{voter_code}_{day_key}"


def company_monthly_id(company_id: str, month_key: str) -> str:
    return f"{COMPANY_MONTHLY}_{company_id}_{month_key}"


async def read_count(session: AsyncSession, counter_id: str) -> int:
    """Current count of a bucket; a missing bucket counts as 0."""
    result = await session.execute(
        select(VoteCounter.count).where(VoteCounter.id == counter_id)
    )
    return result.scalar_one_or_none() or 0


async def increment_with_cap(
    session: AsyncSession, counter_id: str, cap: int, **fields
) -> Optional[int]:
    """
    Add 1 to a counter unless it already reached ``cap``.

    The check and the increment are one conditional UPDATE, so two
    transactions can never both take the last slot. A missing counter is
    created with count 1. Nothing is committed here.

    Args:
        session: Session whose transaction the increment joins
        counter_id: Bucket id from voter_daily_id/company_monthly_id
        cap: Maximum allowed count
        **fields: Bucket columns stored when the row is created

    Returns:
        The count after incrementing, or None when the cap was reached
    """
    result = await session.execute(
        update(VoteCounter)
        .where(VoteCounter.id == counter_id, VoteCounter.count < cap)
        .values(count=VoteCounter.count + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        return await read_count(session, counter_id)

    exists = await session.execute(
        select(VoteCounter.id).where(VoteCounter.id == counter_id)
    )
    if exists.scalar_one_or_none() is not None or cap < 1:
        return None

    session.add(VoteCounter(id=counter_id, count=1, updated_at=utcnow(), **fields))
    await session.flush()
    return 1
