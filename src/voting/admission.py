"""Vote admission rules and the transactional token commit."""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src import config
from src.codes import normalize_sticker
from src.models import Worker
from src.time_keys import day_key, month_key
from src.voting.counters import (
    COMPANY_MONTHLY,
    VOTER_DAILY,
    company_monthly_id,
    increment_with_cap,
    read_count,
    voter_daily_id,
)
from src.voting.messages import notification_copy, success_message
from src.voting.models import Notification, Vote
from src.workers.directory import resolve_worker

logger = logging.getLogger(__name__)

TOKEN = "token"
GOOD_CATCH = "goodCatch"
VOTE_TYPES = (TOKEN, GOOD_CATCH)


class ReasonCode(str, Enum):
    INVALID_BODY = "INVALID_BODY"
    MISSING_CODES = "MISSING_CODES"
    SELF_VOTE = "SELF_VOTE"
    VOTER_UNREGISTERED = "VOTER_UNREGISTERED"
    TARGET_UNREGISTERED = "TARGET_UNREGISTERED"
    DIFF_PROJECT = "DIFF_PROJECT"
    SAME_COMPANY = "SAME_COMPANY"
    GC_WALSH_ONLY = "GC_WALSH_ONLY"
    DAILY_LIMIT = "DAILY_LIMIT"
    COMPANY_MONTHLY_LIMIT = "COMPANY_MONTHLY_LIMIT"
    VOTE_FAILED = "VOTE_FAILED"


# input 400, permission 403, not registered 404, quota 429, storage 500
STATUS_BY_REASON = {
    ReasonCode.INVALID_BODY: 400,
    ReasonCode.MISSING_CODES: 400,
    ReasonCode.SELF_VOTE: 400,
    ReasonCode.DIFF_PROJECT: 400,
    ReasonCode.SAME_COMPANY: 400,
    ReasonCode.GC_WALSH_ONLY: 403,
    ReasonCode.VOTER_UNREGISTERED: 404,
    ReasonCode.TARGET_UNREGISTERED: 404,
    ReasonCode.DAILY_LIMIT: 429,
    ReasonCode.COMPANY_MONTHLY_LIMIT: 429,
    ReasonCode.VOTE_FAILED: 500,
}

LIMIT_REASONS = (ReasonCode.DAILY_LIMIT, ReasonCode.COMPANY_MONTHLY_LIMIT)


class VoteRejected(Exception):
    """A vote failed a business rule. Nothing was written for it."""

    def __init__(
        self,
        reason: ReasonCode,
        daily_remaining: Optional[int] = None,
        company_monthly_remaining: Optional[int] = None,
    ):
        super().__init__(reason.value)
        self.reason = reason
        self.daily_remaining = daily_remaining
        self.company_monthly_remaining = company_monthly_remaining

    @property
    def status_code(self) -> int:
        return STATUS_BY_REASON[self.reason]


class VoteAccepted(BaseModel):
    vote_type: str
    voter_code: str
    target_code: str
    target_name: str
    daily_remaining: int
    company_monthly_remaining: int
    day_key: str
    month_key: str
    message: str


def _remaining(cap: int, count: int) -> int:
    return max(0, cap - count)


def _record_vote(session: AsyncSession, voter: Worker, target: Worker, vote_type: str,
                 now: datetime, dk: str, mk: str):
    session.add(Vote(
        voter_code=voter.code,
        target_code=target.code,
        voter_company_id=voter.company_id or "",
        target_company_id=target.company_id or "",
        project=voter.project,
        vote_type=vote_type,
        created_at=now,
        day_key=dk,
        month_key=mk,
    ))
    title, body = notification_copy(vote_type)
    session.add(Notification(
        target_code=target.code,
        voter_code=voter.code,
        vote_type=vote_type,
        title=title,
        body=body,
        read=False,
        created_at=now,
    ))


async def _admit(session: AsyncSession, voter_raw: str, target_raw: str, vote_type: str):
    """Run the ordered business checks; returns (voter, target)."""
    if vote_type not in VOTE_TYPES:
        raise VoteRejected(ReasonCode.INVALID_BODY)

    voter_code = normalize_sticker(voter_raw, strict=True)
    target_code = normalize_sticker(target_raw, strict=True)
    if not voter_code or not target_code:
        raise VoteRejected(ReasonCode.MISSING_CODES)
    if voter_code == target_code:
        raise VoteRejected(ReasonCode.SELF_VOTE)

    voter = await resolve_worker(session, voter_code)
    target = await resolve_worker(session, target_code)
    try:
        _check_pair(voter, target, vote_type)
    except VoteRejected:
        # Keep identifier healing even when the vote is turned down
        await session.commit()
        raise
    return voter, target


def _check_pair(voter: Optional[Worker], target: Optional[Worker], vote_type: str):
    if voter is None:
        raise VoteRejected(ReasonCode.VOTER_UNREGISTERED)
    if target is None:
        raise VoteRejected(ReasonCode.TARGET_UNREGISTERED)

    if voter.project != target.project:
        raise VoteRejected(ReasonCode.DIFF_PROJECT)

    if voter.company_id and target.company_id and voter.company_id == target.company_id:
        raise VoteRejected(ReasonCode.SAME_COMPANY)

    if vote_type == GOOD_CATCH and voter.company_id != config.PRIVILEGED_COMPANY_ID:
        raise VoteRejected(ReasonCode.GC_WALSH_ONLY)


async def submit_vote(
    session: AsyncSession,
    voter_raw: str,
    target_raw: str,
    vote_type: str = TOKEN,
    now: Optional[datetime] = None,
) -> VoteAccepted:
    """
    Validate and commit one vote.

    Admission checks, counter updates and the vote row share one
    transaction. Token votes take one slot from the voter's daily counter
    and one from the voter company's monthly counter; if either is full the
    counter changes are rolled back. Good Catch votes are recorded without
    touching counters.

    Args:
        session: Session used for the whole request
        voter_raw: Voter sticker code as typed or scanned
        target_raw: Target sticker code as typed or scanned
        vote_type: "token" or "goodCatch"
        now: Instant used for the day/month buckets (defaults to wall clock)

    Returns:
        VoteAccepted with remaining quotas after this vote

    Raises:
        VoteRejected: a business rule or quota turned the vote down
        SQLAlchemyError: storage failure, nothing was committed
    """
    voter, target = await _admit(session, voter_raw, target_raw, vote_type)

    now = now or datetime.now(timezone.utc)
    dk = day_key(now)
    mk = month_key(now)
    daily_cap = config.DAILY_MAX_PER_VOTER
    monthly_cap = config.MONTHLY_MAX_PER_COMPANY
    daily_id = voter_daily_id(voter.code, dk)
    monthly_id = company_monthly_id(voter.company_id, mk)

    try:
        if vote_type == GOOD_CATCH:
            daily_count = await read_count(session, daily_id)
            monthly_count = await read_count(session, monthly_id)
        else:
            # Savepoint so a full monthly counter undoes the daily increment
            async with session.begin_nested():
                daily_count = await increment_with_cap(
                    session, daily_id, daily_cap,
                    kind=VOTER_DAILY, voter_code=voter.code, day_key=dk,
                )
                if daily_count is None:
                    raise VoteRejected(ReasonCode.DAILY_LIMIT, daily_remaining=0)

                monthly_count = await increment_with_cap(
                    session, monthly_id, monthly_cap,
                    kind=COMPANY_MONTHLY, company_id=voter.company_id, month_key=mk,
                )
                if monthly_count is None:
                    raise VoteRejected(ReasonCode.COMPANY_MONTHLY_LIMIT, company_monthly_remaining=0)

        _record_vote(session, voter, target, vote_type, now, dk, mk)
        await session.commit()
    except VoteRejected:
        # Counters are back where they were; identifier healing is kept
        await session.commit()
        raise
    except SQLAlchemyError:
        await session.rollback()
        raise

    daily_remaining = _remaining(daily_cap, daily_count)
    company_remaining = _remaining(monthly_cap, monthly_count)
    target_name = (target.full_name or "").strip()

    return VoteAccepted(
        vote_type=vote_type,
        voter_code=voter.code,
        target_code=target.code,
        target_name=target_name,
        daily_remaining=daily_remaining,
        company_monthly_remaining=company_remaining,
        day_key=dk,
        month_key=mk,
        message=success_message(vote_type, target_name, target.code, daily_remaining, company_remaining),
    )


async def remaining_quotas(
    session: AsyncSession, voter_raw: str, company_id: str = "", now: Optional[datetime] = None
) -> dict:
    """Read-only view of what a voter (and optionally their company) has left."""
    voter_code = normalize_sticker(voter_raw, strict=True)
    if not voter_code:
        raise VoteRejected(ReasonCode.MISSING_CODES)

    now = now or datetime.now(timezone.utc)
    dk = day_key(now)
    mk = month_key(now)
    company_id = (company_id or "").strip()

    daily_count = await read_count(session, voter_daily_id(voter_code, dk))
    company_remaining = None
    if company_id:
        monthly_count = await read_count(session, company_monthly_id(company_id, mk))
        company_remaining = _remaining(config.MONTHLY_MAX_PER_COMPANY, monthly_count)

    return {
        "dayKey": dk,
        "monthKey": mk,
        "dailyRemaining": _remaining(config.DAILY_MAX_PER_VOTER, daily_count),
        "companyMonthlyRemaining": company_remaining,
    }
