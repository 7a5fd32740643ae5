"""FastAPI routes for casting votes, quota lookups and notifications."""
import logging
from typing import List, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel

from src.codes import normalize_sticker
from src.database import get_session
from src.logging_setup import log_vote
from src.time_keys import day_key, is_voting_open, month_key
from src.voting.admission import (
    LIMIT_REASONS,
    STATUS_BY_REASON,
    ReasonCode,
    VoteRejected,
    remaining_quotas,
    submit_vote,
)
from src.voting.messages import REJECTION_MESSAGES, limit_message
from src.voting.models import Notification
from src import config

logger = logging.getLogger(__name__)

NOTIFICATION_LIMIT = 10

# Create router
router = APIRouter()


# Pydantic models for API
class VoteRequest(BaseModel):
    voterCode: str
    targetCode: str
    voteType: Literal["token", "goodCatch"] = "token"


class MarkReadRequest(BaseModel):
    ids: List[int]


def error_response(reason: ReasonCode, **extra) -> JSONResponse:
    content = {"ok": False, "code": reason.value, "error": REJECTION_MESSAGES[reason.value]}
    content.update(extra)
    return JSONResponse(content=content, status_code=STATUS_BY_REASON[reason])


def rejection_response(exc: VoteRejected, payload: VoteRequest) -> JSONResponse:
    extra = {}
    if exc.daily_remaining is not None:
        extra["dailyRemaining"] = exc.daily_remaining
    if exc.company_monthly_remaining is not None:
        extra["companyMonthlyRemaining"] = exc.company_monthly_remaining
        extra["companyRemaining"] = exc.company_monthly_remaining  # alias for FE
    if exc.reason in LIMIT_REASONS:
        # Client switches to the locked view; copy is stable per voter and period
        if exc.reason == ReasonCode.DAILY_LIMIT:
            cap, period = config.DAILY_MAX_PER_VOTER, day_key()
        else:
            cap, period = config.MONTHLY_MAX_PER_COMPANY, month_key()
        extra["locked"] = True
        extra["message"] = limit_message(
            exc.reason.value, f"{normalize_sticker(payload.voterCode)}:{period}", cap
        )
    return error_response(exc.reason, **extra)


@router.post("/vote")
async def cast_vote(
    payload: VoteRequest,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Give a token or Good Catch to a coworker."""
    try:
        result = await submit_vote(session, payload.voterCode, payload.targetCode, payload.voteType)
    except VoteRejected as exc:
        log_vote(payload.voterCode, payload.targetCode, payload.voteType, exc.reason.value)
        return rejection_response(exc, payload)
    except SQLAlchemyError:
        logger.exception("Vote failed for %s -> %s", payload.voterCode, payload.targetCode)
        log_vote(payload.voterCode, payload.targetCode, payload.voteType, ReasonCode.VOTE_FAILED.value)
        return error_response(ReasonCode.VOTE_FAILED)

    log_vote(
        result.voter_code, result.target_code, result.vote_type, "accepted",
        dailyRemaining=result.daily_remaining,
        companyMonthlyRemaining=result.company_monthly_remaining,
    )
    return JSONResponse(content={
        "ok": True,
        "voteType": result.vote_type,
        "message": result.message,
        "target": {"code": result.target_code, "fullName": result.target_name},
        "dailyRemaining": result.daily_remaining,
        "companyMonthlyRemaining": result.company_monthly_remaining,
        "companyRemaining": result.company_monthly_remaining,  # alias for FE
    })


@router.get("/vote/limits")
async def get_limits(
    voter: str = "",
    companyId: str = "",
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Remaining quotas for a voter and company, without using any."""
    try:
        limits = await remaining_quotas(session, voter, companyId)
    except VoteRejected:
        return JSONResponse(content={"ok": False, "error": "Missing voter"}, status_code=400)

    return JSONResponse(
        content={
            "ok": True,
            "votingOpen": is_voting_open(),
            **limits,
            "companyRemaining": limits["companyMonthlyRemaining"],  # alias for FE
        },
        headers={"Cache-Control": "no-store"}
    )


@router.get("/notifications")
async def get_notifications(
    target: str = "",
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Newest unread notifications for a worker."""
    target_code = normalize_sticker(target)
    if not target_code:
        return JSONResponse(content={"ok": False, "error": "Missing target"}, status_code=400)

    result = await session.execute(
        select(Notification)
        .where(Notification.target_code == target_code, Notification.read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_LIMIT)
    )
    items = [n.to_dict() for n in result.scalars().all()]
    return JSONResponse(content={"ok": True, "items": items})


@router.post("/notifications")
async def mark_notifications_read(
    payload: MarkReadRequest,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Mark notifications as read."""
    if not payload.ids:
        return JSONResponse(content={"ok": False, "error": "No ids"}, status_code=400)

    await session.execute(
        update(Notification)
        .where(Notification.id.in_(payload.ids))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return JSONResponse(content={"ok": True})
