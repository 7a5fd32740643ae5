"""FastAPI routes for worker feedback."""
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel

from src import config
from src.codes import normalize_sticker
from src.database import get_session
from src.feedback.models import Feedback
from src.models import Worker
from src.time_keys import day_key, month_key

NOTE_MAX = 600

# Create router
router = APIRouter()


# Pydantic models for API
class FeedbackRequest(BaseModel):
    project: str = ""
    voterCode: str = ""
    voterCompanyId: Optional[str] = None
    rating: Optional[int] = None
    note: str = ""


def hash_code(code: str) -> str:
    return hmac.new(config.FEEDBACK_SALT.encode("utf-8"), code.encode("utf-8"), hashlib.sha256).hexdigest()


@router.post("/feedback")
async def post_feedback(
    payload: FeedbackRequest,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Store a 1-5 rating with an optional note."""
    project = payload.project.strip()
    voter_code = normalize_sticker(payload.voterCode)
    rating = payload.rating
    if not project or not voter_code or rating is None or not 1 <= rating <= 5:
        return JSONResponse(content={"ok": False, "error": "Invalid payload"}, status_code=400)

    now = datetime.now(timezone.utc)
    session.add(Feedback(
        project=project,
        rating=rating,
        note=payload.note[:NOTE_MAX],
        voter_company_id=payload.voterCompanyId or None,
        voter_code_hash=hash_code(voter_code),
        day_key=day_key(now),
        month_key=month_key(now),
        created_at=now,
    ))

    # Bump lastFeedbackAt if the worker exists
    worker = await session.get(Worker, voter_code)
    if worker is not None:
        worker.last_feedback_at = now

    await session.commit()
    return JSONResponse(content={"ok": True})
