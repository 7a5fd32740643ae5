"""FastAPI routes for registration, companies and the admin worker list."""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel

from src.database import get_session
from src.models import Company
from src.workers.directory import (
    RegistrationError,
    list_companies,
    register_worker,
    resolve_worker,
    search_workers,
)

SEED_COMPANIES = [
    {"id": "c-acme", "name": "ACME Construction"},
    {"id": "c-bravo", "name": "Bravo Builders"},
    {"id": "c-cascade", "name": "Cascade Electric"},
    {"id": "WALSH", "name": "Walsh Construction"},
]

# Create router
router = APIRouter()


# Pydantic models for API
class RegisterRequest(BaseModel):
    code: str
    fullName: str = ""
    companyId: str = ""
    project: Optional[str] = None


@router.get("/companies")
async def get_companies(session: AsyncSession = Depends(get_session)) -> JSONResponse:
    """List companies sorted by name."""
    companies = await list_companies(session)
    return JSONResponse(
        content={"ok": True, "companies": [{"id": c.id, "name": c.name or c.id} for c in companies]},
        headers={"Cache-Control": "public, max-age=300"}
    )


@router.get("/register")
async def get_registration(
    code: str = "",
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Companies plus the existing profile for a sticker, if any."""
    companies = await list_companies(session)
    existing = None
    if code:
        worker = await resolve_worker(session, code)
        # Persist a legacy migration triggered by the lookup
        await session.commit()
        if worker is not None:
            existing = worker.to_dict()

    return JSONResponse(content={
        "companies": [{"id": c.id, "name": c.name} for c in companies],
        "existing": existing,
    })


@router.post("/register")
async def post_registration(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Create or update a worker profile."""
    try:
        worker = await register_worker(
            session, payload.code, payload.fullName, payload.companyId, payload.project
        )
    except RegistrationError as exc:
        return JSONResponse(
            content={"ok": False, "code": exc.code, "error": exc.message},
            status_code=400
        )

    return JSONResponse(content={"ok": True, "worker": worker.to_dict()})


@router.get("/admin/workers")
async def get_workers(
    companyId: str = "",
    q: str = "",
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Search workers by code, name or company."""
    workers = await search_workers(session, q=q, company_id=companyId)
    return JSONResponse(content={"workers": [w.to_dict() for w in workers]})


@router.post("/admin/seed-companies")
async def seed_companies(session: AsyncSession = Depends(get_session)) -> JSONResponse:
    """Upsert the static company list."""
    for entry in SEED_COMPANIES:
        existing = await session.get(Company, entry["id"])
        if existing:
            existing.name = entry["name"]
        else:
            session.add(Company(id=entry["id"], name=entry["name"]))

    await session.commit()
    return JSONResponse(content={"ok": True, "added": len(SEED_COMPANIES)})
