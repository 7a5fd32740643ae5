"""FastAPI routes for the admin summary and CSV exports."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_session
from src.summary.aggregator import enrich_rows, load_lookups, load_month_rows, load_summary
from src.summary.export import UnknownExportType, build_export
from src.time_keys import is_valid_month_key, month_key

# Create router
router = APIRouter()


@router.get("/admin/summary")
async def get_summary(
    month: str = "",
    session: AsyncSession = Depends(get_session)
) -> JSONResponse:
    """Today's and the month's votes with per-company and per-target totals."""
    report = await load_summary(session, month)

    # Cache for 1 minute
    return JSONResponse(
        content=report,
        headers={"Cache-Control": "public, max-age=60"}
    )


@router.get("/admin/summary/export")
async def export_summary(
    month: str = "",
    type: str = "rows",
    session: AsyncSession = Depends(get_session)
) -> Response:
    """Download the month's votes, company totals or top targets as CSV."""
    if not is_valid_month_key(month):
        month = month_key(datetime.now(timezone.utc))

    month_raw = await load_month_rows(session, month)
    workers, companies = await load_lookups(session, month_raw)
    rows = enrich_rows(month_raw, workers, companies)

    try:
        filename, body = build_export(rows, type, month)
    except UnknownExportType as exc:
        return JSONResponse(content={"ok": False, "error": str(exc)}, status_code=400)

    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )
