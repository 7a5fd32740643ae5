"""Admin rollups over the committed vote log."""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Company, Worker
from src.time_keys import day_key, is_valid_month_key, is_voting_open, month_key
from src.voting.models import Vote

TODAY_LIMIT = 500
MONTH_LIMIT = 2000
UNKNOWN = "(Unknown)"


def to_iso(value) -> str:
    """Timestamp to ISO-8601 UTC; naive values are UTC already."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return str(value)


def vote_to_raw(vote: Vote) -> dict:
    return {
        "id": vote.id,
        "time": to_iso(vote.created_at),
        "project": vote.project or "",
        "voterCode": vote.voter_code or "",
        "voterCompanyId": vote.voter_company_id or "",
        "targetCode": vote.target_code or "",
        "targetCompanyId": vote.target_company_id or "",
        "voteType": vote.vote_type or "token",
        "dayKey": vote.day_key,
        "monthKey": vote.month_key,
    }


def _display(code: str, worker: Optional[dict]) -> str:
    # "Full Name (CODE)" when the name is known, else just the code
    name = (worker or {}).get("fullName")
    return f"{name} ({code})" if name else code


def enrich_rows(
    raw_rows: Iterable[dict],
    workers: Dict[str, dict],
    companies: Dict[str, str],
) -> List[dict]:
    """Attach worker display names and company names to raw vote rows."""
    rows = []
    for r in raw_rows:
        voter = workers.get(r["voterCode"])
        target = workers.get(r["targetCode"])
        voter_company_id = r["voterCompanyId"] or (voter or {}).get("companyId", "")
        target_company_id = r["targetCompanyId"] or (target or {}).get("companyId", "")
        row = dict(r)
        row.update({
            "voterCompanyId": voter_company_id,
            "targetCompanyId": target_company_id,
            "voterName": _display(r["voterCode"], voter),
            "voterCompany": companies.get(voter_company_id) or voter_company_id,
            "targetName": _display(r["targetCode"], target),
            "targetCompany": companies.get(target_company_id) or target_company_id,
        })
        rows.append(row)
    return rows


def _sorted_totals(totals: Dict[tuple, dict]) -> List[dict]:
    return sorted(
        totals.values(),
        key=lambda t: (-t["count"], t["project"], t.get("companyName") or t.get("targetName") or ""),
    )


def voter_company_totals(rows: Iterable[dict]) -> List[dict]:
    """Count votes per (project, voter company)."""
    totals: Dict[tuple, dict] = {}
    for r in rows:
        company_id = r["voterCompanyId"] or UNKNOWN
        company_name = r["voterCompany"] or UNKNOWN
        key = (r["project"], company_id)
        if key not in totals:
            totals[key] = {
                "project": r["project"],
                "companyId": company_id,
                "companyName": company_name,
                "count": 0,
            }
        totals[key]["count"] += 1
    return _sorted_totals(totals)


def target_totals(rows: Iterable[dict]) -> List[dict]:
    """Count votes per (project, target worker)."""
    totals: Dict[tuple, dict] = {}
    for r in rows:
        target_name = r["targetName"] or r["targetCode"] or UNKNOWN
        key = (r["project"], target_name)
        if key not in totals:
            totals[key] = {
                "project": r["project"],
                "targetCode": r["targetCode"],
                "targetName": target_name,
                "targetCompanyName": r["targetCompany"] or "",
                "count": 0,
            }
        totals[key]["count"] += 1
    return _sorted_totals(totals)


def target_company_totals(rows: Iterable[dict]) -> List[dict]:
    """Count votes per (project, target company)."""
    totals: Dict[tuple, dict] = {}
    for r in rows:
        company_id = r["targetCompanyId"] or UNKNOWN
        company_name = r["targetCompany"] or UNKNOWN
        key = (r["project"], company_id)
        if key not in totals:
            totals[key] = {
                "project": r["project"],
                "companyId": company_id,
                "companyName": company_name,
                "count": 0,
            }
        totals[key]["count"] += 1
    return _sorted_totals(totals)


def rollups(rows: List[dict], vote_type: str) -> dict:
    """The three groupings restricted to one vote type."""
    subset = [r for r in rows if r["voteType"] == vote_type]
    return {
        "count": len(subset),
        "companyTotals": voter_company_totals(subset),
        "targetTotals": target_totals(subset),
        "targetCompanyTotals": target_company_totals(subset),
    }


def summarize(today_rows: List[dict], month_rows: List[dict]) -> dict:
    """Fold enriched rows into the admin report body."""
    return {
        "todayCount": len(today_rows),
        "todayRows": today_rows,
        "monthRows": month_rows,
        "monthTotals": voter_company_totals(month_rows),
        "tokens": rollups(month_rows, "token"),
        "goodCatch": rollups(month_rows, "goodCatch"),
    }


async def load_lookups(session: AsyncSession, raw_rows: List[dict]):
    """Worker and company lookups for every code/id in the rows."""
    codes = set()
    company_ids = set()
    for r in raw_rows:
        codes.update(c for c in (r["voterCode"], r["targetCode"]) if c)
        company_ids.update(c for c in (r["voterCompanyId"], r["targetCompanyId"]) if c)

    workers: Dict[str, dict] = {}
    if codes:
        result = await session.execute(select(Worker).where(Worker.code.in_(codes)))
        for w in result.scalars().all():
            workers[w.code] = {"fullName": w.full_name, "companyId": w.company_id}
            company_ids.add(w.company_id)

    companies: Dict[str, str] = {}
    company_ids.discard("")
    if company_ids:
        result = await session.execute(select(Company).where(Company.id.in_(company_ids)))
        for c in result.scalars().all():
            companies[c.id] = c.name or c.id

    return workers, companies


async def load_month_rows(session: AsyncSession, month: str, limit: int = MONTH_LIMIT) -> List[dict]:
    result = await session.execute(
        select(Vote).where(Vote.month_key == month).order_by(Vote.id.desc()).limit(limit)
    )
    return [vote_to_raw(v) for v in result.scalars().all()]


async def load_summary(
    session: AsyncSession, month: Optional[str] = None, now: Optional[datetime] = None
) -> dict:
    """
    Build the admin summary for a month.

    Args:
        session: Open session (read only)
        month: ``YYYY-MM``; missing or malformed falls back to the current month
        now: Reference instant for "today" (defaults to wall clock)
    """
    now = now or datetime.now(timezone.utc)
    today = day_key(now)
    month = month if is_valid_month_key(month) else month_key(now)

    result = await session.execute(
        select(Vote).where(Vote.day_key == today).order_by(Vote.id.desc()).limit(TODAY_LIMIT)
    )
    today_raw = [vote_to_raw(v) for v in result.scalars().all()]
    month_raw = await load_month_rows(session, month)

    workers, companies = await load_lookups(session, today_raw + month_raw)

    report = {
        "ok": True,
        "votingOpen": is_voting_open(now),
        "todayKey": today,
        "monthKey": month,
    }
    report.update(summarize(
        enrich_rows(today_raw, workers, companies),
        enrich_rows(month_raw, workers, companies),
    ))
    return report
