"""CSV renderings of the monthly summary."""
import csv
import io
from datetime import datetime
from typing import List, Tuple

from src.summary.aggregator import target_totals, voter_company_totals
from src.time_keys import local_now

EXPORT_TYPES = ("rows", "totals", "targets")

ROW_HEADER = [
    "Id", "Project", "Date", "Time", "DateTimeISO",
    "Voter", "VoterCode", "VoterCompany",
    "Target", "TargetCode", "TargetCompany", "VoteType",
]


class UnknownExportType(ValueError):
    pass


def _write(header: List[str], lines) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(lines)
    return buf.getvalue()


def _local_parts(iso: str) -> Tuple[str, str]:
    if not iso:
        return "", ""
    local = local_now(datetime.fromisoformat(iso))
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def rows_csv(rows: List[dict]) -> str:
    # newest first
    ordered = sorted(rows, key=lambda r: (r["time"], r["id"]), reverse=True)
    lines = []
    for r in ordered:
        date_local, time_local = _local_parts(r["time"])
        lines.append([
            r["id"], r["project"], date_local, time_local, r["time"],
            r["voterName"], r["voterCode"], r["voterCompany"],
            r["targetName"], r["targetCode"], r["targetCompany"], r["voteType"],
        ])
    return _write(ROW_HEADER, lines)


def totals_csv(rows: List[dict]) -> str:
    return _write(
        ["Project", "Company", "Votes"],
        [[t["project"], t["companyName"], t["count"]] for t in voter_company_totals(rows)],
    )


def targets_csv(rows: List[dict]) -> str:
    tokens = [r for r in rows if r["voteType"] == "token"]
    return _write(
        ["Project", "Target", "TargetCompany", "Tokens"],
        [[t["project"], t["targetName"], t["targetCompanyName"], t["count"]]
         for t in target_totals(tokens)],
    )


def build_export(rows: List[dict], export_type: str, month: str) -> Tuple[str, str]:
    """
    Render enriched month rows as CSV.

    Returns:
        (filename, csv text)

    Raises:
        UnknownExportType: export_type is not rows/totals/targets
    """
    export_type = (export_type or "rows").lower()
    if export_type == "rows":
        return f"votes-{month}.csv", rows_csv(rows)
    if export_type == "totals":
        return f"votes-by-company-{month}.csv", totals_csv(rows)
    if export_type == "targets":
        return f"top-targets-{month}.csv", targets_csv(rows)
    raise UnknownExportType(f"Unknown export type: {export_type}")
