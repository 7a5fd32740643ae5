from datetime import timedelta

from conftest import NOW, run_in_session
from src.summary.aggregator import (
    enrich_rows,
    load_summary,
    rollups,
    target_company_totals,
    target_totals,
    voter_company_totals,
)
from src.summary.export import build_export
from src.voting.admission import submit_vote

import pytest


def raw(id, voter, target, voter_co, target_co, vote_type="token", project="NBK"):
    return {
        "id": id,
        "time": "2025-06-15T12:00:00+00:00",
        "project": project,
        "voterCode": voter,
        "voterCompanyId": voter_co,
        "targetCode": target,
        "targetCompanyId": target_co,
        "voteType": vote_type,
        "dayKey": "2025-06-15",
        "monthKey": "2025-06",
    }


WORKERS = {
    "NBK0007": {"fullName": "Ada Voter", "companyId": "c-acme"},
    "NBK0012": {"fullName": "Cora Target", "companyId": "c-bravo"},
}
COMPANIES = {"c-acme": "ACME Construction", "c-bravo": "Bravo Builders"}


def test_enrich_uses_names_and_falls_back():
    rows = enrich_rows([
        raw(1, "NBK0007", "NBK0012", "c-acme", "c-bravo"),
        raw(2, "NBK0099", "NBK0098", "c-ghost", ""),
    ], WORKERS, COMPANIES)

    assert rows[0]["voterName"] == "Ada Voter (NBK0007)"
    assert rows[0]["voterCompany"] == "ACME Construction"
    assert rows[0]["targetCompany"] == "Bravo Builders"
    # unknown worker shows the bare code, unknown company the raw id
    assert rows[1]["voterName"] == "NBK0099"
    assert rows[1]["voterCompany"] == "c-ghost"
    assert rows[1]["targetCompany"] == ""


def test_groupings():
    rows = enrich_rows([
        raw(1, "NBK0007", "NBK0012", "c-acme", "c-bravo"),
        raw(2, "NBK0007", "NBK0012", "c-acme", "c-bravo"),
        raw(3, "NBK0099", "NBK0012", "", "c-bravo"),
        raw(4, "JP0001", "JP0002", "c-bravo", "c-acme", project="JP"),
    ], WORKERS, COMPANIES)

    by_company = voter_company_totals(rows)
    assert by_company[0] == {
        "project": "NBK", "companyId": "c-acme", "companyName": "ACME Construction", "count": 2,
    }
    assert {(t["project"], t["companyName"], t["count"]) for t in by_company} == {
        ("NBK", "ACME Construction", 2),
        ("NBK", "(Unknown)", 1),
        ("JP", "Bravo Builders", 1),
    }

    targets = target_totals(rows)
    assert targets[0]["targetName"] == "Cora Target (NBK0012)"
    assert targets[0]["count"] == 3

    target_companies = target_company_totals(rows)
    assert [(t["project"], t["companyName"], t["count"]) for t in target_companies] == [
        ("NBK", "Bravo Builders", 3),
        ("JP", "ACME Construction", 1),
    ]


def test_company_totals_keep_ids_with_same_name_apart():
    companies = {"c1": "Acme", "c2": "Acme", "c3": "Bravo"}
    rows = enrich_rows([
        raw(1, "NBK0101", "NBK0201", "c1", "c3"),
        raw(2, "NBK0102", "NBK0202", "c2", "c3"),
        raw(3, "NBK0103", "NBK0101", "c3", "c1"),
        raw(4, "NBK0104", "NBK0102", "c3", "c2"),
    ], {}, companies)

    by_voter_company = voter_company_totals(rows)
    assert {(t["companyId"], t["companyName"], t["count"]) for t in by_voter_company} == {
        ("c1", "Acme", 1), ("c2", "Acme", 1), ("c3", "Bravo", 2),
    }

    by_target_company = target_company_totals(rows)
    assert {(t["companyId"], t["companyName"], t["count"]) for t in by_target_company} == {
        ("c1", "Acme", 1), ("c2", "Acme", 1), ("c3", "Bravo", 2),
    }

    _, text = build_export(rows, "totals", "2025-06")
    assert text.count("NBK,Acme,1") == 2


def test_rollups_split_by_vote_type():
    rows = enrich_rows([
        raw(1, "NBK0007", "NBK0012", "c-acme", "c-bravo"),
        raw(2, "NBK0030", "NBK0012", "WALSH", "c-bravo", vote_type="goodCatch"),
    ], WORKERS, COMPANIES)

    tokens = rollups(rows, "token")
    catches = rollups(rows, "goodCatch")
    assert tokens["count"] == 1
    assert catches["count"] == 1
    assert catches["companyTotals"][0]["companyName"] == "WALSH"
    assert tokens["targetTotals"][0]["count"] == 1


def test_load_summary(seeded):
    run_in_session(seeded, submit_vote, "NBK0007", "NBK0012", now=NOW)
    run_in_session(seeded, submit_vote, "NBK0030", "NBK0012", "goodCatch", now=NOW)
    run_in_session(seeded, submit_vote, "NBK0008", "NBK0012", now=NOW - timedelta(days=3))

    report = run_in_session(seeded, load_summary, "2025-06", now=NOW)
    assert report["ok"] is True
    assert report["votingOpen"] is True
    assert report["todayKey"] == "2025-06-15"
    assert report["monthKey"] == "2025-06"
    assert report["todayCount"] == 2
    assert len(report["monthRows"]) == 3
    assert report["monthTotals"][0] == {
        "project": "NBK", "companyId": "c-acme", "companyName": "ACME Construction", "count": 2,
    }
    assert report["tokens"]["targetTotals"][0]["count"] == 2
    assert report["goodCatch"]["companyTotals"][0]["companyName"] == "Walsh Construction"

    empty = run_in_session(seeded, load_summary, "2025-01", now=NOW)
    assert empty["monthRows"] == []
    assert empty["todayCount"] == 2

    fallback = run_in_session(seeded, load_summary, "garbage", now=NOW)
    assert fallback["monthKey"] == "2025-06"


def test_csv_exports():
    rows = enrich_rows([
        raw(1, "NBK0007", "NBK0012", "c-acme", "c-bravo"),
        raw(2, "NBK0030", "NBK0012", "WALSH", "c-bravo", vote_type="goodCatch"),
    ], WORKERS, COMPANIES)

    filename, body = build_export(rows, "rows", "2025-06")
    assert filename == "votes-2025-06.csv"
    lines = body.strip().split("\n")
    assert lines[0].startswith("Id,Project,Date,Time,DateTimeISO,Voter")
    assert len(lines) == 3

    filename, body = build_export(rows, "totals", "2025-06")
    assert filename == "votes-by-company-2025-06.csv"
    assert "NBK,ACME Construction,1" in body

    filename, body = build_export(rows, "targets", "2025-06")
    assert filename == "top-targets-2025-06.csv"
    # Good Catches are not tokens
    assert body.strip().split("\n")[1] == "NBK,Cora Target (NBK0012),Bravo Builders,1"


def test_csv_escapes_commas():
    workers = {"NBK0007": {"fullName": "Voter, Ada", "companyId": "c-acme"}}
    rows = enrich_rows([raw(1, "NBK0007", "NBK0012", "c-acme", "c-bravo")], workers, COMPANIES)
    _, body = build_export(rows, "rows", "2025-06")
    assert '"Voter, Ada (NBK0007)"' in body


def test_unknown_export_type():
    with pytest.raises(ValueError):
        build_export([], "pie-chart", "2025-06")
