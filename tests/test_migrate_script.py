import asyncio
import importlib.util
from pathlib import Path

import pytest
from sqlalchemy import select

from conftest import add_rows, run_in_session
from src.models import Worker

SCRIPT = Path(__file__).parent.parent / "scripts" / "migrate_legacy_workers.py"


@pytest.fixture
def script(seeded, monkeypatch):
    spec = importlib.util.spec_from_file_location("migrate_legacy_workers", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    async def no_init():
        return None

    monkeypatch.setattr(module, "async_session_maker", seeded)
    monkeypatch.setattr(module, "init_db", no_init)
    return module


def _legacy(code, name, company):
    return Worker(code=code, project="NBK", full_name=name, full_name_lower=name.lower(), company_id=company)


async def _codes(session):
    result = await session.execute(select(Worker.code).order_by(Worker.code))
    return list(result.scalars().all())


def test_batch_migration(script, seeded):
    add_rows(
        seeded,
        _legacy("NBK-0101", "First Legacy", "c-acme"),
        _legacy("NBK-0102", "Second Legacy", "c-bravo"),
        # canonical NBK0007 already exists, so this duplicate is left alone
        _legacy("NBK-0007", "Duplicate", "c-bravo"),
    )

    assert asyncio.run(script.migrate_all()) == 2

    codes = run_in_session(seeded, _codes)
    assert "NBK0101" in codes
    assert "NBK0102" in codes
    assert "NBK-0101" not in codes
    assert "NBK-0007" in codes

    # second run has nothing left to move
    assert asyncio.run(script.migrate_all()) == 0


def test_dry_run_changes_nothing(script, seeded):
    add_rows(seeded, _legacy("NBK-0101", "First Legacy", "c-acme"))
    assert asyncio.run(script.migrate_all(dry_run=True)) == 0
    assert "NBK-0101" in run_in_session(seeded, _codes)
