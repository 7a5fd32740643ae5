import asyncio
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from src.database import build_engine, build_session_maker, get_session, init_db
from src.main import app
from src.models import Company, Worker

# Mid-month, mid-day UTC so keys are the same in any nearby timezone
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

COMPANIES = [
    ("c-acme", "ACME Construction"),
    ("c-bravo", "Bravo Builders"),
    ("WALSH", "Walsh Construction"),
]

WORKERS = [
    ("NBK0007", "NBK", "Ada Voter", "c-acme"),
    ("NBK0008", "NBK", "Ben Coworker", "c-acme"),
    ("NBK0012", "NBK", "Cora Target", "c-bravo"),
    ("NBK0030", "NBK", "Walt Walsh", "WALSH"),
    ("JP0001", "JP", "Jun Other", "c-bravo"),
]


def run_in_session(maker, fn, *args, **kwargs):
    """Run ``fn(session, *args)`` inside a fresh session and event loop."""
    async def _run():
        async with maker() as session:
            return await fn(session, *args, **kwargs)
    return asyncio.run(_run())


def add_rows(maker, *rows):
    async def _add(session):
        session.add_all(rows)
        await session.commit()
    run_in_session(maker, _add)


@pytest.fixture
def session_maker(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tokens.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield build_session_maker(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def seeded(session_maker):
    add_rows(session_maker, *[Company(id=cid, name=name) for cid, name in COMPANIES])
    add_rows(session_maker, *[
        Worker(code=code, project=project, full_name=name, full_name_lower=name.lower(), company_id=cid)
        for code, project, name, cid in WORKERS
    ])
    return session_maker


@pytest.fixture
def client(seeded):
    async def override_session():
        async with seeded() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
