#!/usr/bin/env python3
"""Move every worker still stored under a dashed code (NBK-0001) to its canonical code."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from src.codes import normalize_sticker, to_dashed
from src.database import async_session_maker, init_db
from src.models import Worker
from src.workers.directory import list_legacy_codes, migrate_legacy_worker


async def migrate_all(dry_run: bool = False) -> int:
    """Migrate all legacy rows; returns how many were moved."""
    await init_db()

    migrated = 0
    async with async_session_maker() as session:
        legacy_codes = await list_legacy_codes(session)
        print(f"Found {len(legacy_codes)} legacy worker records")

        for legacy_code in legacy_codes:
            code = normalize_sticker(legacy_code, strict=True)
            if not code or to_dashed(code) != legacy_code:
                print(f"  ✗ {legacy_code}: not a dashed sticker code, skipped")
                continue
            if await session.get(Worker, code) is not None:
                print(f"  ✗ {legacy_code}: {code} already exists, left for manual review")
                continue
            if dry_run:
                print(f"  {legacy_code} -> {code} (dry run)")
                continue

            await migrate_legacy_worker(session, code, trigger="batch")
            await session.commit()
            migrated += 1
            print(f"  ✓ {legacy_code} -> {code}")

    return migrated


if __name__ == "__main__":
    dry_run = "--dry-run" in sys.argv[1:]
    count = asyncio.run(migrate_all(dry_run=dry_run))
    print(f"\nMigration complete: {count} records moved")
