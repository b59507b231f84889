#!/usr/bin/env python3
"""
Orphan File Sweep
Reconciles the upload directory with the gallery table: removes gallery
image files that no live row references and lists rows whose file is gone.

Usage:
    python sweep_orphan_files.py             - remove orphan files
    python sweep_orphan_files.py --dry-run   - only report
"""
import argparse
import asyncio
import logging
import sys

from wedding_api.config import settings
from wedding_api.database import AsyncSessionLocal, close_db
from wedding_api.services.gallery_service import sweep_orphan_files

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("sweep_orphan_files")


async def run(dry_run: bool):
    async with AsyncSessionLocal() as db:
        report = await sweep_orphan_files(db, dry_run=dry_run)
    await close_db()
    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Remove gallery files with no live database row.")
    parser.add_argument("--dry-run", action="store_true", help="report orphans without deleting them")
    args = parser.parse_args(argv)

    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set")
        return 1

    report = asyncio.run(run(args.dry_run))

    for name in report.orphan_files:
        action = "removed" if name in report.removed_files else "orphan"
        print(f"{action}: {name}")
    for name in report.missing_files:
        print(f"missing file for live row: {name}")
    print(
        f"{len(report.orphan_files)} orphan(s), {len(report.removed_files)} removed, "
        f"{len(report.missing_files)} missing"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
