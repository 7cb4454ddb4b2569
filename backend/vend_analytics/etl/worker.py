"""
Import a sales CSV from the command line:

    python -m vend_analytics.etl.worker report.csv --account-id <uuid>

The reporting period is taken from --start/--end or, when both are omitted,
from the filename.
"""

import argparse
import asyncio
import logging
import os
import sys
from uuid import UUID

from vend_analytics.core.config import settings
from vend_analytics.core.db import engine, init_db
from vend_analytics.services.store import SalesStore
from vend_analytics.services.uploads import run_upload

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def log_progress(progress) -> None:
    logger.info(f"{progress.stage.value}: {progress.current}/{progress.total} {progress.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a vending sales report")
    parser.add_argument("file", help="path to the CSV report")
    parser.add_argument("--account-id", required=True, type=UUID)
    parser.add_argument("--start", help="period start, YYYY-MM-DD")
    parser.add_argument("--end", help="period end, YYYY-MM-DD")
    parser.add_argument("--platform", help="force the platform instead of detecting it")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    with open(args.file, "rb") as fh:
        content = fh.read()

    await init_db()
    try:
        job, result = await run_upload(
            SalesStore(),
            args.account_id,
            os.path.basename(args.file),
            content,
            period_start=args.start,
            period_end=args.end,
            platform=args.platform,
            on_progress=log_progress,
        )
    finally:
        await engine.dispose()

    logger.info(
        f"Worker finished upload {job.id}: {result.imported_rows} imported, "
        f"{result.duplicate_rows} duplicates, {len(result.errors)} errors"
    )
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
