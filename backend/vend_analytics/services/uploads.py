"""
Upload job lifecycle around the import pipeline: parse, open the job, import,
close the job. Parsing happens first so a malformed file never leaves a job
or any other row behind.
"""

import logging
from datetime import date
from typing import Dict, Optional, Tuple, Union
from uuid import UUID

from vend_analytics.core.constants import PLATFORMS
from vend_analytics.etl.csv_parser import (
    CsvParseError,
    ParseResult,
    extract_date_range_from_filename,
    parse_csv,
)
from vend_analytics.etl.importer import ProgressCallback, import_sales_data
from vend_analytics.models.upload import UploadJob
from vend_analytics.schemas.upload import ImportResult, UploadPreview

logger = logging.getLogger(__name__)


def decode_upload(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvParseError(f"File is not valid UTF-8 text: {e}") from e


def parse_upload(
    content: Union[bytes, str],
    platform: Optional[str] = None,
    mapping: Optional[Dict[str, str]] = None,
) -> ParseResult:
    if platform and platform not in PLATFORMS:
        raise ValueError(f"Unknown platform '{platform}'; expected one of {', '.join(PLATFORMS)}")
    return parse_csv(decode_upload(content), custom_mapping=mapping, platform=platform)


def resolve_period(
    filename: str,
    period_start: Optional[Union[str, date]] = None,
    period_end: Optional[Union[str, date]] = None,
) -> Tuple[date, date]:
    """
    Explicit dates win; otherwise fall back to the "from .. to .." range in
    the filename. Raises ValueError when neither gives a complete period.
    """
    if period_start is None and period_end is None:
        detected = extract_date_range_from_filename(filename)
        if detected is None:
            raise ValueError(
                "Could not detect the reporting period from the filename; "
                "supply period_start and period_end"
            )
        period_start, period_end = detected.start_date, detected.end_date
    elif period_start is None or period_end is None:
        raise ValueError("Both period_start and period_end are required")

    start = period_start if isinstance(period_start, date) else date.fromisoformat(period_start)
    end = period_end if isinstance(period_end, date) else date.fromisoformat(period_end)
    if start > end:
        raise ValueError(f"period_start {start} is after period_end {end}")
    return start, end


def preview_upload(
    filename: str,
    content: Union[bytes, str],
    platform: Optional[str] = None,
    mapping: Optional[Dict[str, str]] = None,
    sample_size: int = 5,
) -> UploadPreview:
    parsed = parse_upload(content, platform, mapping)
    detected = extract_date_range_from_filename(filename)
    return UploadPreview(
        filename=filename,
        platform=parsed.platform,
        headers=parsed.headers,
        mapping=parsed.mapping,
        total_rows=len(parsed.rows),
        sample_rows=[row.model_dump(exclude={"raw"}) for row in parsed.rows[:sample_size]],
        date_range=detected.model_dump() if detected else None,
        errors=parsed.errors,
    )


async def run_upload(
    store,
    account_id: UUID,
    filename: str,
    content: Union[bytes, str],
    period_start: Optional[Union[str, date]] = None,
    period_end: Optional[Union[str, date]] = None,
    platform: Optional[str] = None,
    mapping: Optional[Dict[str, str]] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[UploadJob, ImportResult]:
    """
    Parse and import one file for an account, recording it as an upload job.
    The job ends "failed" when the import reported any error, else "completed".
    """
    parsed = parse_upload(content, platform, mapping)
    start, end = resolve_period(filename, period_start, period_end)

    account = await store.get_account(account_id)
    if account is None:
        raise LookupError(f"Account {account_id} not found")

    job = await store.create_upload(
        account_id=account_id,
        filename=filename,
        platform=parsed.platform,
        period_start=start,
        period_end=end,
        total_rows=len(parsed.rows),
    )
    logger.info(f"Upload {job.id}: importing {len(parsed.rows)} rows from '{filename}' ({parsed.platform})")

    result = await import_sales_data(store, account_id, parsed.rows, job.id, start, end, on_progress=on_progress)

    status = "failed" if result.errors else "completed"
    job = await store.finish_upload(
        job.id,
        status=status,
        imported_rows=result.imported_rows,
        duplicate_rows=result.duplicate_rows,
        error_message="; ".join(result.errors) if result.errors else None,
    )
    await store.mark_onboarded(account_id)

    if result.errors:
        logger.error(f"Upload {job.id} finished with {len(result.errors)} error(s): {job.error_message}")
    else:
        logger.info(
            f"Upload {job.id} completed: {result.imported_rows} imported, {result.duplicate_rows} duplicates"
        )
    return job, result
