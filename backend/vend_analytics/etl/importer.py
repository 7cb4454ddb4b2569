# backend/vend_analytics/etl/importer.py

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional, Union
from uuid import UUID

from vend_analytics.core.config import settings
from vend_analytics.etl.csv_parser import ParsedSalesRow
from vend_analytics.etl.fingerprint import create_fingerprint
from vend_analytics.etl.resolver import EntityCaches, resolve_entities
from vend_analytics.schemas.upload import ImportProgress, ImportResult, ImportStage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]


def _as_date(value: Union[str, date]) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


def stage_sales_records(
    account_id: UUID,
    rows: List[ParsedSalesRow],
    upload_id: Optional[UUID],
    period_start: date,
    period_end: date,
    caches: EntityCaches,
    result: ImportResult,
) -> List[dict]:
    """
    Turn parsed rows into sales_records payloads, dropping every row whose
    fingerprint is already known (from the database or earlier in this batch).
    """
    staged = []
    for row in rows:
        fingerprint = create_fingerprint(
            account_id,
            row.serial_number,
            row.location,
            row.payment_method,
            row.product_type,
            period_start,
            period_end,
            row.amount,
            row.tran_count,
        )
        if fingerprint in caches.fingerprints:
            result.duplicate_rows += 1
            continue
        caches.fingerprints.add(fingerprint)

        staged.append({
            "account_id": account_id,
            "upload_id": upload_id,
            "region_id": caches.region_id(row.region),
            "location_id": caches.location_id(row.location),
            "machine_id": caches.machine_id(row.serial_number),
            "period_start": period_start,
            "period_end": period_end,
            "product_type": row.product_type or None,
            "payment_method": row.payment_method or None,
            "payment_category": row.payment_category or "other",
            "tran_count": row.tran_count,
            "vend_count": row.vend_count,
            "amount": row.amount,
            "two_tier_pricing": row.two_tier_pricing,
            "loyalty_discount": row.loyalty_discount,
            "campaign_name": row.campaign_name or None,
            "purchase_discount": row.purchase_discount,
            "free_product_discount": row.free_product_discount,
            "fingerprint": fingerprint,
            "raw_data": row.raw,
        })
    return staged


async def import_sales_data(
    store,
    account_id: UUID,
    rows: List[ParsedSalesRow],
    upload_id: Optional[UUID],
    period_start: Union[str, date],
    period_end: Union[str, date],
    on_progress: Optional[ProgressCallback] = None,
    batch_size: Optional[int] = None,
) -> ImportResult:
    """
    Import parsed rows for one account:
    1. Load existing regions/locations/machines/fingerprints (concurrently)
    2. Create missing regions, locations, machines
    3. Drop rows whose fingerprint was seen before
    4. Insert the rest in fixed-size batches; a failed batch is recorded and
       the next batch is still attempted

    Never raises: every failure ends up in `ImportResult.errors`.
    """
    batch_size = batch_size or settings.import_batch_size
    result = ImportResult(total_rows=len(rows))
    caches = EntityCaches()

    def report(stage: ImportStage, current: int, total: int, message: str) -> None:
        logger.info(f"[{stage.value}] {message}")
        if on_progress is None:
            return
        try:
            on_progress(ImportProgress(stage=stage, current=current, total=total, message=message))
        except Exception as e:
            logger.warning(f"Progress callback failed at stage {stage.value}: {e}")

    try:
        period_start = _as_date(period_start)
        period_end = _as_date(period_end)

        report(ImportStage.LOADING_EXISTING, 0, 1, "Loading existing data...")
        regions, locations, machines, fingerprints = await asyncio.gather(
            store.region_keys(account_id),
            store.location_keys(account_id),
            store.machine_keys(account_id),
            store.fingerprints(account_id),
        )
        caches.regions.update(regions)
        caches.locations.update(locations)
        caches.machines.update(machines)
        caches.fingerprints.update(fingerprints)

        await resolve_entities(store, account_id, rows, caches, result, report)

        staged = stage_sales_records(account_id, rows, upload_id, period_start, period_end, caches, result)
        if not staged:
            report(ImportStage.INSERTING_SALES, 0, 0, "No new rows to import")

        for i in range(0, len(staged), batch_size):
            batch = staged[i:i + batch_size]
            report(
                ImportStage.INSERTING_SALES,
                i,
                len(staged),
                f"Importing rows {i + 1} - {min(i + batch_size, len(staged))}...",
            )
            try:
                await store.insert_sales(batch)
            except Exception as e:
                batch_no = i // batch_size + 1
                logger.error(f"Sales batch {batch_no} failed for account {account_id}: {e}")
                result.errors.append(f"Error inserting batch {batch_no}: {e}")
                continue
            result.imported_rows += len(batch)

    except Exception as e:
        logger.exception(f"Unexpected import error for account {account_id}: {e}")
        result.errors.append(f"Unexpected error: {e}")

    report(
        ImportStage.DONE,
        result.imported_rows,
        result.total_rows,
        f"Imported {result.imported_rows} of {result.total_rows} rows "
        f"({result.duplicate_rows} duplicates, {len(result.errors)} errors)",
    )
    return result
