"""
Persistence for the import pipeline and dashboard.

Every call opens its own session from the factory, so independent reads can
be awaited together with asyncio.gather and each bulk write commits (or fails)
on its own.
"""

import uuid
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set
from uuid import UUID

from sqlalchemy import select, update

from vend_analytics.core.db import AsyncSessionLocal
from vend_analytics.models.account import Account
from vend_analytics.models.fleet import Region, Location, Machine
from vend_analytics.models.sales import SalesRecord
from vend_analytics.models.upload import UploadJob

logger = logging.getLogger(__name__)

_MONEY_FIELDS = (
    "amount",
    "two_tier_pricing",
    "loyalty_discount",
    "purchase_discount",
    "free_product_discount",
)


def _money(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value or 0))


class SalesStore:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or AsyncSessionLocal

    # --- accounts -------------------------------------------------------

    async def create_account(self, name: str) -> Account:
        async with self.session_factory() as session:
            account = Account(id=uuid.uuid4(), name=name, onboarding_completed=False)
            session.add(account)
            await session.commit()
            await session.refresh(account)
            return account

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        async with self.session_factory() as session:
            return await session.get(Account, account_id)

    async def mark_onboarded(self, account_id: UUID) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(Account).where(Account.id == account_id).values(onboarding_completed=True)
            )
            await session.commit()

    # --- identity maps for the importer -----------------------------------

    async def region_keys(self, account_id: UUID) -> Dict[str, UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Region.normalized_name, Region.id).where(Region.account_id == account_id)
            )
            return {name: rid for name, rid in result.all()}

    async def location_keys(self, account_id: UUID) -> Dict[str, UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Location.normalized_name, Location.id).where(Location.account_id == account_id)
            )
            return {name: lid for name, lid in result.all()}

    async def machine_keys(self, account_id: UUID) -> Dict[str, UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Machine.serial_number, Machine.id).where(Machine.account_id == account_id)
            )
            return {serial: mid for serial, mid in result.all()}

    async def fingerprints(self, account_id: UUID) -> Set[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SalesRecord.fingerprint).where(SalesRecord.account_id == account_id)
            )
            return set(result.scalars().all())

    # --- bulk writes ------------------------------------------------------

    async def _add_all(self, objects: list) -> None:
        async with self.session_factory() as session:
            session.add_all(objects)
            await session.commit()

    async def create_regions(self, account_id: UUID, items: List[dict]) -> Dict[str, UUID]:
        regions = [Region(id=uuid.uuid4(), account_id=account_id, **item) for item in items]
        await self._add_all(regions)
        return {r.normalized_name: r.id for r in regions}

    async def create_locations(self, account_id: UUID, items: List[dict]) -> Dict[str, UUID]:
        locations = [Location(id=uuid.uuid4(), account_id=account_id, **item) for item in items]
        await self._add_all(locations)
        return {loc.normalized_name: loc.id for loc in locations}

    async def create_machines(self, account_id: UUID, items: List[dict]) -> Dict[str, UUID]:
        machines = [Machine(id=uuid.uuid4(), account_id=account_id, **item) for item in items]
        await self._add_all(machines)
        return {m.serial_number: m.id for m in machines}

    async def insert_sales(self, records: List[dict]) -> int:
        rows = []
        for record in records:
            values = dict(record)
            for key in _MONEY_FIELDS:
                values[key] = _money(values.get(key))
            rows.append(SalesRecord(id=uuid.uuid4(), **values))
        await self._add_all(rows)
        return len(rows)

    # --- upload jobs ------------------------------------------------------

    async def create_upload(
        self,
        account_id: UUID,
        filename: str,
        platform: str,
        period_start: Optional[date],
        period_end: Optional[date],
        total_rows: int,
    ) -> UploadJob:
        async with self.session_factory() as session:
            job = UploadJob(
                id=uuid.uuid4(),
                account_id=account_id,
                filename=filename,
                platform=platform,
                period_start=period_start,
                period_end=period_end,
                status="processing",
                total_rows=total_rows,
                imported_rows=0,
                duplicate_rows=0,
            )
            session.add(job)
            await session.commit()
            await session.refresh(job)
            return job

    async def finish_upload(
        self,
        upload_id: UUID,
        status: str,
        imported_rows: int,
        duplicate_rows: int,
        error_message: Optional[str],
    ) -> UploadJob:
        async with self.session_factory() as session:
            job = await session.get(UploadJob, upload_id)
            if job is None:
                raise LookupError(f"Upload {upload_id} not found")
            job.status = status
            job.imported_rows = imported_rows
            job.duplicate_rows = duplicate_rows
            job.error_message = error_message
            job.completed_at = datetime.now()
            await session.commit()
            await session.refresh(job)
            return job

    async def list_uploads(self, account_id: UUID) -> List[UploadJob]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UploadJob)
                .where(UploadJob.account_id == account_id)
                .order_by(UploadJob.created_at.desc(), UploadJob.completed_at.desc())
            )
            return list(result.scalars().all())

    # --- reads for the dashboard -------------------------------------------

    async def list_sales(
        self,
        account_id: UUID,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        location_id: Optional[UUID] = None,
        machine_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> List[SalesRecord]:
        query = select(SalesRecord).where(SalesRecord.account_id == account_id)
        if period_start:
            query = query.where(SalesRecord.period_start >= period_start)
        if period_end:
            query = query.where(SalesRecord.period_end <= period_end)
        if location_id:
            query = query.where(SalesRecord.location_id == location_id)
        if machine_id:
            query = query.where(SalesRecord.machine_id == machine_id)
        query = query.order_by(SalesRecord.period_start.desc())
        if limit:
            query = query.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_regions(self, account_id: UUID) -> List[Region]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Region).where(Region.account_id == account_id).order_by(Region.name)
            )
            return list(result.scalars().all())

    async def list_locations(self, account_id: UUID) -> List[Location]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Location).where(Location.account_id == account_id).order_by(Location.name)
            )
            return list(result.scalars().all())

    async def list_machines(self, account_id: UUID) -> List[Machine]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Machine).where(Machine.account_id == account_id).order_by(Machine.serial_number)
            )
            return list(result.scalars().all())

    async def get_location(self, account_id: UUID, location_id: UUID) -> Optional[Location]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Location).where(Location.account_id == account_id, Location.id == location_id)
            )
            return result.scalar_one_or_none()

    async def get_machine(self, account_id: UUID, machine_id: UUID) -> Optional[Machine]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Machine).where(Machine.account_id == account_id, Machine.id == machine_id)
            )
            return result.scalar_one_or_none()


# Dependency
def get_store() -> SalesStore:
    return SalesStore(AsyncSessionLocal)
