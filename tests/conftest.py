import os
import uuid
from types import SimpleNamespace

import pytest

# core.db reads this at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from vend_analytics.core.db import create_engine_for, init_db
from vend_analytics.services.store import SalesStore

CANTALOUPE_CSV = (
    "Trans Type Name,Serial #,Tran Count,Vend Count,Region,Location,Amount\n"
    "Cash,SN1,2,3,East,Store 1,$10.00\n"
)


class FakeStore:
    """
    In-memory stand-in for SalesStore covering what the importer calls.
    `fail_on` names methods that raise; `fail_sales_batches` lists 1-based
    insert_sales calls that raise.
    """

    def __init__(self, fail_on=(), fail_sales_batches=()):
        self.regions = {}
        self.locations = {}
        self.machines = {}
        self.sales = []
        self.fail_on = set(fail_on)
        self.fail_sales_batches = set(fail_sales_batches)
        self.calls = []
        self.batches = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")

    async def region_keys(self, account_id):
        self._maybe_fail("region_keys")
        return {k: v["id"] for k, v in self.regions.items()}

    async def location_keys(self, account_id):
        self._maybe_fail("location_keys")
        return {k: v["id"] for k, v in self.locations.items()}

    async def machine_keys(self, account_id):
        self._maybe_fail("machine_keys")
        return {k: v["id"] for k, v in self.machines.items()}

    async def fingerprints(self, account_id):
        self._maybe_fail("fingerprints")
        return {s["fingerprint"] for s in self.sales}

    async def _create(self, name, table, key, items):
        self._maybe_fail(name)
        created = {}
        for item in items:
            row = dict(item, id=uuid.uuid4())
            table[item[key]] = row
            created[item[key]] = row["id"]
        return created

    async def create_regions(self, account_id, items):
        return await self._create("create_regions", self.regions, "normalized_name", items)

    async def create_locations(self, account_id, items):
        return await self._create("create_locations", self.locations, "normalized_name", items)

    async def create_machines(self, account_id, items):
        return await self._create("create_machines", self.machines, "serial_number", items)

    async def insert_sales(self, records):
        self._maybe_fail("insert_sales")
        self.batches.append(len(records))
        if len(self.batches) in self.fail_sales_batches:
            raise RuntimeError("connection reset")
        self.sales.extend(records)
        return len(records)


@pytest.fixture
def account_id():
    return uuid.uuid4()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
async def store():
    """SalesStore over a fresh in-memory sqlite database."""
    engine = create_engine_for("sqlite+aiosqlite:///:memory:")
    await init_db(bind=engine)
    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield SalesStore(factory)
    await engine.dispose()


def sale(amount, vends=1, trans=1, region_id=None, location_id=None, machine_id=None,
         product_type="Snack", payment_category="cash", **extra):
    """A sales row shaped like the ORM object, for the pure analytics functions."""
    values = dict(
        region_id=region_id,
        location_id=location_id,
        machine_id=machine_id,
        product_type=product_type,
        payment_category=payment_category,
        tran_count=trans,
        vend_count=vends,
        amount=amount,
        two_tier_pricing=0,
        loyalty_discount=0,
        purchase_discount=0,
        free_product_discount=0,
    )
    values.update(extra)
    return SimpleNamespace(**values)


def entity(**fields):
    fields.setdefault("id", uuid.uuid4())
    return SimpleNamespace(**fields)
