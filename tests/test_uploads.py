import uuid
from datetime import date
from types import SimpleNamespace

import pytest

from vend_analytics.etl.csv_parser import CsvParseError
from vend_analytics.services.uploads import decode_upload, preview_upload, resolve_period, run_upload

from conftest import CANTALOUPE_CSV, FakeStore

FILENAME = "Sales Rollup - From 10-01-2025 to 12-31-2025.csv"


class JobStore(FakeStore):
    """FakeStore plus the account and upload-job calls run_upload makes."""

    def __init__(self, accounts=(), **kwargs):
        super().__init__(**kwargs)
        self.accounts = {a: SimpleNamespace(id=a, onboarding_completed=False) for a in accounts}
        self.jobs = {}

    async def get_account(self, account_id):
        return self.accounts.get(account_id)

    async def mark_onboarded(self, account_id):
        self.accounts[account_id].onboarding_completed = True

    async def create_upload(self, **fields):
        job = SimpleNamespace(id=uuid.uuid4(), status="processing", error_message=None, **fields)
        self.jobs[job.id] = job
        return job

    async def finish_upload(self, upload_id, status, imported_rows, duplicate_rows, error_message):
        job = self.jobs[upload_id]
        job.status = status
        job.imported_rows = imported_rows
        job.duplicate_rows = duplicate_rows
        job.error_message = error_message
        return job


def test_decode_strips_bom_and_rejects_binary():
    assert decode_upload("\ufeffA\n".encode("utf-8")) == "A\n"
    with pytest.raises(CsvParseError):
        decode_upload(b"\xff\xfe\x00\x00")


def test_period_prefers_explicit_dates():
    assert resolve_period(FILENAME, "2025-01-01", "2025-01-31") == (date(2025, 1, 1), date(2025, 1, 31))
    assert resolve_period(FILENAME) == (date(2025, 10, 1), date(2025, 12, 31))


@pytest.mark.parametrize("args", [
    ("export.csv",),
    (FILENAME, "2025-01-01", None),
    ("export.csv", "2025-02-01", "2025-01-01"),
])
def test_period_errors(args):
    with pytest.raises(ValueError):
        resolve_period(*args)


def test_preview_does_not_need_a_store():
    preview = preview_upload(FILENAME, CANTALOUPE_CSV.encode())
    assert preview.platform == "cantaloupe"
    assert preview.total_rows == 1
    assert preview.sample_rows[0]["payment_category"] == "cash"
    assert "raw" not in preview.sample_rows[0]
    assert preview.date_range == {"start_date": "2025-10-01", "end_date": "2025-12-31"}


def test_preview_rejects_unknown_platform():
    with pytest.raises(ValueError):
        preview_upload(FILENAME, CANTALOUPE_CSV, platform="vendsys")


async def test_run_upload_completes_job(account_id):
    store = JobStore(accounts=[account_id])

    job, result = await run_upload(store, account_id, FILENAME, CANTALOUPE_CSV.encode())

    assert job.status == "completed"
    assert job.platform == "cantaloupe"
    assert (job.period_start, job.period_end) == (date(2025, 10, 1), date(2025, 12, 31))
    assert job.total_rows == 1
    assert job.imported_rows == result.imported_rows == 1
    assert job.error_message is None
    assert store.accounts[account_id].onboarding_completed


async def test_run_upload_marks_job_failed_on_errors(account_id):
    store = JobStore(accounts=[account_id], fail_on={"insert_sales"})

    job, result = await run_upload(store, account_id, FILENAME, CANTALOUPE_CSV)

    assert job.status == "failed"
    assert job.error_message == "Error inserting batch 1: insert_sales unavailable"
    assert result.imported_rows == 0


async def test_run_upload_unknown_account():
    store = JobStore()
    with pytest.raises(LookupError):
        await run_upload(store, uuid.uuid4(), FILENAME, CANTALOUPE_CSV)
    assert store.jobs == {}


async def test_malformed_file_leaves_nothing_behind(account_id):
    store = JobStore(accounts=[account_id])
    with pytest.raises(CsvParseError):
        await run_upload(store, account_id, FILENAME, "")
    assert store.jobs == {}
    assert store.calls == []
