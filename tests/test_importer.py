from datetime import date

from vend_analytics.etl.csv_parser import ParsedSalesRow, parse_csv
from vend_analytics.etl.importer import import_sales_data
from vend_analytics.schemas.upload import ImportStage

from conftest import CANTALOUPE_CSV, FakeStore

START, END = date(2025, 10, 1), date(2025, 12, 31)


async def test_cantaloupe_row_import_and_reimport(fake_store, account_id):
    rows = parse_csv(CANTALOUPE_CSV).rows

    first = await import_sales_data(fake_store, account_id, rows, None, START, END)

    assert first.errors == []
    assert (first.regions_created, first.locations_created, first.machines_created) == (1, 1, 1)
    assert first.imported_rows == 1
    [record] = fake_store.sales
    assert record["region_id"] == fake_store.regions["east"]["id"]
    assert record["machine_id"] == fake_store.machines["SN1"]["id"]
    assert record["payment_category"] == "cash"
    assert record["fingerprint"]

    second = await import_sales_data(fake_store, account_id, rows, None, START, END)

    assert second.duplicate_rows == second.total_rows == 1
    assert second.imported_rows == 0
    assert (second.regions_created, second.locations_created, second.machines_created) == (0, 0, 0)
    assert len(fake_store.sales) == 1


async def test_duplicates_within_one_file(fake_store, account_id):
    row = ParsedSalesRow(serial_number="SN1", amount=2.0, tran_count=1)
    result = await import_sales_data(fake_store, account_id, [row, row], None, START, END)
    assert result.imported_rows == 1
    assert result.duplicate_rows == 1


async def test_stages_are_reported_in_order(fake_store, account_id):
    events = []
    rows = parse_csv(CANTALOUPE_CSV).rows

    await import_sales_data(fake_store, account_id, rows, None, START, END, on_progress=events.append)

    stages = [e.stage for e in events]
    assert stages == [
        ImportStage.LOADING_EXISTING,
        ImportStage.CREATING_REGIONS,
        ImportStage.CREATING_LOCATIONS,
        ImportStage.CREATING_MACHINES,
        ImportStage.INSERTING_SALES,
        ImportStage.DONE,
    ]


async def test_progress_callback_errors_do_not_stop_import(fake_store, account_id):
    def broken(progress):
        raise RuntimeError("ui went away")

    rows = parse_csv(CANTALOUPE_CSV).rows
    result = await import_sales_data(fake_store, account_id, rows, None, START, END, on_progress=broken)
    assert result.imported_rows == 1
    assert result.errors == []


def _distinct_rows(n):
    return [ParsedSalesRow(serial_number=f"SN{i}", amount=float(i), tran_count=1) for i in range(n)]


async def test_rows_are_inserted_in_batches_of_100(fake_store, account_id):
    result = await import_sales_data(fake_store, account_id, _distinct_rows(150), None, START, END)
    assert fake_store.batches == [100, 50]
    assert result.imported_rows == 150


async def test_failed_batch_is_recorded_and_later_batches_still_run(account_id):
    store = FakeStore(fail_sales_batches={1})
    result = await import_sales_data(store, account_id, _distinct_rows(250), None, START, END)
    assert store.batches == [100, 100, 50]
    assert result.imported_rows == 150
    assert result.errors == ["Error inserting batch 1: connection reset"]


async def test_failed_second_batch(account_id):
    store = FakeStore(fail_sales_batches={2})
    result = await import_sales_data(store, account_id, _distinct_rows(150), None, START, END)
    assert result.imported_rows == 100
    assert len(result.errors) == 1


async def test_unexpected_error_ends_import_with_partial_result(account_id):
    store = FakeStore(fail_on={"fingerprints"})
    events = []
    result = await import_sales_data(store, account_id, _distinct_rows(3), None, START, END,
                                     on_progress=events.append)
    assert result.imported_rows == 0
    assert result.errors == ["Unexpected error: fingerprints unavailable"]
    assert events[-1].stage == ImportStage.DONE


async def test_period_accepts_iso_strings(fake_store, account_id):
    await import_sales_data(fake_store, account_id, _distinct_rows(1), None, "2025-10-01", "2025-12-31")
    assert fake_store.sales[0]["period_start"] == START
