import io
from datetime import date
from decimal import Decimal

import pandas as pd

from vend_analytics.services.export import EXPORT_HEADERS, export_filename, export_sales_csv

from conftest import sale


def test_header_only_when_no_rows():
    assert export_sales_csv([]) == ",".join(EXPORT_HEADERS)
    assert len(EXPORT_HEADERS) == 12


def test_rows_are_fully_quoted():
    record = sale(
        Decimal("10.50"),
        vends=3,
        trans=2,
        period_start=date(2025, 10, 1),
        period_end=date(2025, 12, 31),
        payment_method='Credit "Tap"',
        product_type=None,
    )

    lines = export_sales_csv([record, record]).split("\n")

    assert len(lines) == 3
    assert lines[1] == (
        '"2025-10-01","2025-12-31","","Credit ""Tap""","cash","2","3","10.50","0","0","0","0"'
    )


def test_export_filename():
    assert export_filename(date(2025, 1, 9)) == "vending-export-2025-01-09.csv"


def test_export_reads_back_as_one_row_per_record():
    record = sale(
        Decimal("3.00"),
        period_start=date(2025, 10, 1),
        period_end=date(2025, 10, 31),
        payment_method="Credit, Tap\nPay",
        product_type="Snack",
    )

    df = pd.read_csv(io.StringIO(export_sales_csv([record])), dtype=str, keep_default_na=False)

    assert list(df.columns) == EXPORT_HEADERS
    assert len(df) == 1
    assert df.loc[0, "Payment Method"] == "Credit, Tap\nPay"
    assert df.loc[0, "Amount"] == "3.00"
