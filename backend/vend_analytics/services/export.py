import csv
from datetime import date
from typing import Iterable, Optional

import pandas as pd

EXPORT_HEADERS = [
    "Period Start",
    "Period End",
    "Product Type",
    "Payment Method",
    "Payment Category",
    "Tran Count",
    "Vend Count",
    "Amount",
    "Two-Tier Pricing",
    "Loyalty Discount",
    "Purchase Discount",
    "Free Product Discount",
]

EXPORT_FIELDS = [
    "period_start",
    "period_end",
    "product_type",
    "payment_method",
    "payment_category",
    "tran_count",
    "vend_count",
    "amount",
    "two_tier_pricing",
    "loyalty_discount",
    "purchase_discount",
    "free_product_discount",
]


def export_sales_csv(records: Iterable) -> str:
    """
    Render sales rows as CSV: a plain header line, then one row per record
    with every field double-quoted.
    """
    rows = [[getattr(s, f) for f in EXPORT_FIELDS] for s in records]
    # object dtype keeps dates, Decimals and ints rendered as themselves
    df = pd.DataFrame(rows, columns=EXPORT_HEADERS, dtype=object)
    body = df.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n", na_rep="")
    lines = [",".join(EXPORT_HEADERS)]
    if rows:
        lines.append(body.rstrip("\n"))
    return "\n".join(lines)


def export_filename(today: Optional[date] = None) -> str:
    return f"vending-export-{(today or date.today()).isoformat()}.csv"
