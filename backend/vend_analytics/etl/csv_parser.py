# backend/vend_analytics/etl/csv_parser.py
"""
CSV ingestion front half: platform detection, column mapping and row
normalization. Nothing in here touches the database.
"""

import io
import re
import logging
from typing import Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from vend_analytics.core.constants import normalize_payment_category

logger = logging.getLogger(__name__)

# Semantic fields a column mapping can point at
MAPPING_FIELDS = (
    "customer",
    "region",
    "location",
    "location_type",
    "serial_number",
    "asset_number",
    "make",
    "model",
    "city",
    "state",
    "product_type",
    "trans_type_name",
    "tran_count",
    "vend_count",
    "amount",
    "currency_code",
    "two_tier_pricing",
    "loyalty_discount",
    "campaign_name",
    "purchase_discount",
    "free_product_discount",
)

CANTALOUPE_MARKERS = ("Trans Type Name", "Serial #", "Tran Count", "Vend Count")

_CANTALOUPE_EXACT = {
    "customer": "Customer",
    "region": "Region",
    "location": "Location",
    "location_type": "Location Type",
    "serial_number": "Serial #",
    "asset_number": "Asset #",
    "make": "Make",
    "model": "Model",
    "city": "City",
    "state": "State",
    "product_type": "Product Type",
    "trans_type_name": "Trans Type Name",
    "tran_count": "Tran Count",
    "vend_count": "Vend Count",
    "amount": "Amount",
    "currency_code": "Currency Code",
    "campaign_name": "Campaign Name",
}

# Long-form headers such as "Two-Tier Pricing (Included in Net Revenue)"
_CANTALOUPE_PATTERNS = {
    "two_tier_pricing": r"two.tier\s*pricing",
    "loyalty_discount": r"loyalty\s*discount",
    "purchase_discount": r"purchase\s*discount",
    "free_product_discount": r"free\s*product\s*discount",
}

# Checked in order per header; a header is consumed by the first rule it matches
_GENERIC_RULES = [
    ("region", r"^region$"),
    ("location", r"^(location|site)$"),
    ("location_type", r"location\s*type"),
    ("serial_number", r"serial"),
    ("asset_number", r"asset"),
    ("make", r"^make$"),
    ("model", r"^model$"),
    ("city", r"^city$"),
    ("state", r"^state$"),
    ("product_type", r"product\s*type"),
    ("trans_type_name", r"trans.*type|payment.*method|payment.*type"),
    ("tran_count", r"tran.*count"),
    ("vend_count", r"vend.*count"),
    ("amount", r"^amount$|^total|^revenue|^net\s*revenue"),
]

_DATE_RANGE_RE = re.compile(r"from\s+(\d{1,2}-\d{1,2}-\d{4})\s+to\s+(\d{1,2}-\d{1,2}-\d{4})", re.IGNORECASE)


class CsvParseError(ValueError):
    """The upload could not be read as CSV."""


class ParsedSalesRow(BaseModel):
    """Normalized view of one CSV row; `raw` keeps the row as uploaded."""
    customer: str = ""
    region: str = ""
    location: str = ""
    location_type: str = ""
    serial_number: str = ""
    asset_number: str = ""
    make: str = ""
    model: str = ""
    city: str = ""
    state: str = ""
    product_type: str = ""
    payment_method: str = ""
    payment_category: str = "other"
    tran_count: int = 0
    vend_count: int = 0
    amount: float = 0.0
    two_tier_pricing: float = 0.0
    loyalty_discount: float = 0.0
    campaign_name: str = ""
    purchase_discount: float = 0.0
    free_product_discount: float = 0.0
    raw: Dict[str, str] = Field(default_factory=dict)


class ParseResult(BaseModel):
    rows: List[ParsedSalesRow]
    headers: List[str]
    platform: str
    mapping: Dict[str, str]
    errors: List[str] = Field(default_factory=list)


class DateRange(BaseModel):
    start_date: str
    end_date: str


def detect_platform(headers: List[str]) -> str:
    """Classify an export by its header row. Always returns a platform key."""
    header_set = {h.strip() for h in headers}

    if sum(1 for m in CANTALOUPE_MARKERS if m in header_set) >= 3:
        return "cantaloupe"
    if "Machine ID" in header_set or "Nayax ID" in header_set:
        return "nayax"
    if "PayRange ID" in header_set or "Beacon ID" in header_set:
        return "payrange"
    return "custom"


def _cantaloupe_mapping(headers: List[str]) -> Dict[str, str]:
    by_trimmed = {h.strip(): h for h in headers}
    mapping = {
        field: by_trimmed[header]
        for field, header in _CANTALOUPE_EXACT.items()
        if header in by_trimmed
    }
    for field, pattern in _CANTALOUPE_PATTERNS.items():
        match = next((h for h in headers if re.search(pattern, h, re.IGNORECASE)), None)
        if match is not None:
            mapping[field] = match
    return mapping


def _generic_mapping(headers: List[str]) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for header in headers:
        h = header.strip()
        for field, pattern in _GENERIC_RULES:
            if re.search(pattern, h, re.IGNORECASE):
                mapping.setdefault(field, header)
                break
    return mapping


def get_column_mapping(headers: List[str], platform: str) -> Dict[str, str]:
    if platform == "cantaloupe":
        return _cantaloupe_mapping(headers)
    return _generic_mapping(headers)


def parse_amount(value: Optional[str]) -> float:
    """
    "$1,234.56" -> 1234.56, "-12.50" -> -12.5; blanks and junk -> 0.
    """
    if not value:
        return 0.0
    cleaned = re.sub(r"[^0-9.\-]", "", str(value))
    match = re.search(r"-?\d+\.?\d*", cleaned)
    return float(match.group(0)) if match else 0.0


def parse_int(value: Optional[str]) -> int:
    """Leading integer of the text, 0 when there is none ("12 units" -> 12)."""
    match = re.match(r"\s*([-+]?\d+)", value or "")
    return int(match.group(1)) if match else 0


def normalize_name(name: Optional[str]) -> str:
    """Identity key for regions and locations: lowercase, alphanumerics only."""
    return re.sub(r"[^a-z0-9]", "", (name or "").lower().strip())


def extract_date_range_from_filename(filename: str) -> Optional[DateRange]:
    """
    Pull "from MM-DD-YYYY to MM-DD-YYYY" out of an export filename, e.g.
    "Sales Rollup - From 10-01-2025 to 12-31-2025.csv".
    """
    match = _DATE_RANGE_RE.search(filename or "")
    if not match:
        return None

    def _iso(value: str) -> str:
        month, day, year = value.split("-")
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return DateRange(start_date=_iso(match.group(1)), end_date=_iso(match.group(2)))


def read_csv_text(content: str):
    """Return (headers, rows) where every cell is a string; blank lines are skipped."""
    if content.startswith("\ufeff"):
        content = content[1:]
    try:
        df = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            index_col=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise CsvParseError(f"Could not parse CSV: {e}") from e

    df = df.fillna("")
    headers = [str(c) for c in df.columns]
    rows = [{str(k): str(v) for k, v in record.items()} for record in df.to_dict(orient="records")]
    return headers, rows


def normalize_row(raw_row: Dict[str, str], mapping: Dict[str, str]) -> ParsedSalesRow:
    def get_value(field: str) -> str:
        col = mapping.get(field)
        return (raw_row.get(col) or "").strip() if col else ""

    payment_method = get_value("trans_type_name")
    return ParsedSalesRow(
        customer=get_value("customer"),
        region=get_value("region"),
        location=get_value("location"),
        location_type=get_value("location_type"),
        serial_number=get_value("serial_number"),
        asset_number=get_value("asset_number"),
        make=get_value("make"),
        model=get_value("model"),
        city=get_value("city"),
        state=get_value("state"),
        product_type=get_value("product_type"),
        payment_method=payment_method,
        payment_category=normalize_payment_category(payment_method),
        tran_count=parse_int(get_value("tran_count")),
        vend_count=parse_int(get_value("vend_count")),
        amount=parse_amount(get_value("amount")),
        two_tier_pricing=parse_amount(get_value("two_tier_pricing")),
        loyalty_discount=parse_amount(get_value("loyalty_discount")),
        campaign_name=get_value("campaign_name"),
        purchase_discount=parse_amount(get_value("purchase_discount")),
        free_product_discount=parse_amount(get_value("free_product_discount")),
        raw=dict(raw_row),
    )


def parse_csv(
    content: str,
    custom_mapping: Optional[Dict[str, str]] = None,
    platform: Optional[str] = None,
) -> ParseResult:
    """
    Parse an uploaded export. `platform` overrides detection and
    `custom_mapping` overrides the derived column mapping.
    """
    headers, raw_rows = read_csv_text(content)

    detected = platform or detect_platform(headers)
    if custom_mapping is not None:
        unknown = set(custom_mapping) - set(MAPPING_FIELDS)
        if unknown:
            raise ValueError(f"Unknown mapping fields: {', '.join(sorted(unknown))}")
        mapping = dict(custom_mapping)
    else:
        mapping = get_column_mapping(headers, detected)

    errors = []
    if "amount" not in mapping:
        errors.append("No amount column found; every row will import with amount 0")

    rows = [normalize_row(raw, mapping) for raw in raw_rows]
    logger.info(f"Parsed {len(rows)} rows as platform={detected} ({len(mapping)} mapped columns)")
    return ParseResult(rows=rows, headers=headers, platform=detected, mapping=mapping, errors=errors)
