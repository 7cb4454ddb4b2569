import pytest

from vend_analytics.core.constants import (
    CANTALOUPE_HEADERS,
    PAYMENT_CATEGORIES,
    normalize_payment_category,
    normalize_product_type,
)
from vend_analytics.etl.csv_parser import (
    CsvParseError,
    detect_platform,
    extract_date_range_from_filename,
    get_column_mapping,
    normalize_name,
    parse_amount,
    parse_csv,
    parse_int,
)

from conftest import CANTALOUPE_CSV


@pytest.mark.parametrize("value,expected", [
    ("$1,234.56", 1234.56),
    ("-12.50", -12.5),
    ("", 0.0),
    ("abc", 0.0),
    (None, 0.0),
    ("  7 ", 7.0),
])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_parse_int_falls_back_to_zero():
    assert parse_int("12") == 12
    assert parse_int("12 units") == 12
    assert parse_int("n/a") == 0
    assert parse_int("") == 0


def test_normalize_name_is_case_and_punctuation_insensitive():
    assert normalize_name("Store #1") == normalize_name("store 1") == "store1"
    assert normalize_name("") == ""


@pytest.mark.parametrize("headers", [
    ["Trans Type Name", "Serial #", "Tran Count", "Vend Count"],
    ["Trans Type Name", "Serial #", "Tran Count", "Amount"],
    [" Serial # ", "Tran Count", "Vend Count", "Region"],
])
def test_three_of_four_markers_is_cantaloupe(headers):
    assert detect_platform(headers) == "cantaloupe"


def test_detect_other_platforms():
    assert detect_platform(["Serial #", "Tran Count", "Amount"]) == "custom"
    assert detect_platform(["Machine ID", "Amount"]) == "nayax"
    assert detect_platform(["Nayax ID"]) == "nayax"
    assert detect_platform(["Beacon ID", "Total"]) == "payrange"
    assert detect_platform([]) == "custom"


def test_cantaloupe_mapping_covers_full_export():
    mapping = get_column_mapping(CANTALOUPE_HEADERS, "cantaloupe")
    assert len(mapping) == len(CANTALOUPE_HEADERS)
    assert mapping["two_tier_pricing"] == "Two-Tier Pricing (Included in Net Revenue)"
    assert mapping["serial_number"] == "Serial #"


def test_generic_mapping_first_match_wins():
    headers = ["Site", "Machine Serial", "Payment Type", "Transaction Count", "Total Sales", "Revenue"]
    mapping = get_column_mapping(headers, "custom")
    assert mapping["location"] == "Site"
    assert mapping["serial_number"] == "Machine Serial"
    assert mapping["trans_type_name"] == "Payment Type"
    assert mapping["tran_count"] == "Transaction Count"
    assert mapping["amount"] == "Total Sales"


@pytest.mark.parametrize("text,category", [
    ("Cash", "cash"),
    ("Credit", "credit"),
    ("Credit Card", "credit"),
    ("Apple Pay", "apple_pay"),
    ("Contactless - Google Pay", "google_pay"),
    ("Contactless", "contactless"),
    ("Chargeback", "chargeback"),
    ("Access", "access"),
    ("Cash Back", "other"),
    ("", "other"),
])
def test_payment_category(text, category):
    assert normalize_payment_category(text) == category
    assert category in PAYMENT_CATEGORIES


def test_normalize_product_type():
    assert normalize_product_type("soft drink") == "Soft Drink"
    assert normalize_product_type("Frozen") == "Frozen"
    assert normalize_product_type("") == "Other"


def test_parse_cantaloupe_row():
    parsed = parse_csv(CANTALOUPE_CSV)
    assert parsed.platform == "cantaloupe"
    assert parsed.errors == []
    [row] = parsed.rows
    assert row.payment_category == "cash"
    assert row.amount == 10.0
    assert row.tran_count == 2
    assert row.vend_count == 3
    assert row.region == "East"
    assert row.location == "Store 1"
    assert row.serial_number == "SN1"
    assert row.raw["Amount"] == "$10.00"


def test_parse_skips_blank_lines_and_bom():
    content = "\ufeffLocation,Amount\n\nLobby,5\n\nGym,$2.50\n"
    parsed = parse_csv(content)
    assert parsed.headers == ["Location", "Amount"]
    assert [r.amount for r in parsed.rows] == [5.0, 2.5]


def test_rows_without_identities_are_valid():
    parsed = parse_csv("Amount,Serial #\n3.00,\n")
    [row] = parsed.rows
    assert row.serial_number == ""
    assert row.region == ""


def test_missing_amount_column_is_reported():
    parsed = parse_csv("Location\nLobby\n")
    assert parsed.errors


def test_custom_mapping_overrides_detection():
    parsed = parse_csv("Where,How Much\nLobby,4\n", custom_mapping={"location": "Where", "amount": "How Much"})
    assert parsed.rows[0].location == "Lobby"
    assert parsed.rows[0].amount == 4.0


def test_custom_mapping_rejects_unknown_fields():
    with pytest.raises(ValueError):
        parse_csv("A\n1\n", custom_mapping={"price": "A"})


def test_empty_input_is_a_parse_error():
    with pytest.raises(CsvParseError):
        parse_csv("")


def test_date_range_from_filename():
    detected = extract_date_range_from_filename("Sales Rollup - From 10-01-2025 to 12-31-2025.csv")
    assert detected.start_date == "2025-10-01"
    assert detected.end_date == "2025-12-31"
    assert extract_date_range_from_filename("export.csv") is None


def test_date_range_pads_single_digits():
    detected = extract_date_range_from_filename("report from 1-5-2025 TO 2-9-2025.csv")
    assert (detected.start_date, detected.end_date) == ("2025-01-05", "2025-02-09")


def test_trailing_comma_does_not_shift_columns():
    content = (
        "Trans Type Name,Serial #,Tran Count,Vend Count,Region,Location,Amount\n"
        "Cash,SN1,2,3,East,Store 1,$10.00,\n"
    )
    [row] = parse_csv(content).rows
    assert row.serial_number == "SN1"
    assert row.payment_method == "Cash"
    assert row.region == "East"
    assert row.location == "Store 1"
    assert row.amount == 10.0
