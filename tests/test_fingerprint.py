import uuid
from datetime import date

from vend_analytics.etl.fingerprint import create_fingerprint

ACCOUNT = uuid.UUID("11111111-1111-1111-1111-111111111111")
FIELDS = ("SN1", "Store 1", "Cash", "Snack", date(2025, 10, 1), date(2025, 12, 31), 10.0, 2)


def test_fingerprint_is_deterministic():
    assert create_fingerprint(ACCOUNT, *FIELDS) == create_fingerprint(ACCOUNT, *FIELDS)


def test_fingerprint_accepts_iso_strings_for_dates():
    as_strings = FIELDS[:4] + ("2025-10-01", "2025-12-31") + FIELDS[6:]
    assert create_fingerprint(ACCOUNT, *as_strings) == create_fingerprint(ACCOUNT, *FIELDS)


def test_fingerprint_shape():
    digest, length = create_fingerprint(ACCOUNT, *FIELDS).split("-")
    assert len(digest) == 16
    int(digest, 16)
    int(length, 16)


def test_any_business_field_changes_the_fingerprint():
    base = create_fingerprint(ACCOUNT, *FIELDS)
    for i in range(len(FIELDS)):
        changed = list(FIELDS)
        if isinstance(changed[i], str):
            changed[i] = changed[i] + "x"
        elif isinstance(changed[i], date):
            changed[i] = date(2024, 1, 1)
        else:
            changed[i] = changed[i] + 1
        assert create_fingerprint(ACCOUNT, *changed) != base


def test_fingerprint_is_scoped_to_account():
    other = uuid.uuid4()
    assert create_fingerprint(other, *FIELDS) != create_fingerprint(ACCOUNT, *FIELDS)
