"""
Dedup key for sales rows.

The key only has to recognise a row that was already imported (the same file
uploaded twice); it is not a security boundary. A 64-bit BLAKE2b digest of
the joined business fields keeps accidental collisions negligible at
dashboard scale (roughly n**2 / 2**65 for n rows), and the encoded input
length is appended as a tie-breaker. Two distinct rows that still collide
would be counted as a duplicate.
"""

import hashlib
from datetime import date
from typing import Union

FIELD_SEPARATOR = "|"


def _text(value: Union[str, date, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def create_fingerprint(
    account_id,
    serial_number: str,
    location: str,
    payment_method: str,
    product_type: str,
    period_start: Union[str, date],
    period_end: Union[str, date],
    amount: float,
    tran_count: int,
) -> str:
    data = FIELD_SEPARATOR.join(
        [
            _text(account_id),
            _text(serial_number),
            _text(location),
            _text(payment_method),
            _text(product_type),
            _text(period_start),
            _text(period_end),
            repr(float(amount)),
            str(int(tran_count)),
        ]
    )
    encoded = data.encode("utf-8")
    digest = hashlib.blake2b(encoded, digest_size=8).hexdigest()
    return f"{digest}-{len(encoded):x}"
