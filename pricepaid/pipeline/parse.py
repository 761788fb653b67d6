"""Parsing of Land Registry price-paid CSV payloads."""

from __future__ import annotations

import csv
import io
from datetime import datetime

from pricepaid.common.errors import MalformedRowError
from pricepaid.common.models import TransactionRow

PRICE_PAID_COLUMNS = (
    "TransactionId",
    "Price",
    "Date",
    "Postcode",
    "PropertyType",
    "Old/New",
    "Duration",
    "PAON",
    "SAON",
    "Street",
    "Locality",
    "Town/City",
    "District",
    "County",
    "PPDCategoryType",
    "RecordStatus",
)
# Older extracts stop after County.
MIN_COLUMNS = 14

_DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def _optional(value: str) -> str | None:
    value = value.strip()
    return value or None


def _parse_price(value: str, line_number: int) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise MalformedRowError(f"Unparseable price {value!r} on line {line_number}", line_number) from exc


def _parse_date(value: str, line_number: int) -> datetime:
    cleaned = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
    raise MalformedRowError(f"Unparseable date {value!r} on line {line_number}", line_number)


def _is_header(fields: list[str]) -> bool:
    return [field.strip() for field in fields[:2]] == list(PRICE_PAID_COLUMNS[:2])


def parse_row(fields: list[str], line_number: int) -> TransactionRow:
    if len(fields) < MIN_COLUMNS:
        raise MalformedRowError(
            f"Expected at least {MIN_COLUMNS} columns on line {line_number}, found {len(fields)}",
            line_number,
        )
    fields = fields + [""] * (len(PRICE_PAID_COLUMNS) - len(fields))
    transaction_id = fields[0].strip()
    if not transaction_id:
        raise MalformedRowError(f"Missing transaction id on line {line_number}", line_number)

    return TransactionRow(
        transaction_id=transaction_id,
        price=_parse_price(fields[1], line_number),
        date_of_transfer=_parse_date(fields[2], line_number),
        postcode=_optional(fields[3]),
        property_type_code=_optional(fields[4]),
        build_code=fields[5].strip(),
        contract_code=fields[6].strip(),
        paon=_optional(fields[7]),
        saon=_optional(fields[8]),
        street=_optional(fields[9]),
        locality=_optional(fields[10]),
        town=_optional(fields[11]),
        district=_optional(fields[12]),
        county=_optional(fields[13]),
        ppd_category=_optional(fields[14]),
        record_status=_optional(fields[15]),
    )


def parse_price_paid(data: bytes) -> list[TransactionRow]:
    """Parse the whole payload eagerly. Any malformed row aborts the parse."""
    text = data.decode("utf-8-sig", errors="replace")
    reader = csv.reader(io.StringIO(text, newline=""))
    rows: list[TransactionRow] = []
    for fields in reader:
        line_number = reader.line_num
        if not fields or all(not field.strip() for field in fields):
            continue
        if line_number == 1 and _is_header(fields):
            continue
        rows.append(parse_row(fields, line_number))
    return rows
