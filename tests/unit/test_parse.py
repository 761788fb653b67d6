from datetime import datetime

import pytest

from pricepaid.common.errors import MalformedRowError
from pricepaid.pipeline.parse import parse_price_paid

ROW_A = '"{A1}","250000","2021-01-04 00:00","SW1A 1AA","T","N","F","10","","DOWNING STREET","","LONDON","CITY OF WESTMINSTER","GREATER LONDON","A","A"'
ROW_B = '"{B2}","99500","2021-02-11 00:00","","F","Y","L","FLAT 2","THE MILL","MILL LANE","HOLME","PETERBOROUGH","HUNTINGDONSHIRE","CAMBRIDGESHIRE","B","A"'


def _payload(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def test_parse_rows_in_order_with_optional_fields():
    rows = parse_price_paid(_payload(ROW_A, ROW_B))

    assert [row.transaction_id for row in rows] == ["{A1}", "{B2}"]
    first, second = rows
    assert first.price == 250000
    assert first.date_of_transfer == datetime(2021, 1, 4)
    assert first.postcode == "SW1A 1AA"
    assert first.saon is None
    assert first.building == "10"
    assert first.locality is None
    assert second.postcode is None
    assert second.building == "FLAT 2 THE MILL"
    assert second.build_code == "Y"
    assert second.contract_code == "L"
    assert second.ppd_category == "B"


def test_header_row_is_skipped():
    header = "TransactionId,Price,Date,Postcode,PropertyType,Old/New,Duration,PAON,SAON,Street,Locality,Town/City,District,County,PPDCategoryType,RecordStatus"
    rows = parse_price_paid(_payload(header, ROW_A))
    assert len(rows) == 1


def test_fourteen_column_rows_are_accepted():
    short = ",".join(ROW_A.split(",")[:14])
    rows = parse_price_paid(_payload(short))
    assert rows[0].county == "GREATER LONDON"
    assert rows[0].record_status is None


def test_blank_lines_are_ignored():
    rows = parse_price_paid(_payload(ROW_A, "", ROW_B))
    assert len(rows) == 2


def test_unparseable_price_is_fatal():
    bad = ROW_B.replace('"99500"', '"ninety"')
    with pytest.raises(MalformedRowError) as exc_info:
        parse_price_paid(_payload(ROW_A, bad))
    assert exc_info.value.line_number == 2


def test_unparseable_date_is_fatal():
    bad = ROW_A.replace("2021-01-04 00:00", "04/01/2021")
    with pytest.raises(MalformedRowError, match="date"):
        parse_price_paid(_payload(bad))


def test_short_row_is_fatal():
    with pytest.raises(MalformedRowError, match="columns"):
        parse_price_paid(_payload('"{A1}","250000"'))
