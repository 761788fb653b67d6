"""Serialisation of enriched rows into chunked CSV / JSON artifacts."""

from __future__ import annotations

import json
from typing import Any, Protocol, Sequence

from pricepaid.common.constants import CHUNK_SIZE
from pricepaid.common.errors import ConfigError
from pricepaid.common.models import EnrichedRow

EXPORT_HEADERS = [
    "TransactionId",
    "Price",
    "DateOfTransfer",
    "PostCode",
    "PropertyType",
    "Build",
    "Contract",
    "Building",
    "Street",
    "Locality",
    "Town",
    "District",
    "County",
    "Geo",
]


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def export_fields(enriched: EnrichedRow) -> dict[str, Any]:
    """Field values in header order. Absent values are ``None``."""
    row, geo = enriched.row, enriched.geo
    return {
        "TransactionId": row.transaction_id,
        "Price": row.price,
        "DateOfTransfer": row.date_of_transfer.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "PostCode": row.postcode,
        "PropertyType": row.property_type_code,
        "Build": row.build_code or None,
        "Contract": row.contract_code or None,
        "Building": row.building or None,
        "Street": row.street,
        "Locality": row.locality,
        "Town": row.town,
        "District": row.district,
        "County": row.county,
        "Geo": geo.to_geojson() if geo is not None else None,
    }


class Exporter(Protocol):
    extension: str

    def serialize_row(self, enriched: EnrichedRow) -> Any: ...

    def assemble_chunk(self, records: Sequence[Any]) -> list[str]: ...


def _quote(value: str) -> str:
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


class CsvExporter:
    extension = "csv"

    def serialize_row(self, enriched: EnrichedRow) -> str:
        cells = []
        for key, value in export_fields(enriched).items():
            if value is None:
                cells.append("")
            elif key == "Geo":
                cells.append(to_json(value))
            else:
                cells.append(str(value))
        return ",".join(_quote(cell) for cell in cells)

    def assemble_chunk(self, records: Sequence[str]) -> list[str]:
        return [",".join(EXPORT_HEADERS), *records]


class JsonExporter:
    """One JSON object per line; absent fields are left out rather than null."""

    extension = "json"

    def serialize_row(self, enriched: EnrichedRow) -> dict[str, Any]:
        return {key: value for key, value in export_fields(enriched).items() if value is not None}

    def assemble_chunk(self, records: Sequence[dict[str, Any]]) -> list[str]:
        return [to_json(record) for record in records]


EXPORTERS: dict[str, Exporter] = {
    "csv": CsvExporter(),
    "json": JsonExporter(),
}


def get_exporter(name: str) -> Exporter:
    try:
        return EXPORTERS[name]
    except KeyError as exc:
        raise ConfigError(f"Unknown export format: {name}") from exc


def export_chunks(
    rows: Sequence[EnrichedRow],
    exporter: Exporter,
    chunk_size: int = CHUNK_SIZE,
) -> list[tuple[int, list[str]]]:
    """Chunk ``i`` holds rows ``[i * chunk_size, (i + 1) * chunk_size)``."""
    chunks = []
    for index, start in enumerate(range(0, len(rows), chunk_size)):
        records = [exporter.serialize_row(row) for row in rows[start : start + chunk_size]]
        chunks.append((index, exporter.assemble_chunk(records)))
    return chunks
