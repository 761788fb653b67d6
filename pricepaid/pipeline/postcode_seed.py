"""Loading of the postcode lookup store from published postcode files."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterator

from pyproj import CRS, Transformer

from pricepaid.common.errors import ConfigError
from pricepaid.common.geo import geo_from_lat_long
from pricepaid.common.logging import log_event
from pricepaid.common.postcode import normalise_postcode, split_postcode

POSTCODE_FILE_FORMATS = ("ukpostcodes", "codepoint")

# Code-Point Open: Postcode, Positional_quality_indicator, Eastings, Northings, ...
_CODEPOINT_POSTCODE, _CODEPOINT_EASTINGS, _CODEPOINT_NORTHINGS = 0, 2, 3


def _safe_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def osgb_to_wgs84_transformer() -> Transformer:
    return Transformer.from_crs(CRS.from_epsg(27700), CRS.from_epsg(4326), always_xy=True)


def _entity(raw_postcode: str | None, lat: Any, long: Any) -> dict[str, Any] | None:
    postcode = normalise_postcode(raw_postcode)
    if postcode is None:
        return None
    geo = geo_from_lat_long(lat, long)
    if geo is None:
        return None
    area, sector = split_postcode(postcode)
    return {"PartitionKey": area, "RowKey": sector, "Lat": geo.lat, "Long": geo.long}


def _read_ukpostcodes(path: Path) -> Iterator[dict[str, Any]]:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = {name.strip().lower(): name for name in reader.fieldnames or []}
        missing = {"postcode", "latitude", "longitude"} - set(fieldnames)
        if missing:
            raise ConfigError(f"Postcode file {path} is missing columns: {', '.join(sorted(missing))}")
        for row in reader:
            entity = _entity(
                row.get(fieldnames["postcode"]),
                row.get(fieldnames["latitude"]),
                row.get(fieldnames["longitude"]),
            )
            if entity is not None:
                yield entity


def _read_codepoint(path: Path) -> Iterator[dict[str, Any]]:
    transformer = osgb_to_wgs84_transformer()
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        for fields in csv.reader(f):
            if len(fields) <= _CODEPOINT_NORTHINGS:
                continue
            eastings = _safe_float(fields[_CODEPOINT_EASTINGS])
            northings = _safe_float(fields[_CODEPOINT_NORTHINGS])
            # Code-Point records with no grid reference carry 0, 0.
            if not eastings or not northings:
                continue
            long, lat = transformer.transform(eastings, northings)
            entity = _entity(fields[_CODEPOINT_POSTCODE], lat, long)
            if entity is not None:
                yield entity


def read_postcode_entities(path: Path, *, file_format: str = "ukpostcodes") -> Iterator[dict[str, Any]]:
    if file_format == "ukpostcodes":
        return _read_ukpostcodes(path)
    if file_format == "codepoint":
        return _read_codepoint(path)
    raise ConfigError(f"Unknown postcode file format: {file_format}")


def seed_postcodes(
    store,
    path: Path,
    *,
    file_format: str,
    logger: logging.Logger,
    run_id: str | None = None,
) -> int:
    """Upsert every valid postcode in ``path`` into ``store``, grouped by area."""
    if not path.exists():
        raise ConfigError(f"Postcode file does not exist: {path}")
    entities = sorted(
        read_postcode_entities(path, file_format=file_format),
        key=lambda entity: (entity["PartitionKey"], entity["RowKey"]),
    )
    written = store.upsert_entities(entities)
    log_event(
        logger,
        f"seeded {written} postcodes from {path.name}",
        run_id=run_id,
        stage="seed",
        event="POSTCODES_SEEDED",
        status="ok",
        rows=written,
    )
    return written
