"""Geo enrichment of parsed price-paid rows."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterator, Sequence

from pricepaid.common.constants import ENRICH_BATCH_SIZE, PROGRESS_EVERY
from pricepaid.common.errors import IngestionCancelled
from pricepaid.common.logging import log_event
from pricepaid.common.models import EnrichedRow, TransactionRow
from pricepaid.pipeline.geo_cache import GeoCache
from pricepaid.pipeline.parse import parse_price_paid

logger = logging.getLogger(__name__)


def _batched(rows: Sequence[TransactionRow], size: int) -> Iterator[Sequence[TransactionRow]]:
    for i in range(0, len(rows), size):
        yield rows[i : i + size]


def summarise(rows: Sequence[EnrichedRow]) -> dict[str, Any]:
    """Counts by property type, build and contract, plus how many rows found a geo point."""
    property_types = Counter(
        row.row.property_type.description if row.row.property_type else "Unknown" for row in rows
    )
    return {
        "with_geo": sum(1 for row in rows if row.geo is not None),
        "property_types": dict(sorted(property_types.items())),
        "builds": dict(sorted(Counter(row.row.build.description for row in rows).items())),
        "contracts": dict(sorted(Counter(row.row.contract.description for row in rows).items())),
    }


class RowEnricher:
    """Joins every row against a GeoCache, one bounded batch of lookups at a time.

    Each batch fans out across the worker pool and is awaited in full before the
    next one starts, so at most ``batch_size`` lookups are outstanding and output
    order always matches input order.
    """

    def __init__(
        self,
        geo_cache: GeoCache,
        *,
        batch_size: int = ENRICH_BATCH_SIZE,
        max_workers: int = 32,
        progress_every: int = PROGRESS_EVERY,
        cancel_event: threading.Event | None = None,
        log: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.geo_cache = geo_cache
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.progress_every = progress_every
        self.cancel_event = cancel_event or threading.Event()
        self.log = log or logger
        self.run_id = run_id

    def _enrich_row(self, row: TransactionRow) -> EnrichedRow:
        if row.postcode is None:
            return EnrichedRow(row=row, geo=None)
        return EnrichedRow(row=row, geo=self.geo_cache.lookup(row.postcode))

    def enrich_payload(self, data: bytes) -> list[EnrichedRow]:
        return self.enrich(parse_price_paid(data))

    def enrich(self, rows: Sequence[TransactionRow]) -> list[EnrichedRow]:
        total = len(rows)
        postcodes = [row.postcode for row in rows if row.postcode is not None]
        unique_postcodes = len(set(postcodes))

        enriched: list[EnrichedRow] = []
        next_progress = self.progress_every
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for batch in _batched(rows, self.batch_size):
                if self.cancel_event.is_set():
                    raise IngestionCancelled(f"Enrichment cancelled after {len(enriched)} of {total} rows")
                enriched.extend(executor.map(self._enrich_row, batch))

                if len(enriched) >= next_progress:
                    log_event(
                        self.log,
                        f"{total - len(enriched)} rows remaining",
                        run_id=self.run_id,
                        stage="enrich",
                        event="ENRICH_PROGRESS",
                        status="ok",
                        rows=len(enriched),
                        details={
                            "remaining": total - len(enriched),
                            "postcodes": len(postcodes),
                            "unique_postcodes": unique_postcodes,
                            "cached_postcodes": len(self.geo_cache),
                        },
                    )
                    next_progress = (len(enriched) // self.progress_every + 1) * self.progress_every

        return enriched
