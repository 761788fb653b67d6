"""Memoised, retrying postcode -> geo point resolution."""

from __future__ import annotations

import logging
import threading

from tenacity import Retrying, stop_after_attempt, stop_when_event_set

from pricepaid.common.constants import GEO_LOOKUP_RETRIES
from pricepaid.common.geo import GeoPoint, geo_from_lat_long
from pricepaid.common.logging import log_warning
from pricepaid.common.postcode import split_postcode
from pricepaid.storage.postcode_table import PostcodeStore

logger = logging.getLogger(__name__)


class GeoCache:
    """Resolves postcodes against a postcode store and remembers every outcome.

    Entries, including misses, live as long as the cache instance. Keys are the
    postcode exactly as supplied; only the store query is upper-cased. Two threads
    racing on the same uncached postcode may both query the store; the first
    result stored wins.
    """

    def __init__(
        self,
        store: PostcodeStore,
        *,
        retries: int = GEO_LOOKUP_RETRIES,
        cancel_event: threading.Event | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.retries = retries
        self.cancel_event = cancel_event or threading.Event()
        self.log = log or logger
        self._entries: dict[str, GeoPoint | None] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, postcode: str) -> GeoPoint | None:
        with self._lock:
            if postcode in self._entries:
                return self._entries[postcode]

        resolved = self._resolve(postcode)

        with self._lock:
            return self._entries.setdefault(postcode, resolved)

    def _resolve(self, postcode: str) -> GeoPoint | None:
        parts = split_postcode(postcode)
        if parts is None:
            return None
        area, sector = parts[0].upper(), parts[1].upper()

        row = None
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.retries + 1) | stop_when_event_set(self.cancel_event),
                reraise=True,
            ):
                with attempt:
                    row = self.store.get(area, sector)
        except Exception as exc:
            log_warning(
                self.log,
                f"geo lookup for {postcode!r} failed, continuing without geo data",
                stage="enrich",
                event="GEO_LOOKUP_FAIL",
                status="degraded",
                attempt=self.retries + 1,
                error_code=type(exc).__name__,
            )
            return None

        if row is None:
            return None
        return geo_from_lat_long(row.get("Lat"), row.get("Long"))
