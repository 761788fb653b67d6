"""One end-to-end ingestion attempt: download, compare, enrich, export, record."""

from __future__ import annotations

import logging
import threading
import time

from pricepaid.common.errors import IngestionCancelled
from pricepaid.common.http import HttpClient
from pricepaid.common.logging import log_event, log_warning
from pricepaid.common.models import RefreshResult, RefreshType
from pricepaid.pipeline.enrich import RowEnricher, summarise
from pricepaid.pipeline.export import export_chunks, get_exporter
from pricepaid.pipeline.geo_cache import GeoCache
from pricepaid.pipeline.hashing import dataset_hash
from pricepaid.pipeline.source import download_dataset
from pricepaid.storage.backends import StorageBackends
from pricepaid.storage.blob_writer import BlobWriter, chunk_blob_name
from pricepaid.storage.hash_index import HashIndex


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def run_ingestion(
    selector: RefreshType,
    cfg: dict,
    backends: StorageBackends,
    *,
    cancel_event: threading.Event,
    logger: logging.Logger,
    run_id: str,
    http_client: HttpClient | None = None,
) -> RefreshResult:
    """Ingest the dataset named by ``selector`` unless its hash is already recorded.

    Errors are not caught here; the caller decides whether the worker carries on.
    Chunks are all written before the hash marker, and the marker is skipped if
    cancellation arrives while chunks are being written.
    """
    fields = {"run_id": run_id, "selector": selector.label()}
    started = time.monotonic()

    log_event(logger, "downloading latest price paid data", stage="download", event="DOWNLOAD_START", status="ok", **fields)
    owns_client = http_client is None
    client = http_client or HttpClient()
    try:
        payload = download_dataset(client, selector, cfg["dataset"], cancel_event)
    finally:
        if owns_client:
            client.close()

    latest_hash = dataset_hash(payload)
    existing_hashes = HashIndex(backends.blob_store).existing_hashes()
    log_event(
        logger,
        f"comparing latest hash {latest_hash!r} against {len(existing_hashes)} existing hashes",
        stage="compare",
        event="HASH_COMPARED",
        status="ok",
        dataset_hash=latest_hash,
        **fields,
    )
    if latest_hash in existing_hashes:
        log_event(logger, "the data already exists", stage="compare", event="DATA_EXISTS", status="ok", dataset_hash=latest_hash, **fields)
        return RefreshResult.nothing_to_do(selector, latest_hash)

    enrichment = cfg["enrichment"]
    geo_cache = GeoCache(
        backends.postcode_store,
        retries=enrichment["lookup_retries"],
        cancel_event=cancel_event,
        log=logger,
    )
    enricher = RowEnricher(
        geo_cache,
        batch_size=enrichment["batch_size"],
        max_workers=enrichment["lookup_workers"],
        progress_every=enrichment["progress_every"],
        cancel_event=cancel_event,
        log=logger,
        run_id=run_id,
    )
    log_event(logger, "enriching properties with geo location information", stage="enrich", event="ENRICH_START", status="ok", dataset_hash=latest_hash, **fields)
    rows = enricher.enrich_payload(payload)
    summary = summarise(rows)
    log_event(
        logger,
        f"downloaded and enriched {len(rows)} transactions ({summary['with_geo']} with geo location), now saving to storage",
        stage="enrich",
        event="ENRICH_END",
        status="ok",
        dataset_hash=latest_hash,
        rows=len(rows),
        details=summary,
        **fields,
    )

    if cancel_event.is_set():
        raise IngestionCancelled("Ingestion cancelled before export")

    formats = cfg["export"]["formats"]
    log_event(logger, f"exporting {len(rows)} rows as {', '.join(formats)}", stage="export", event="EXPORT_START", status="ok", dataset_hash=latest_hash, **fields)
    artifacts: list[tuple[str, list[str]]] = []
    for format_name in formats:
        exporter = get_exporter(format_name)
        for index, lines in export_chunks(rows, exporter, cfg["export"]["chunk_size"]):
            artifacts.append((chunk_blob_name(latest_hash, index, exporter.extension), lines))

    writer = BlobWriter(backends.blob_store)
    written = writer.write_all(artifacts)
    log_event(logger, f"wrote {written} chunks", stage="export", event="CHUNKS_WRITTEN", status="ok", dataset_hash=latest_hash, rows=len(rows), **fields)

    if cancel_event.is_set():
        log_warning(
            logger,
            "cancelled after chunks were written, hash marker not recorded",
            stage="export",
            event="HASH_SKIPPED",
            status="cancelled",
            dataset_hash=latest_hash,
            **fields,
        )
        raise IngestionCancelled("Ingestion cancelled before the hash marker was written")

    marker = writer.write_hash_marker(latest_hash)
    log_event(
        logger,
        f"recorded hash marker {marker}",
        stage="record",
        event="HASH_RECORDED",
        status="ok",
        dataset_hash=latest_hash,
        rows=len(rows),
        duration_ms=_elapsed_ms(started),
        **fields,
    )
    return RefreshResult(
        selector=selector,
        completed=True,
        dataset_hash=latest_hash,
        rows=len(rows),
        chunks_written=written,
    )
