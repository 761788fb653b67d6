"""Durable, idempotent writes of exported chunks and hash markers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

from pricepaid.common.constants import HASH_MARKER_EXTENSION, HASH_MARKER_PREFIX
from pricepaid.storage.blob_store import BlobStore

LINE_SEPARATOR = "\n"


def chunk_blob_name(dataset_hash: str, index: int, extension: str) -> str:
    return f"{dataset_hash}-part-{index}.{extension}"


def hash_marker_name(dataset_hash: str) -> str:
    return f"{HASH_MARKER_PREFIX}{dataset_hash}{HASH_MARKER_EXTENSION}"


class BlobWriter:
    """Stateless facade over a blob store. Writing the same name twice overwrites."""

    def __init__(self, store: BlobStore, max_workers: int = 8) -> None:
        self.store = store
        self.max_workers = max_workers

    def write(self, name: str, lines: Sequence[str]) -> None:
        self.store.upload(name, LINE_SEPARATOR.join(lines).encode("utf-8"))

    def write_all(self, artifacts: Sequence[tuple[str, Sequence[str]]]) -> int:
        """Issue every write concurrently and wait for all of them.

        The first failure is re-raised only after the remaining writes have settled,
        so nothing is left in flight when the caller decides what to do next.
        """
        if not artifacts:
            return 0
        first_error: BaseException | None = None
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(artifacts))) as executor:
            futures = [executor.submit(self.write, name, lines) for name, lines in artifacts]
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return len(artifacts)

    def write_hash_marker(self, dataset_hash: str) -> str:
        name = hash_marker_name(dataset_hash)
        self.write(name, [])
        return name
