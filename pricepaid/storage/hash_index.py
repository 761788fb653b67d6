"""Lookup of dataset hashes that have already been fully ingested."""

from __future__ import annotations

from pathlib import PurePosixPath

from pricepaid.common.constants import HASH_MARKER_PREFIX
from pricepaid.storage.blob_store import BlobStore


class HashIndex:
    """Reads hash markers straight from storage on every call; nothing is cached."""

    def __init__(self, store: BlobStore) -> None:
        self.store = store

    def existing_hashes(self) -> set[str]:
        hashes = set()
        for name in self.store.list_names(HASH_MARKER_PREFIX):
            stem = PurePosixPath(name[len(HASH_MARKER_PREFIX):]).stem
            if stem:
                hashes.add(stem)
        return hashes
