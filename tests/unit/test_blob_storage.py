from __future__ import annotations

import threading
from pathlib import Path

import pytest

from pricepaid.common.errors import StorageError
from pricepaid.storage.blob_store import LocalBlobStore
from pricepaid.storage.blob_writer import BlobWriter, chunk_blob_name, hash_marker_name
from pricepaid.storage.hash_index import HashIndex


class MemoryBlobStore:
    def __init__(self, fail_on: set[str] | None = None):
        self.blobs: dict[str, bytes] = {}
        self.fail_on = fail_on or set()
        self.lock = threading.Lock()

    def upload(self, name: str, data: bytes) -> None:
        if name in self.fail_on:
            raise StorageError(f"Upload failed for blob {name}")
        with self.lock:
            self.blobs[name] = data

    def list_names(self, prefix: str) -> list[str]:
        return sorted(name for name in self.blobs if name.startswith(prefix))


def test_blob_names_are_deterministic():
    assert chunk_blob_name("ABC123", 0, "csv") == "ABC123-part-0.csv"
    assert chunk_blob_name("ABC123", 12, "json") == "ABC123-part-12.json"
    assert hash_marker_name("ABC123") == "hash-ABC123.txt"


def test_local_store_writes_overwrites_and_lists(tmp_path: Path):
    store = LocalBlobStore(tmp_path, "properties")
    store.ensure_container()

    store.upload("hash-AAA.txt", b"")
    store.upload("AAA-part-0.csv", b"first")
    store.upload("AAA-part-0.csv", b"second")

    assert (tmp_path / "properties" / "AAA-part-0.csv").read_bytes() == b"second"
    assert store.list_names("hash-") == ["hash-AAA.txt"]
    assert store.list_names("") == ["AAA-part-0.csv", "hash-AAA.txt"]


def test_local_store_lists_nothing_before_first_write(tmp_path: Path):
    assert LocalBlobStore(tmp_path, "properties").list_names("hash-") == []


def test_local_store_rejects_names_outside_container(tmp_path: Path):
    store = LocalBlobStore(tmp_path, "properties")
    with pytest.raises(StorageError):
        store.upload("../escape.txt", b"x")


def test_writer_joins_lines_and_writes_empty_marker():
    store = MemoryBlobStore()
    writer = BlobWriter(store)

    writer.write("X-part-0.csv", ["a,b", '"1","2"'])
    marker = writer.write_hash_marker("X")

    assert store.blobs["X-part-0.csv"] == b'a,b\n"1","2"'
    assert marker == "hash-X.txt"
    assert store.blobs["hash-X.txt"] == b""


def test_writer_writes_all_chunks_concurrently():
    store = MemoryBlobStore()
    artifacts = [(chunk_blob_name("X", i, "csv"), [f"line {i}"]) for i in range(20)]

    assert BlobWriter(store, max_workers=4).write_all(artifacts) == 20
    assert len(store.blobs) == 20


def test_writer_raises_after_all_writes_settle():
    store = MemoryBlobStore(fail_on={"X-part-3.csv"})
    artifacts = [(chunk_blob_name("X", i, "csv"), ["line"]) for i in range(6)]

    with pytest.raises(StorageError, match="X-part-3.csv"):
        BlobWriter(store, max_workers=2).write_all(artifacts)
    assert len(store.blobs) == 5


def test_hash_index_strips_prefix_and_extension():
    store = MemoryBlobStore()
    store.blobs = {
        "hash-AAA.txt": b"",
        "hash-BBB.txt": b"",
        "AAA-part-0.csv": b"data",
    }

    index = HashIndex(store)

    assert index.existing_hashes() == {"AAA", "BBB"}


def test_hash_index_is_not_cached():
    store = MemoryBlobStore()
    index = HashIndex(store)

    assert index.existing_hashes() == set()
    BlobWriter(store).write_hash_marker("NEW")
    assert index.existing_hashes() == {"NEW"}
