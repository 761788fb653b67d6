"""Construction of the storage backends named in config."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pricepaid.common.errors import ConfigError
from pricepaid.storage.blob_store import AzureBlobStore, BlobStore, LocalBlobStore
from pricepaid.storage.postcode_table import AzurePostcodeTable, CsvPostcodeTable, PostcodeStore


@dataclass(frozen=True)
class StorageBackends:
    blob_store: BlobStore
    postcode_store: PostcodeStore


def build_blob_store(storage_config: dict) -> BlobStore:
    if storage_config["backend"] == "local":
        store = LocalBlobStore(Path(storage_config["local_root"]), storage_config["container"])
    else:
        store = AzureBlobStore.from_connection_string(
            storage_config["connection_string"],
            storage_config["container"],
        )
    store.ensure_container()
    return store


def build_postcode_store(storage_config: dict) -> PostcodeStore:
    if storage_config["backend"] == "local":
        path = Path(storage_config["postcode_csv"])
        if not path.exists():
            raise ConfigError(f"storage.postcode_csv does not exist: {path}")
        return CsvPostcodeTable.from_csv(path)
    return AzurePostcodeTable.from_connection_string(
        storage_config["connection_string"],
        storage_config["postcode_table"],
    )


def build_backends(storage_config: dict) -> StorageBackends:
    return StorageBackends(
        blob_store=build_blob_store(storage_config),
        postcode_store=build_postcode_store(storage_config),
    )
