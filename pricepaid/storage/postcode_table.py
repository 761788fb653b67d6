"""Postcode -> coordinate lookup stores, keyed by (area, sector)."""

from __future__ import annotations

from itertools import groupby, islice
from pathlib import Path
from typing import Any, Iterable, Protocol

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.data.tables import TableClient

from pricepaid.common.errors import StorageError

TABLE_TRANSACTION_LIMIT = 100


class PostcodeStore(Protocol):
    def get(self, area: str, sector: str) -> dict[str, Any] | None:
        """Return the stored row (with optional ``Lat``/``Long``), or ``None`` when not found."""
        ...


def _plain_value(value: Any) -> Any:
    # Typed table properties arrive as EntityProperty(value, edm_type).
    return getattr(value, "value", value)


class AzurePostcodeTable:
    def __init__(self, table_client: TableClient) -> None:
        self.table_client = table_client

    @classmethod
    def from_connection_string(cls, connection_string: str, table_name: str) -> "AzurePostcodeTable":
        return cls(TableClient.from_connection_string(connection_string, table_name=table_name))

    def ensure_table(self) -> None:
        try:
            self.table_client.create_table()
        except ResourceExistsError:
            pass
        except AzureError as exc:
            raise StorageError(f"Unable to create table {self.table_client.table_name}") from exc

    def get(self, area: str, sector: str) -> dict[str, Any] | None:
        # Any other AzureError propagates so the caller's retry loop sees it.
        try:
            entity = self.table_client.get_entity(partition_key=area, row_key=sector)
        except ResourceNotFoundError:
            return None
        return {key: _plain_value(value) for key, value in entity.items()}

    def upsert_entities(self, entities: Iterable[dict[str, Any]]) -> int:
        """Upsert entities in per-partition transactions. Input must be grouped by PartitionKey."""
        written = 0
        for _partition, group in groupby(entities, key=lambda entity: entity["PartitionKey"]):
            group_iter = iter(group)
            while True:
                batch = list(islice(group_iter, TABLE_TRANSACTION_LIMIT))
                if not batch:
                    break
                try:
                    self.table_client.submit_transaction([("upsert", entity) for entity in batch])
                except AzureError as exc:
                    raise StorageError(f"Postcode upsert failed for partition {batch[0]['PartitionKey']}") from exc
                written += len(batch)
        return written


class CsvPostcodeTable:
    """In-memory store loaded from a postcode CSV, for local runs."""

    def __init__(self, entities: Iterable[dict[str, Any]]) -> None:
        self.rows = {(entity["PartitionKey"], entity["RowKey"]): entity for entity in entities}

    @classmethod
    def from_csv(cls, path: Path, file_format: str = "ukpostcodes") -> "CsvPostcodeTable":
        from pricepaid.pipeline.postcode_seed import read_postcode_entities

        return cls(read_postcode_entities(path, file_format=file_format))

    def get(self, area: str, sector: str) -> dict[str, Any] | None:
        return self.rows.get((area, sector))

    def upsert_entities(self, entities: Iterable[dict[str, Any]]) -> int:
        count = 0
        for entity in entities:
            self.rows[(entity["PartitionKey"], entity["RowKey"])] = entity
            count += 1
        return count
