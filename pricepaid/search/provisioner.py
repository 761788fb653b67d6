"""Idempotent provisioning of the search index, its data source and indexers."""

from __future__ import annotations

import logging

from pricepaid.common.errors import ProvisioningError
from pricepaid.common.http import HttpClient, HttpRequestError
from pricepaid.common.logging import log_event
from pricepaid.search.schema import (
    data_source_definition,
    index_definition,
    indexer_definition,
    indexer_name,
)


class IndexProvisioner:
    """Creates the index and its feeders when the index is missing.

    An existing index is left untouched; schema drift is not reconciled.
    """

    def __init__(
        self,
        cfg: dict,
        http_client: HttpClient,
        *,
        logger: logging.Logger,
        run_id: str | None = None,
    ) -> None:
        self.search = cfg["search"]
        self.storage = cfg["storage"]
        self.export_formats = cfg["export"]["formats"]
        self.client = http_client
        self.logger = logger
        self.run_id = run_id
        self.endpoint = f"https://{self.search['service_name']}.search.windows.net"

    def _headers(self) -> dict[str, str]:
        return {"api-key": self.search["api_key"]}

    def _params(self) -> dict[str, str]:
        return {"api-version": self.search["api_version"]}

    def _put(self, path: str, body: dict) -> None:
        self.client.put_json(f"{self.endpoint}/{path}", json_body=body, params=self._params(), headers=self._headers())

    def list_indexes(self) -> set[str]:
        payload = self.client.get_json(
            f"{self.endpoint}/indexes",
            params={**self._params(), "$select": "name"},
            headers=self._headers(),
        )
        return {item["name"] for item in payload.get("value", [])}

    def ensure(self) -> bool:
        """Return True when resources were created, False when the index already existed."""
        index_name = self.search["index_name"]
        try:
            if index_name in self.list_indexes():
                log_event(self.logger, f"search index {index_name!r} already exists", run_id=self.run_id, stage="provision", event="INDEX_EXISTS", status="ok")
                return False

            self._put(f"indexes/{index_name}", index_definition(index_name, self.search["suggester_name"]))
            data_source_name = self.search["data_source_name"]
            self._put(
                f"datasources/{data_source_name}",
                data_source_definition(data_source_name, self.storage["connection_string"], self.storage["container"]),
            )
            for export_format in self.export_formats:
                self._put(
                    f"indexers/{indexer_name(index_name, export_format)}",
                    indexer_definition(index_name, data_source_name, export_format, self.search["indexer_interval"]),
                )
        except HttpRequestError as exc:
            raise ProvisioningError(f"Unable to provision search index {index_name!r}: {exc}") from exc

        log_event(self.logger, f"created search index {index_name!r} with data source and indexers", run_id=self.run_id, stage="provision", event="INDEX_PROVISIONED", status="ok")
        return True
