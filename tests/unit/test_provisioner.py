from __future__ import annotations

import logging

import pytest

from pricepaid.common.errors import ProvisioningError
from pricepaid.common.http import HttpRequestError
from pricepaid.search.provisioner import IndexProvisioner


class FakeSearchClient:
    def __init__(self, indexes: list[str] | None = None, fail_on: str | None = None):
        self.indexes = indexes or []
        self.fail_on = fail_on
        self.puts: list[tuple[str, dict]] = []
        self.gets: list[tuple[str, dict]] = []

    def get_json(self, url, *, params=None, headers=None, timeout=None):
        self.gets.append((url, params))
        return {"value": [{"name": name} for name in self.indexes]}

    def put_json(self, url, *, json_body, params=None, headers=None, timeout=None):
        if self.fail_on and self.fail_on in url:
            raise HttpRequestError(f"HTTP status 400 from {url}")
        assert headers == {"api-key": "secret"}
        assert params == {"api-version": "2023-11-01"}
        self.puts.append((url, json_body))
        return {}


def _config(formats=("csv",)) -> dict:
    return {
        "search": {
            "enabled": True,
            "service_name": "svc",
            "api_key": "secret",
            "index_name": "properties",
            "suggester_name": "suggester",
            "data_source_name": "blob-transactions",
            "api_version": "2023-11-01",
            "indexer_interval": "PT1H",
        },
        "storage": {"backend": "azure", "container": "properties", "connection_string": "conn"},
        "export": {"formats": list(formats)},
    }


def _provisioner(client, formats=("csv",)) -> IndexProvisioner:
    return IndexProvisioner(_config(formats), client, logger=logging.getLogger("test.provision"))


def test_creates_index_data_source_and_indexer_when_missing():
    client = FakeSearchClient()

    assert _provisioner(client).ensure() is True

    urls = [url for url, _body in client.puts]
    assert urls == [
        "https://svc.search.windows.net/indexes/properties",
        "https://svc.search.windows.net/datasources/blob-transactions",
        "https://svc.search.windows.net/indexers/properties-csv-indexer",
    ]
    index, data_source, indexer = (body for _url, body in client.puts)
    assert [f["name"] for f in index["fields"] if f["key"]] == ["TransactionId"]
    assert index["suggesters"][0]["sourceFields"] == ["Street", "Locality", "Town", "District", "County"]
    assert data_source["container"] == {"name": "properties"}
    assert data_source["credentials"] == {"connectionString": "conn"}
    assert indexer["schedule"] == {"interval": "PT1H"}
    assert indexer["parameters"]["configuration"]["parsingMode"] == "delimitedText"
    assert indexer["parameters"]["configuration"]["firstLineContainsHeaders"] is True


def test_existing_index_is_left_alone():
    client = FakeSearchClient(indexes=["properties"])

    assert _provisioner(client).ensure() is False
    assert client.puts == []
    assert client.gets[0][1]["$select"] == "name"


def test_one_indexer_per_export_format():
    client = FakeSearchClient()

    _provisioner(client, formats=("csv", "json")).ensure()

    indexers = [body for url, body in client.puts if "/indexers/" in url]
    assert [body["name"] for body in indexers] == ["properties-csv-indexer", "properties-json-indexer"]
    assert indexers[1]["parameters"]["configuration"]["parsingMode"] == "jsonLines"


def test_http_failures_become_provisioning_errors():
    client = FakeSearchClient(fail_on="/datasources/")

    with pytest.raises(ProvisioningError):
        _provisioner(client).ensure()
