from __future__ import annotations

import threading

import pytest
import requests

from pricepaid.common.errors import IngestionCancelled
from pricepaid.common.http import HttpClient, RetryConfig
from pricepaid.common.models import RefreshType
from pricepaid.pipeline.source import dataset_url, download_dataset

DATASET = {
    "latest_month_url": "https://example.test/pp-monthly.csv",
    "year_url_template": "https://example.test/pp-{year}.csv",
}


def test_dataset_url_per_selector():
    assert dataset_url(RefreshType.latest_month(), DATASET) == "https://example.test/pp-monthly.csv"
    assert dataset_url(RefreshType.for_year(2015), DATASET) == "https://example.test/pp-2015.csv"


def test_shutdown_during_download_stops_after_one_request(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=5, multiplier=0, max_wait=0))
    cancel = threading.Event()
    calls = []

    def fake_request(**kwargs):
        calls.append(kwargs["url"])
        cancel.set()
        raise requests.ConnectionError("connection dropped")

    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(IngestionCancelled):
        download_dataset(client, RefreshType.latest_month(), DATASET, cancel)
    assert calls == ["https://example.test/pp-monthly.csv"]


def test_cancel_before_download_makes_no_request(monkeypatch):
    client = HttpClient()
    cancel = threading.Event()
    cancel.set()
    calls = []
    monkeypatch.setattr(client.session, "request", lambda **kwargs: calls.append(kwargs))

    with pytest.raises(IngestionCancelled):
        download_dataset(client, RefreshType.for_year(2020), DATASET, cancel)
    assert calls == []
