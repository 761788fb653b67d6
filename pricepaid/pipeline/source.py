"""Price-paid dataset download."""

from __future__ import annotations

import threading

from pricepaid.common.errors import IngestionCancelled
from pricepaid.common.http import HttpClient
from pricepaid.common.models import RefreshType


def dataset_url(selector: RefreshType, dataset_config: dict) -> str:
    if selector.is_latest_month:
        return dataset_config["latest_month_url"]
    return dataset_config["year_url_template"].format(year=selector.year)


def download_dataset(
    client: HttpClient,
    selector: RefreshType,
    dataset_config: dict,
    cancel_event: threading.Event,
) -> bytes:
    if cancel_event.is_set():
        raise IngestionCancelled(f"Download of {selector.label()} cancelled before start")
    data = client.get_bytes(dataset_url(selector, dataset_config), cancel_event=cancel_event)
    if cancel_event.is_set():
        raise IngestionCancelled(f"Download of {selector.label()} cancelled")
    return data
