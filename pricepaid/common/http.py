"""HTTP client with retries and timeouts."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, stop_when_event_set, wait_exponential_jitter

from pricepaid.common.constants import USER_AGENT
from pricepaid.common.errors import IngestionCancelled, StageError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
DOWNLOAD_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


# The full yearly price-paid files run to hundreds of megabytes.
DOWNLOAD_TIMEOUT = TimeoutConfig(connect=30.0, read=900.0)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 5
    multiplier: float = 1.0
    max_wait: float = 30.0


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None, accept: str) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": accept}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} from {url}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status {status} from {url}")

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json_body: dict[str, Any] | None,
        headers: dict[str, str] | None,
        accept: str,
        timeout: TimeoutConfig | None,
        stream: bool = False,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=self._headers(headers, accept),
                timeout=(req_timeout.connect, req_timeout.read),
                stream=stream,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetryableHttpError(f"Transport failure for {url}: {exc}") from exc
        try:
            self._raise_for_status_or_retry(response, url)
        except HttpRequestError:
            response.close()
            raise
        return response

    def _with_retries(self, fn, cancel_event: threading.Event | None = None):
        stop = stop_after_attempt(self.retry.max_attempts)
        options: dict[str, Any] = {}
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
            # Backoff sleeps wake up as soon as the event is set.
            options["sleep"] = cancel_event.wait
        return retry(
            stop=stop,
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
            **options,
        )(fn)

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        def _wrapped() -> dict[str, Any]:
            response = self._send(
                method,
                url,
                params=params,
                json_body=json_body,
                headers=headers,
                accept="application/json",
                timeout=timeout,
            )
            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as exc:
                raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

        return self._with_retries(_wrapped)()

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json("GET", url, params=params, headers=headers, timeout=timeout)

    def put_json(
        self,
        url: str,
        *,
        json_body: dict[str, Any],
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json("PUT", url, params=params, json_body=json_body, headers=headers, timeout=timeout)

    def get_bytes(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Stream ``url`` into memory. Setting ``cancel_event`` aborts between chunks and retries."""

        def _wrapped() -> bytes:
            if cancel_event is not None and cancel_event.is_set():
                raise IngestionCancelled(f"Download of {url} cancelled")
            response = self._send(
                "GET",
                url,
                params=None,
                json_body=None,
                headers=headers,
                accept="text/csv, */*",
                timeout=timeout or DOWNLOAD_TIMEOUT,
                stream=True,
            )
            try:
                return self._read_body(response, url, cancel_event)
            finally:
                response.close()

        try:
            return self._with_retries(_wrapped, cancel_event)()
        except HttpRequestError as exc:
            if cancel_event is not None and cancel_event.is_set():
                raise IngestionCancelled(f"Download of {url} cancelled") from exc
            raise

    def _read_body(self, response: requests.Response, url: str, cancel_event: threading.Event | None) -> bytes:
        body = bytearray()
        try:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                if cancel_event is not None and cancel_event.is_set():
                    raise IngestionCancelled(f"Download of {url} cancelled after {len(body)} bytes")
                body.extend(chunk)
        except (requests.ConnectionError, requests.Timeout, requests.exceptions.ChunkedEncodingError) as exc:
            raise RetryableHttpError(f"Transport failure while reading {url}: {exc}") from exc
        return bytes(body)
