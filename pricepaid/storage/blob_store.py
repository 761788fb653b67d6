"""Object storage backends for exported chunks and hash markers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient

from pricepaid.common.errors import StorageError
from pricepaid.common.fs import ensure_dir


class BlobStore(Protocol):
    def upload(self, name: str, data: bytes) -> None: ...

    def list_names(self, prefix: str) -> list[str]: ...


class AzureBlobStore:
    """Blob container client. Uploads overwrite; there is no concurrency check."""

    def __init__(self, container_client: ContainerClient) -> None:
        self.container_client = container_client

    @classmethod
    def from_connection_string(cls, connection_string: str, container: str) -> "AzureBlobStore":
        service = BlobServiceClient.from_connection_string(connection_string)
        return cls(service.get_container_client(container))

    def ensure_container(self) -> None:
        try:
            self.container_client.create_container()
        except ResourceExistsError:
            pass
        except AzureError as exc:
            raise StorageError(f"Unable to create container {self.container_client.container_name}") from exc

    def upload(self, name: str, data: bytes) -> None:
        try:
            self.container_client.upload_blob(name=name, data=data, overwrite=True)
        except AzureError as exc:
            raise StorageError(f"Upload failed for blob {name}") from exc

    def list_names(self, prefix: str) -> list[str]:
        try:
            return [blob.name for blob in self.container_client.list_blobs(name_starts_with=prefix)]
        except AzureError as exc:
            raise StorageError(f"Listing failed for prefix {prefix!r}") from exc


class LocalBlobStore:
    """Directory-backed store: one file per blob under ``root/container``."""

    def __init__(self, root: Path, container: str) -> None:
        self.base = root / container

    def ensure_container(self) -> None:
        ensure_dir(self.base)

    def _path(self, name: str) -> Path:
        path = (self.base / name).resolve()
        if self.base.resolve() not in path.parents:
            raise StorageError(f"Blob name escapes container: {name}")
        return path

    def upload(self, name: str, data: bytes) -> None:
        path = self._path(name)
        try:
            ensure_dir(path.parent)
            tmp_path = path.with_name(f".{path.name}.tmp")
            tmp_path.write_bytes(data)
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(f"Upload failed for blob {name}") from exc

    def list_names(self, prefix: str) -> list[str]:
        if not self.base.exists():
            return []
        names: Iterable[str] = (
            path.relative_to(self.base).as_posix()
            for path in self.base.rglob("*")
            if path.is_file() and not path.name.startswith(".")
        )
        return sorted(name for name in names if name.startswith(prefix))
