from __future__ import annotations

from typing import Any, MutableMapping, Optional, Sequence, TypedDict

import requests

Row = dict[str, Any]


class Dataset(TypedDict, total=False):
    id: str
    filename: str
    storageKey: str
    uploadDate: str
    headers: list[str]
    rowCount: int
    previewData: list[Row]
    error: str


class UploadResult(TypedDict):
    data: list[Row]
    dataset: Dataset
    filePath: str


class DatasetClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def safe_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class DatasetClient:
    """
    Thin wrapper over the datasets API. Every failure (transport error,
    non-2xx status or a ``success: false`` envelope) is raised as
    DatasetClientError carrying the server's message when there is one.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, failure: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            resp = self.session.request(method, f"{self.base_url}{path}", **kwargs)
        except requests.RequestException as e:
            raise DatasetClientError(f"{failure}: {e}") from e

        if resp.status_code >= 400:
            payload = safe_json(resp)
            message = payload.get("error") if isinstance(payload, dict) else None
            raise DatasetClientError(message or f"{failure}: {resp.status_code}", resp.status_code)
        return resp

    def _envelope(self, method: str, path: str, failure: str, **kwargs: Any) -> dict[str, Any]:
        resp = self._request(method, path, failure, **kwargs)
        payload = safe_json(resp)
        if not isinstance(payload, dict):
            raise DatasetClientError(f"{failure}: unexpected response", resp.status_code)
        if not payload.get("success"):
            raise DatasetClientError(payload.get("error") or failure, resp.status_code)
        return payload

    def health(self) -> dict[str, Any]:
        return safe_json(self._request("GET", "/health", "Backend not reachable", timeout=3))

    def list_datasets(self) -> list[Dataset]:
        payload = self._envelope("GET", "/datasets", "Failed to fetch datasets")
        return payload.get("datasets", [])

    def get_dataset(self, dataset_id: str) -> tuple[list[Row], Dataset]:
        payload = self._envelope("GET", f"/datasets/{dataset_id}", "Failed to fetch dataset")
        return payload.get("data", []), payload["dataset"]

    def upload_dataset(self, filename: str, data: bytes) -> UploadResult:
        files = {"file": (filename, data, "text/csv")}
        payload = self._envelope(
            "POST", "/datasets", "Failed to upload CSV", files=files, timeout=max(self.timeout, 60)
        )
        return {
            "data": payload.get("data", []),
            "dataset": payload["dataset"],
            "filePath": payload.get("filePath", ""),
        }

    def delete_dataset(self, dataset_id: str) -> bool:
        self._envelope("DELETE", f"/datasets/{dataset_id}", "Failed to delete dataset")
        return True

    def export_dataset(self, dataset_id: str, columns: Optional[Sequence[str]] = None) -> bytes:
        params = {"columns": list(columns)} if columns else None
        resp = self._request(
            "GET", f"/datasets/{dataset_id}/export", "Failed to export dataset", params=params
        )
        return resp.content


ExportKey = tuple[str, tuple[str, ...]]


def export_key(dataset_id: str, columns: Optional[Sequence[str]] = None) -> ExportKey:
    return dataset_id, tuple(columns or ())


def cached_export(
    cache: MutableMapping[ExportKey, bytes],
    client: DatasetClient,
    dataset_id: str,
    columns: Optional[Sequence[str]] = None,
) -> bytes:
    """Export through `client` only on the first request for a (dataset, columns) pair.

    Stored datasets never change after upload, so a cached export stays valid
    until the dataset is deleted.
    """
    key = export_key(dataset_id, columns)
    if key not in cache:
        cache[key] = client.export_dataset(dataset_id, columns)
    return cache[key]
