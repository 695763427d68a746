"""Tests for the dashboard's HTTP client, with the backend mocked by `responses`."""

import pytest
import requests
import responses

from dataset_client import DatasetClient, DatasetClientError, cached_export, export_key

BASE = "http://backend.test"

DATASET = {
    "id": "a" * 32,
    "filename": "people.csv",
    "storageKey": f"{'a' * 32}-people.csv",
    "uploadDate": "2026-01-01T00:00:00Z",
    "headers": ["name", "age"],
    "rowCount": 2,
}
ROWS = [{"name": "Alice", "age": 30}, {"name": "Bob", "age": 25}]


@pytest.fixture
def client() -> DatasetClient:
    return DatasetClient(BASE)


@responses.activate
def test_list_datasets(client: DatasetClient) -> None:
    responses.get(f"{BASE}/datasets", json={"success": True, "datasets": [DATASET]})

    assert client.list_datasets() == [DATASET]


@responses.activate
def test_get_dataset(client: DatasetClient) -> None:
    responses.get(
        f"{BASE}/datasets/{DATASET['id']}",
        json={"success": True, "data": ROWS, "dataset": DATASET},
    )

    rows, dataset = client.get_dataset(DATASET["id"])

    assert rows == ROWS
    assert dataset["rowCount"] == 2


@responses.activate
def test_upload_dataset_sends_multipart(client: DatasetClient) -> None:
    responses.post(
        f"{BASE}/datasets",
        json={"success": True, "data": ROWS, "dataset": DATASET, "filePath": "/uploads/x"},
    )

    result = client.upload_dataset("people.csv", b"name,age\nAlice,30\nBob,25\n")

    assert result["dataset"]["id"] == DATASET["id"]
    assert result["filePath"] == "/uploads/x"
    sent = responses.calls[0].request
    assert sent.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="file"; filename="people.csv"' in sent.body


@responses.activate
def test_delete_dataset(client: DatasetClient) -> None:
    responses.delete(
        f"{BASE}/datasets/{DATASET['id']}",
        json={"success": True, "message": "Dataset deleted successfully"},
    )

    assert client.delete_dataset(DATASET["id"]) is True


@responses.activate
def test_server_error_message_is_surfaced(client: DatasetClient) -> None:
    responses.get(
        f"{BASE}/datasets/missing",
        json={"success": False, "error": "Dataset not found"},
        status=404,
    )

    with pytest.raises(DatasetClientError) as exc_info:
        client.get_dataset("missing")

    assert exc_info.value.message == "Dataset not found"
    assert exc_info.value.status_code == 404


@responses.activate
def test_generic_message_when_server_gives_none(client: DatasetClient) -> None:
    responses.get(f"{BASE}/datasets", body="Bad Gateway", status=502)

    with pytest.raises(DatasetClientError, match="Failed to fetch datasets: 502"):
        client.list_datasets()


@responses.activate
def test_success_false_with_2xx_is_an_error(client: DatasetClient) -> None:
    responses.delete(f"{BASE}/datasets/x", json={"success": False}, status=200)

    with pytest.raises(DatasetClientError, match="Failed to delete dataset"):
        client.delete_dataset("x")


@responses.activate
def test_transport_error_is_wrapped(client: DatasetClient) -> None:
    responses.get(f"{BASE}/datasets", body=requests.ConnectionError("refused"))

    with pytest.raises(DatasetClientError, match="Failed to fetch datasets"):
        client.list_datasets()


@responses.activate
def test_export_passes_selected_columns(client: DatasetClient) -> None:
    responses.get(
        f"{BASE}/datasets/{DATASET['id']}/export",
        body="age\n30\n25\n",
        content_type="text/csv",
    )

    content = client.export_dataset(DATASET["id"], ["age"])

    assert content == b"age\n30\n25\n"
    assert "columns=age" in responses.calls[0].request.url


@responses.activate
def test_health(client: DatasetClient) -> None:
    responses.get(f"{BASE}/health", json={"status": "ok"})

    assert client.health() == {"status": "ok"}


@responses.activate
def test_health_when_backend_is_down(client: DatasetClient) -> None:
    responses.get(f"{BASE}/health", body=requests.ConnectionError("refused"))

    with pytest.raises(DatasetClientError, match="Backend not reachable"):
        client.health()


@responses.activate
def test_export_is_fetched_once_per_column_selection(client: DatasetClient) -> None:
    """Repeated renders of the same selection reuse the first download."""
    url = f"{BASE}/datasets/{DATASET['id']}/export"
    responses.get(url, body="age\n30\n25\n", content_type="text/csv")
    cache: dict = {}

    first = cached_export(cache, client, DATASET["id"], ["age"])
    second = cached_export(cache, client, DATASET["id"], ["age"])
    assert first == second == b"age\n30\n25\n"
    assert len(responses.calls) == 1

    cached_export(cache, client, DATASET["id"], ["name", "age"])
    assert len(responses.calls) == 2
    assert export_key(DATASET["id"], ["age"]) in cache
