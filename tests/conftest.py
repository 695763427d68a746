"""Common fixtures for the dataset pipeline tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from optiplus.api.deps import get_dataset_store
from optiplus.main import app
from optiplus.services.dataset_catalog import DatasetCatalog
from optiplus.services.dataset_store import DatasetStore

PEOPLE_CSV = b"name,age\nAlice,30\nBob,25\n"
HEADER_ONLY_CSV = b"name,age\n"
UNBALANCED_QUOTE_CSV = b'name,age\n"Alice,30\nBob,25\n'


# ==== fixtures


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Upload directory that does not exist yet, like on a fresh install."""
    return tmp_path / "uploads" / "datasets"


@pytest.fixture
def store(upload_dir: Path) -> DatasetStore:
    return DatasetStore(upload_dir)


@pytest.fixture
def catalog(store: DatasetStore) -> DatasetCatalog:
    return DatasetCatalog(store)


@pytest.fixture
def api(store: DatasetStore):
    """TestClient bound to a store rooted in a temporary directory."""
    app.dependency_overrides[get_dataset_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(api: TestClient, content: bytes, filename: str = "people.csv"):
    return api.post("/datasets", files={"file": (filename, content, "text/csv")})
