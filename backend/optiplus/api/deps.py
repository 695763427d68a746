from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from optiplus.core.config import Settings, get_settings
from optiplus.services.dataset_catalog import DatasetCatalog
from optiplus.services.dataset_store import DatasetStore


@lru_cache
def get_dataset_store() -> DatasetStore:
    # one index per process; rebuilt from the upload directory on first use
    return DatasetStore(get_settings().upload_dir)


def get_catalog(
    store: DatasetStore = Depends(get_dataset_store),
    settings: Settings = Depends(get_settings),
) -> DatasetCatalog:
    return DatasetCatalog(
        store,
        preview_rows=settings.preview_rows,
        public_prefix=settings.public_upload_prefix,
    )
