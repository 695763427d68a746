from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from optiplus.api.deps import get_catalog
from optiplus.schemas.dataset import (
    DatasetDetailResponse,
    DatasetListResponse,
    DatasetUploadResponse,
    MessageResponse,
)
from optiplus.services.dataset_catalog import DatasetCatalog
from optiplus.services.errors import ValidationError

logger = logging.getLogger("optiplus")

router = APIRouter(prefix="/datasets", tags=["datasets"])


@router.get("", response_model=DatasetListResponse)
def list_datasets(catalog: DatasetCatalog = Depends(get_catalog)) -> DatasetListResponse:
    return DatasetListResponse(datasets=catalog.list())


@router.post("", response_model=DatasetUploadResponse)
async def upload_dataset(
    file: UploadFile | None = File(None),
    catalog: DatasetCatalog = Depends(get_catalog),
) -> DatasetUploadResponse:
    if file is None:
        raise ValidationError("No file provided")

    raw = await file.read()
    dataset, rows = catalog.create(file.filename, raw)

    return DatasetUploadResponse(
        data=rows,
        dataset=dataset,
        file_path=catalog.public_path(dataset),
    )


@router.get("/{dataset_id}", response_model=DatasetDetailResponse)
def get_dataset(
    dataset_id: str,
    catalog: DatasetCatalog = Depends(get_catalog),
) -> DatasetDetailResponse:
    dataset, rows = catalog.get(dataset_id)
    return DatasetDetailResponse(data=rows, dataset=dataset)


@router.delete("/{dataset_id}", response_model=MessageResponse)
def delete_dataset(
    dataset_id: str,
    catalog: DatasetCatalog = Depends(get_catalog),
) -> MessageResponse:
    catalog.delete(dataset_id)
    logger.info("Dataset %s deleted", dataset_id)
    return MessageResponse(message="Dataset deleted successfully")


@router.get("/{dataset_id}/export")
def export_dataset(
    dataset_id: str,
    columns: list[str] | None = Query(default=None),
    catalog: DatasetCatalog = Depends(get_catalog),
) -> Response:
    filename, content = catalog.export(dataset_id, columns)
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": disposition},
    )
