from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DatasetOut(CamelModel):
    id: str
    filename: str
    storage_key: str
    upload_date: datetime | None = None
    headers: list[str] = Field(default_factory=list)
    row_count: int = 0
    preview_data: list[dict[str, Any]] | None = None
    error: str | None = None

    @model_serializer(mode="wrap")
    def omit_absent_optionals(self, handler):
        data = handler(self)
        for key in ("previewData", "preview_data", "error"):
            if key in data and data[key] is None:
                del data[key]
        return data


class DatasetListResponse(CamelModel):
    success: bool = True
    datasets: list[DatasetOut] = Field(default_factory=list)


class DatasetDetailResponse(CamelModel):
    success: bool = True
    data: list[dict[str, Any]] = Field(default_factory=list)
    dataset: DatasetOut


class DatasetUploadResponse(DatasetDetailResponse):
    file_path: str


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
