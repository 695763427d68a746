from __future__ import annotations

import logging
from typing import Sequence

from optiplus.schemas.dataset import DatasetOut
from optiplus.services.csv_parser import ParsedCsv, Row, parse_csv, rows_to_csv
from optiplus.services.dataset_store import DatasetStore, StoredDataset
from optiplus.services.errors import NotFound, ParseError, StorageError, ValidationError

logger = logging.getLogger("optiplus")

PREVIEW_ROWS = 3


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _parse(data: bytes) -> ParsedCsv:
    try:
        return parse_csv(_decode(data))
    except ParseError as e:
        raise ParseError(f"Error parsing CSV: {e.message}", row=e.row) from e


def _require_id(dataset_id: str | None) -> str:
    dataset_id = (dataset_id or "").strip()
    if not dataset_id:
        raise ValidationError("Dataset ID is required")
    return dataset_id


def _to_out(entry: StoredDataset, parsed: ParsedCsv | None = None, **extra) -> DatasetOut:
    return DatasetOut(
        id=entry.id,
        filename=entry.filename,
        storage_key=entry.storage_key,
        upload_date=entry.uploaded_at,
        headers=list(parsed.headers) if parsed else [],
        row_count=parsed.row_count if parsed else 0,
        **extra,
    )


class DatasetCatalog:
    """
    Request-level dataset operations: parse + persist on upload, and
    metadata recomputed from file content on every read.
    """

    def __init__(
        self,
        store: DatasetStore,
        preview_rows: int = PREVIEW_ROWS,
        public_prefix: str = "/uploads/datasets",
    ) -> None:
        self.store = store
        self.preview_rows = preview_rows
        self.public_prefix = public_prefix.rstrip("/")

    def public_path(self, dataset: DatasetOut) -> str:
        return f"{self.public_prefix}/{dataset.storage_key}"

    def create(self, filename: str | None, data: bytes | None) -> tuple[DatasetOut, list[Row]]:
        if data is None:
            raise ValidationError("No file provided")
        if not data:
            raise ValidationError("Empty file")

        # Parse before writing anything: a rejected upload leaves no file behind.
        parsed = _parse(data)
        entry = self.store.put(filename, data)

        logger.info(
            "Dataset uploaded id=%s filename=%s rows=%d columns=%d",
            entry.id,
            entry.filename,
            parsed.row_count,
            len(parsed.headers),
        )
        return _to_out(entry, parsed), parsed.rows

    def list(self) -> list[DatasetOut]:
        datasets: list[DatasetOut] = []
        for entry in self.store.list():
            try:
                parsed = _parse(self.store.get(entry.id))
            except NotFound:
                # deleted since the directory scan
                continue
            except ParseError as e:
                logger.warning("Dataset %s failed to parse: %s", entry.id, e.message)
                datasets.append(_to_out(entry, error=e.message))
                continue
            except (StorageError, OSError):
                logger.exception("Error processing file %s", entry.storage_key)
                datasets.append(_to_out(entry, error="Failed to process file"))
                continue

            datasets.append(
                _to_out(entry, parsed, preview_data=parsed.rows[: self.preview_rows])
            )
        return datasets

    def get(self, dataset_id: str | None) -> tuple[DatasetOut, list[Row]]:
        dataset_id = _require_id(dataset_id)
        entry = self.store.entry(dataset_id)
        parsed = _parse(self.store.get(dataset_id))
        return _to_out(entry, parsed), parsed.rows

    def delete(self, dataset_id: str | None) -> None:
        dataset_id = _require_id(dataset_id)
        self.store.delete(dataset_id)

    def export(
        self, dataset_id: str | None, columns: Sequence[str] | None = None
    ) -> tuple[str, str]:
        """Return ``(download_name, csv_text)`` for the selected columns (all by default)."""
        dataset, rows = self.get(dataset_id)

        selected = list(columns) if columns else list(dataset.headers)
        unknown = [c for c in selected if c not in dataset.headers]
        if unknown:
            raise ValidationError(f"Unknown column(s): {', '.join(unknown)}")

        return dataset.filename, rows_to_csv(rows, selected)
