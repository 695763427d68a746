from __future__ import annotations


class DatasetError(Exception):
    """Base class for dataset pipeline failures; carries the HTTP status it maps to."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DatasetError):
    """Missing or unusable request input (no file, blank id, unknown column)."""

    status_code = 400


class ParseError(DatasetError):
    """Malformed CSV content. `row` is the 1-based line of the first offending record."""

    status_code = 400

    def __init__(self, message: str, row: int | None = None) -> None:
        super().__init__(message)
        self.row = row


class NotFound(DatasetError):
    status_code = 404

    def __init__(self, message: str = "Dataset not found") -> None:
        super().__init__(message)


class StorageError(DatasetError):
    """Filesystem failure unrelated to file content."""

    status_code = 500
