from __future__ import annotations

import logging
import os
import re
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from optiplus.services.errors import NotFound, StorageError

logger = logging.getLogger("optiplus")

DEFAULT_FILENAME = "dataset.csv"

_STORAGE_KEY_RE = re.compile(r"^(?P<id>[0-9a-f]{32})-(?P<name>.+)$")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._ -]")


@dataclass(frozen=True)
class StoredDataset:
    id: str
    filename: str
    storage_key: str
    uploaded_at: datetime


def sanitize_filename(name: str | None) -> str:
    """Strip directory components and characters that are unsafe in a file name."""
    base = re.split(r"[\\/]", name or "")[-1].strip()
    base = _UNSAFE_CHARS_RE.sub("_", base)
    if base in {"", ".", ".."}:
        return DEFAULT_FILENAME
    return base


class DatasetStore:
    """
    Flat-file persistence for uploaded datasets.

    Each dataset is a single file named ``{id}-{filename}`` under ``root``.
    Lookups go through an explicit id -> entry index which is rebuilt from a
    directory scan, so ids are matched exactly and never by prefix.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._index: dict[str, StoredDataset] = {}
        self.refresh()

    def ensure_dir(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create upload directory: {e}") from e

    def refresh(self) -> None:
        """Rebuild the index from the files currently on disk."""
        index: dict[str, StoredDataset] = {}
        if self.root.is_dir():
            try:
                paths = list(self.root.iterdir())
            except OSError as e:
                raise StorageError(f"Could not list upload directory: {e}") from e
            # entries created by this process keep their exact name and timestamp
            known = {entry.storage_key: entry for entry in self._index.values()}
            for path in paths:
                entry = known.get(path.name) or self._entry_from_path(path)
                if entry is not None:
                    index[entry.id] = entry
        self._index = index

    def _entry_from_path(self, path: Path) -> StoredDataset | None:
        m = _STORAGE_KEY_RE.match(path.name)
        if not m or not path.is_file():
            return None
        try:
            mtime = path.stat().st_mtime
        except OSError:
            logger.warning("Skipping unreadable dataset file %s", path.name)
            return None
        return StoredDataset(
            id=m.group("id"),
            filename=m.group("name"),
            storage_key=path.name,
            uploaded_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
        )

    def _lookup(self, dataset_id: str) -> StoredDataset:
        entry = self._index.get(dataset_id)
        if entry is None:
            # another process may have written it since the last scan
            self.refresh()
            entry = self._index.get(dataset_id)
        if entry is None or not self.path_for(entry).is_file():
            self._index.pop(dataset_id, None)
            raise NotFound()
        return entry

    def path_for(self, entry: StoredDataset) -> Path:
        return self.root / entry.storage_key

    def put(self, original_name: str | None, data: bytes) -> StoredDataset:
        self.ensure_dir()

        dataset_id = uuid.uuid4().hex
        storage_key = f"{dataset_id}-{sanitize_filename(original_name)}"
        target = self.root / storage_key
        now = datetime.now(timezone.utc)
        uploaded_at = now.replace(microsecond=now.microsecond // 1000 * 1000)

        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".upload-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
            # mtime carries the upload instant so listings agree with the create response
            ts = uploaded_at.timestamp()
            os.utime(target, (ts, ts))
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Could not write dataset file: {e}") from e

        entry = StoredDataset(
            id=dataset_id,
            filename=original_name or DEFAULT_FILENAME,
            storage_key=storage_key,
            uploaded_at=uploaded_at,
        )
        self._index[dataset_id] = entry
        logger.info("Stored dataset %s as %s (%d bytes)", dataset_id, storage_key, len(data))
        return entry

    def list(self) -> list[StoredDataset]:
        self.refresh()
        return sorted(self._index.values(), key=lambda e: e.uploaded_at, reverse=True)

    def entry(self, dataset_id: str) -> StoredDataset:
        return self._lookup(dataset_id)

    def get(self, dataset_id: str) -> bytes:
        entry = self._lookup(dataset_id)
        try:
            return self.path_for(entry).read_bytes()
        except FileNotFoundError as e:
            self._index.pop(dataset_id, None)
            raise NotFound() from e
        except OSError as e:
            raise StorageError(f"Could not read dataset file: {e}") from e

    def delete(self, dataset_id: str) -> None:
        entry = self._lookup(dataset_id)
        try:
            self.path_for(entry).unlink()
        except FileNotFoundError as e:
            self._index.pop(dataset_id, None)
            raise NotFound() from e
        except OSError as e:
            raise StorageError(f"Could not delete dataset file: {e}") from e
        self._index.pop(dataset_id, None)
        logger.info("Deleted dataset %s (%s)", dataset_id, entry.storage_key)
