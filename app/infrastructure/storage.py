"""
Binary storage for uploaded workbooks.

Files are addressed by a relative storage path produced at save time.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from app.core.exceptions import FileStorageError


@dataclass(frozen=True)
class StoredFile:
    filename: str
    storage_path: str
    size: int


class FileStorage(Protocol):
    """Storage backend used by the ingestion orchestrator."""

    def save(self, *, owner_id: int, file_name: str, content: bytes) -> StoredFile:
        ...

    def read(self, storage_path: str) -> bytes:
        ...

    def delete(self, storage_path: str) -> None:
        ...


def _sanitize_file_name(file_name: str) -> str:
    safe_name = Path(file_name).name.strip()
    if not safe_name:
        raise FileStorageError("Invalid file name.")
    return safe_name


class LocalFileStorage:
    """Local filesystem storage rooted at UPLOAD_DIR."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root_dir = Path(root_dir)

    def _resolve(self, storage_path: str) -> Path:
        target = (self._root_dir / Path(storage_path)).resolve()
        if self._root_dir.resolve() not in target.parents:
            raise FileStorageError("Storage path escapes the upload directory.", {"path": storage_path})
        return target

    def save(self, *, owner_id: int, file_name: str, content: bytes) -> StoredFile:
        safe_file_name = _sanitize_file_name(file_name)
        stored_at = datetime.now(timezone.utc)
        stored_name = f"{uuid.uuid4().hex}_{safe_file_name}"

        relative_path = Path(str(owner_id)) / stored_at.strftime("%Y") / stored_at.strftime("%m") / stored_name
        absolute_path = self._root_dir / relative_path
        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write uploaded file to storage.") from exc
        finally:
            tmp_path.unlink(missing_ok=True)

        return StoredFile(
            filename=stored_name,
            storage_path=relative_path.as_posix(),
            size=len(content),
        )

    def read(self, storage_path: str) -> bytes:
        try:
            return self._resolve(storage_path).read_bytes()
        except OSError as exc:
            raise FileStorageError("Failed to read stored file.", {"path": storage_path}) from exc

    def delete(self, storage_path: str) -> None:
        target = self._resolve(storage_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise FileStorageError("Failed to delete stored file.", {"path": storage_path}) from exc
