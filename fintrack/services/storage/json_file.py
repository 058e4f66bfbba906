"""
JSON File Storage Implementation

DESIGN DECISION: Each storage key is one JSON file in a data directory,
mirroring the key/value layout the original app kept in localStorage:
1. Users can open and back up their data with any text editor
2. No database setup required
3. One namespace per file, so one user's write never touches another's

TRADEOFFS:
- Every mutation rewrites the whole namespace file (fine for personal use)
- No cross-key transactions (a namespace is a single key, so none needed)

Writes go to a temporary file first and are then renamed over the
target, so a crash mid-write never leaves a truncated bundle behind.
"""

import errno
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, unquote

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fintrack.models.audit import AuditEvent
from fintrack.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
)


_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def atomic_write(path: Path, data: bytes) -> None:
    """Write bytes to `path` via a sibling temp file and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonFileStorage(KeyValueStorageInterface):
    """
    Key/value storage backed by one `<key>.json` file per key.

    Keys are percent-encoded into file names, so a username like
    "../bob" can never escape the data directory.
    """

    SUFFIX = ".json"

    def __init__(self, data_dir: Union[str, Path], retry_attempts: int = 3):
        self._dir = Path(data_dir)
        self._retry_attempts = retry_attempts

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path_for(self, key: str) -> Path:
        return self._dir / f"{quote(key, safe='')}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        data = value.encode("utf-8")
        try:
            for attempt in Retrying(
                retry=retry_if_exception_type(OSError),
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.05, max=1),
                reraise=True,
            ):
                with attempt:
                    atomic_write(path, data)
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"Storage full while writing {key}: {e}") from e
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def keys(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(
            unquote(p.name[: -len(self.SUFFIX)])
            for p in self._dir.iterdir()
            if p.is_file() and p.name.endswith(self.SUFFIX) and not p.name.startswith(".")
        )


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        try:
            with self._path.open(encoding="utf-8") as handle:
                for line in handle:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(AuditEvent.model_validate(json.loads(line)))
                    except ValueError:
                        continue  # Skip malformed lines
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}") from e
        return events

    def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.to_json_line() + "\n")
            return True
        except OSError:
            # Audit logging must not break the main flow; AuditLogger reports it
            return False

    def get_events_by_namespace(self, namespace: str) -> list[AuditEvent]:
        events = [e for e in self._read_all() if e.namespace == namespace]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._read_all()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
