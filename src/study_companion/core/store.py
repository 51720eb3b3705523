"""Local JSON document store.

Each collection is a single ``<collection>.json`` file holding an object that
maps string keys to JSON documents. Writes take an exclusive lock file and
replace the collection atomically, so readers always see either the previous
or the new snapshot. Key order is preserved, which gives callers a stable
"storage order" for documents.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "StoreError",
    "DocumentStore",
]


_LOCK_SUFFIX = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0
_COLLECTION_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")

Document = Mapping[str, Any]


class StoreError(RuntimeError):
    """Raised when store persistence or validation fails."""


class DocumentStore:
    """Manage JSON document collections under ``root``."""

    def __init__(
        self, root: Path, *, lock_timeout: float = _LOCK_TIMEOUT_SECONDS
    ) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock_timeout = lock_timeout

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, collection: str) -> Path:
        if not _COLLECTION_RE.match(collection):
            raise StoreError(f"Invalid collection name: {collection!r}")
        return self._root / f"{collection}.json"

    def all(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return every document in ``collection`` keyed by id."""

        return self._read(self.path_for(collection))

    def keys(self, collection: str) -> list[str]:
        return list(self.all(collection))

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        return self.all(collection).get(str(key))

    def put(self, collection: str, key: str, document: Document) -> None:
        self.upsert_many(collection, {key: document})

    def upsert_many(
        self, collection: str, documents: Mapping[str, Document]
    ) -> int:
        """Insert or replace ``documents`` with a single write.

        Existing keys keep their position; new keys are appended in the
        iteration order of ``documents``. Returns the number of documents
        written.
        """

        if not documents:
            return 0
        target = self.path_for(collection)
        with _FileLock(_lock_path(target), timeout=self._lock_timeout):
            current = self._read(target)
            for key, document in documents.items():
                if not isinstance(document, Mapping):
                    raise StoreError(
                        f"Document for key {key!r} must be a mapping."
                    )
                current[str(key)] = dict(document)
            _atomic_write_json(target, current)
        return len(documents)

    def delete(self, collection: str, key: str) -> bool:
        target = self.path_for(collection)
        with _FileLock(_lock_path(target), timeout=self._lock_timeout):
            current = self._read(target)
            if str(key) not in current:
                return False
            del current[str(key)]
            _atomic_write_json(target, current)
        return True

    def _read(self, target: Path) -> dict[str, dict[str, Any]]:
        if not target.exists():
            return {}
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(
                f"Failed to parse collection file: {target}"
            ) from exc
        if not isinstance(payload, dict):
            raise StoreError(
                f"Collection file must contain a JSON object: {target}"
            )
        return payload


class _FileLock:
    """Simple filesystem lock using exclusive file creation."""

    def __init__(self, path: Path, *, timeout: float) -> None:
        self._path = path
        self._timeout = timeout

    def __enter__(self) -> "_FileLock":
        deadline = time.monotonic() + self._timeout
        while True:
            try:
                fd = os.open(
                    self._path,
                    os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                )
                os.close(fd)
                return self
            except FileExistsError:
                if time.monotonic() > deadline:
                    raise StoreError(
                        f"Timed out waiting for store lock: {self._path}"
                    )
                time.sleep(0.05)

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)


def _lock_path(target: Path) -> Path:
    return target.with_name(target.name + _LOCK_SUFFIX)


def _atomic_write_json(path: Path, payload: MutableMapping[str, Any]) -> None:
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
