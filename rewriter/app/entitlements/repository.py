"""Key/value document backends persisting entitlement state."""
from __future__ import annotations

import copy
import json
import logging
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

_DELETED = object()


class DocumentBackend(Protocol):
    """A single JSON object addressed by top-level keys.

    ``get`` only ever sees the last successfully saved document. ``set`` and
    ``delete`` stage changes that ``save`` makes durable and visible in one
    step; ``save`` raises ``OSError``, ``TypeError`` or ``ValueError`` when it
    cannot, and ``discard`` drops whatever is still staged.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def save(self) -> None:
        ...

    def discard(self) -> None:
        ...


def _merge(committed: Dict[str, Any], staged: Dict[str, Any]) -> Dict[str, Any]:
    candidate = copy.deepcopy(committed)
    for key, value in staged.items():
        if value is _DELETED:
            candidate.pop(key, None)
        else:
            candidate[key] = copy.deepcopy(value)
    return candidate


class InMemoryDocument:
    """Document backend held in memory, suitable for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._staged: Dict[str, Any] = {}
        self.saved: Dict[str, Any] = copy.deepcopy(self._data)
        self.save_count = 0

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._staged[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._staged[key] = _DELETED

    def save(self) -> None:
        # Round-trip through JSON so unserializable values fail like on disk.
        candidate = json.loads(json.dumps(_merge(self._data, self._staged)))
        self._data = candidate
        self.saved = copy.deepcopy(candidate)
        self._staged = {}
        self.save_count += 1

    def discard(self) -> None:
        self._staged = {}


class JsonFileDocument:
    """Document backend stored as one JSON object on disk.

    Writes go to a temporary file in the target directory which is then
    renamed over the document, so a crash mid-write leaves the previous
    version in place. Readers keep seeing the previous version until the
    rename has succeeded.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._data: Optional[Dict[str, Any]] = None
        self._staged: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        try:
            raw = self._path.read_text(encoding="utf-8")
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("document root is not an object")
        except FileNotFoundError:
            payload = {}
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            logger.warning("Failed to load document from %s: %s", self._path, exc)
            payload = {}
        self._data = payload
        return payload

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            data = self._load()
            if key not in data:
                return default
            return copy.deepcopy(data[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._staged[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._staged[key] = _DELETED

    def save(self) -> None:
        with self._write_lock:
            with self._lock:
                candidate = _merge(self._load(), self._staged)
                self._staged = {}
            serialized = json.dumps(candidate, ensure_ascii=False, indent=2)
            self._write_atomic(serialized)
            with self._lock:
                self._data = candidate

    def discard(self) -> None:
        with self._lock:
            self._staged = {}

    def reload(self) -> None:
        """Drop the cached document so the next read hits the disk."""

        with self._lock:
            self._data = None

    def _write_atomic(self, serialized: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                delete=False,
                dir=self._path.parent,
                prefix=f"{self._path.name}.",
                suffix=".tmp",
            ) as handle:
                tmp_file = Path(handle.name)
                handle.write(serialized)
            tmp_file.replace(self._path)
        except OSError:
            if tmp_file is not None:
                tmp_file.unlink(missing_ok=True)
            raise


__all__ = ["DocumentBackend", "InMemoryDocument", "JsonFileDocument"]
