from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from platformdirs import user_data_dir

from .. import APP_NAME

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "store.json"


class StoreError(RuntimeError):
    pass


def default_store_path() -> Path:
    return Path(user_data_dir(APP_NAME)) / DEFAULT_STORE_NAME


_open_lock = threading.Lock()
_open_stores: dict[Path, "DocumentStore"] = {}


@dataclass(eq=False)
class DocumentStore:
    """A JSON object persisted in one file.

    Every mutation has to go through `transaction()`: it holds the document lock
    across reload -> compute -> set -> save, so two writers in the same process
    can never interleave and lose each other's update. Separate processes sharing
    a file get last-save-wins.
    """

    path: Path
    _data: dict[str, Any] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    @staticmethod
    def open(path: str | Path | None = None) -> "DocumentStore":
        p = Path(path).expanduser() if path is not None else default_store_path()
        p = p.resolve()
        with _open_lock:
            store = _open_stores.get(p)
            if store is None:
                store = DocumentStore(path=p)
                _open_stores[p] = store
            return store

    def reload(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._data = {}
                return
            try:
                raw = self.path.read_text(encoding="utf-8")
            except OSError as e:
                raise StoreError(f"Failed to read {self.path}: {e}") from e
            if not raw.strip():
                self._data = {}
                return
            try:
                obj = json.loads(raw)
            except json.JSONDecodeError as e:
                raise StoreError(f"Invalid JSON in {self.path}: {e}") from e
            if not isinstance(obj, dict):
                raise StoreError(f"Document root must be an object: {self.path}")
            self._data = obj

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data.keys())

    def save(self) -> None:
        with self._lock:
            payload = json.dumps(self._data, ensure_ascii=False, indent=2)
            tmp_name: str | None = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
                tmp_name = None
            except OSError as e:
                raise StoreError(f"Failed to save {self.path}: {e}") from e
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        pass
            logger.debug("saved %s (%d bytes)", self.path, len(payload))

    @contextmanager
    def transaction(self) -> Iterator["DocumentStore"]:
        """Exclusive reload/mutate/save unit.

        Saves only if the body returns normally. If the body or the save fails,
        the in-memory document is rolled back to what was loaded.
        """
        with self._lock:
            self.reload()
            committed = copy.deepcopy(self._data)
            try:
                yield self
                self.save()
            except BaseException:
                self._data = committed
                raise

    @contextmanager
    def snapshot(self) -> Iterator["DocumentStore"]:
        with self._lock:
            self.reload()
            yield self
