"""
Key-value storage adapters.

Documents live under `form-<id>`, response logs under `responses-<id>`.
Values are JSON-compatible objects; adapters hand out copies so callers can
never mutate what is stored.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from urllib.parse import quote, unquote

from form_builder.config import Settings
from form_builder.errors import CorruptDocumentError
from form_builder.logging_utils import log_event

logger = logging.getLogger("form_builder.storage")


@runtime_checkable
class StorageAdapter(Protocol):
    def put(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Optional[Any]: ...

    def remove(self, key: str) -> None: ...

    def list_keys(self, prefix: str = "") -> List[str]: ...


class InMemoryStorage:
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = {}
        for k, v in (initial or {}).items():
            self.put(k, v)

    def put(self, key: str, value: Any) -> None:
        # Round-trip through JSON so only serializable data is ever stored.
        self._data[key] = json.loads(json.dumps(value))

    def get(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStorage:
    """One `<key>.json` file per key inside `root` (keys are percent-encoded)."""

    suffix = ".json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{quote(key, safe='-_.')}{self.suffix}"

    def put(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        log_event(logger, "storage.put", level=logging.DEBUG, key=key, path=str(path))

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        text = path.read_text(encoding="utf-8")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            log_event(logger, "storage.unreadable", level=logging.WARNING, key=key, error=str(exc))
            raise CorruptDocumentError(key, f"unreadable JSON ({exc.msg})") from exc

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            log_event(logger, "storage.remove", level=logging.DEBUG, key=key)

    def list_keys(self, prefix: str = "") -> List[str]:
        keys = []
        for path in self.root.glob(f"*{self.suffix}"):
            key = unquote(path.name[: -len(self.suffix)])
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)


def storage_from_settings(settings: Settings) -> StorageAdapter:
    if settings.storage_dir is not None:
        return JsonFileStorage(settings.storage_dir)
    return InMemoryStorage()
