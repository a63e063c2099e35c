from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileKeyValueStore:
    """
    All keys in one JSON object file.

    A missing or unreadable file reads as empty. Writes replace the file
    atomically and let I/O errors propagate; an unreadable file is moved
    aside to `<name>.corrupt` before being replaced.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top-level value is not an object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _read_all(self) -> Dict[str, str]:
        try:
            return self._read()
        except (OSError, ValueError):
            return {}

    def _set_aside(self, reason: Exception) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        logger.warning("Unreadable store %s (%s); moving it to %s", self.path, reason, backup)
        os.replace(self.path, backup)

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as e:
            self._set_aside(e)
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".valtrust-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
