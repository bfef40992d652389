"""Envelope storage for the remote save server, keyed by identity."""
from __future__ import annotations

import hashlib
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

log = logging.getLogger(__name__)


class SaveBucket(Protocol):
    def get(self, identity: str) -> Optional[str]: ...

    def put(self, identity: str, envelope: str) -> None: ...


class MemorySaveBucket:
    def __init__(self) -> None:
        self._items: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> Optional[str]:
        with self._lock:
            return self._items.get(identity)

    def put(self, identity: str, envelope: str) -> None:
        with self._lock:
            self._items[identity] = envelope


class FileSaveBucket:
    """One JSON envelope per identity; file names are SHA-256 of the identity."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, identity: str) -> Path:
        name = hashlib.sha256(identity.encode("utf-8")).hexdigest()
        return self.root / f"{name}.json"

    def get(self, identity: str) -> Optional[str]:
        path = self._path(identity)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, identity: str, envelope: str) -> None:
        path = self._path(identity)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(envelope, encoding="utf-8")
        tmp_path.replace(path)
        log.debug("stored save envelope at %s", path)
