"""
Key-value blob storage used to persist the annotation collection.

A port is any object with:
    read(key)  -> Optional[str]   (None when nothing is stored under key)
    write(key, blob) -> None      (overwrites the whole blob)
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol


class PersistencePort(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, blob: str) -> None: ...


class InMemoryPort:
    """Dict-backed port for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.blobs: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self.blobs[key] = blob


_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class FilePort:
    """
    One file per key on local disk:

        root/
          └─ {key}.json

    Writes replace the file contents in place (not crash-safe mid-write).
    """

    def __init__(self, root: str = "data/storage"):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        p = self.path_for(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def write(self, key: str, blob: str) -> None:
        p = self.path_for(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(blob, encoding="utf-8")


def port_from_config(P: Dict[str, Any]) -> FilePort:
    return FilePort(P.get("storage", {}).get("root", "data/storage"))
