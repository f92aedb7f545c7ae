"""
Storage collaborators for the sheet-music library.

A backend maps string keys such as 'exercise:user-1:exercise_ab12' to
JSON-compatible documents. Two implementations share the async contract:
MemoryStorage for tests and embedding, YamlDirectoryStorage for one YAML
file per key on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

logger = logging.getLogger(__name__)

Document = dict[str, Any]


@runtime_checkable
class StorageBackend(Protocol):
    """Async key/document store."""

    async def read(self, key: str) -> Document | None: ...

    async def write(self, key: str, document: Document) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def list_keys(self, prefix: str = "") -> list[str]: ...


class MemoryStorage:
    """In-process storage; documents are kept as given."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    async def read(self, key: str) -> Document | None:
        return self._documents.get(key)

    async def write(self, key: str, document: Document) -> None:
        self._documents[key] = document

    async def delete(self, key: str) -> bool:
        return self._documents.pop(key, None) is not None

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._documents if k.startswith(prefix))

    def __len__(self) -> int:
        return len(self._documents)


class YamlDirectoryStorage:
    """
    One YAML document per key in a directory.

    Key separators are replaced in the filename (':' becomes '__', '/'
    becomes '_') and the original key is stored alongside the document so
    listing recovers it exactly.
    """

    SUFFIX = ".yaml"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _get_path(self, key: str) -> Path:
        safe_name = key.replace(":", "__").replace("/", "_").replace(" ", "_")
        return self.directory / f"{safe_name}{self.SUFFIX}"

    async def read(self, key: str) -> Document | None:
        path = self._get_path(key)
        if not path.exists():
            return None
        with open(path) as f:
            data = yaml.safe_load(f)
        return data.get("document") if isinstance(data, dict) else None

    async def write(self, key: str, document: Document) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._get_path(key)
        with open(path, "w") as f:
            yaml.safe_dump(
                {"key": key, "document": document},
                f,
                default_flow_style=False,
                sort_keys=False,
            )
        logger.debug("Wrote %s", path)

    async def delete(self, key: str) -> bool:
        path = self._get_path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    async def list_keys(self, prefix: str = "") -> list[str]:
        if not self.directory.exists():
            return []

        keys = []
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            try:
                with open(path) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError:
                logger.warning("Skipping unreadable storage file %s", path)
                continue
            key = data.get("key") if isinstance(data, dict) else None
            if isinstance(key, str) and key.startswith(prefix):
                keys.append(key)
        return sorted(keys)
