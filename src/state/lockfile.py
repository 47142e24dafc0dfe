"""The installed-artifact record (``modlist-lock.json``)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from common.errors import StateError

from .manifest import write_json_atomic

logger = logging.getLogger(__name__)


@dataclass
class LockEntry:
    """One installed artifact.

    ``released_on`` is the registry's release marker for the chosen version
    and ``dependencies`` the required dependency ids recorded at install time.
    """
    id: str
    name: Optional[str]
    download_url: str
    file_name: str
    hash: str
    released_on: str
    dependencies: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "downloadUrl": self.download_url,
            "fileName": self.file_name,
            "hash": self.hash,
            "releasedOn": self.released_on,
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_json(cls, data: Any) -> "LockEntry":
        if not isinstance(data, dict):
            raise StateError(f"Invalid lockfile entry: {data!r}")
        try:
            return cls(
                id=str(data["id"]),
                name=data.get("name"),
                download_url=str(data["downloadUrl"]),
                file_name=str(data["fileName"]),
                hash=str(data["hash"]),
                released_on=str(data.get("releasedOn") or ""),
                dependencies=[str(d) for d in data.get("dependencies") or []],
            )
        except KeyError as exc:
            raise StateError(f"Lockfile entry is missing {exc}") from exc


class Lockfile:
    """Ordered collection of lock entries with at most one entry per id."""

    def __init__(self, entries: Optional[List[LockEntry]] = None):
        self.entries: List[LockEntry] = []
        for entry in entries or []:
            self.upsert(entry)

    def __iter__(self) -> Iterator[LockEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find_by_id(self, mod_id: str) -> Optional[LockEntry]:
        for entry in self.entries:
            if entry.id == mod_id:
                return entry
        return None

    def find_by_file(self, file_name: str) -> Optional[LockEntry]:
        for entry in self.entries:
            if entry.file_name == file_name:
                return entry
        return None

    def upsert(self, entry: LockEntry) -> None:
        """Insert ``entry`` or replace the existing entry with the same id in place."""
        for index, existing in enumerate(self.entries):
            if existing.id == entry.id:
                self.entries[index] = entry
                return
        self.entries.append(entry)

    def remove(self, mod_id: str) -> Optional[LockEntry]:
        for index, existing in enumerate(self.entries):
            if existing.id == mod_id:
                return self.entries.pop(index)
        return None

    def to_json(self) -> List[Dict[str, Any]]:
        return [e.to_json() for e in self.entries]

    @classmethod
    def from_json(cls, data: Any) -> "Lockfile":
        if not isinstance(data, list):
            raise StateError("Lockfile root must be an array")
        return cls([LockEntry.from_json(item) for item in data])

    @classmethod
    def load(cls, path: str) -> "Lockfile":
        """Read the lockfile at ``path``; a missing file is an empty lockfile.

        Raises:
            StateError: When the file exists but cannot be parsed.
        """
        if not os.path.isfile(path):
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"Cannot read {path}: {exc}") from exc
        return cls.from_json(data)

    def save(self, path: str) -> None:
        write_json_atomic(path, self.to_json())
        logger.debug("Saved lockfile with %d entr(ies) to %s", len(self.entries), path)
