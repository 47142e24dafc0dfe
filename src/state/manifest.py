"""The declared mod set (``modlist.json``)."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.errors import StateError
from constants import Constants

logger = logging.getLogger(__name__)


@dataclass
class ManifestEntry:
    """A mod the user asked for. ``name`` is a cached display name."""
    id: str
    name: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class Manifest:
    """Loader, game version, mods folder and the desired mods."""
    loader: str
    game_version: str
    mods_folder: str = Constants.DEFAULT_MODS_FOLDER
    mods: List[ManifestEntry] = field(default_factory=list)

    def find(self, mod_id: str) -> Optional[ManifestEntry]:
        for entry in self.mods:
            if entry.id == mod_id:
                return entry
        return None

    def add(self, mod_id: str, name: Optional[str] = None) -> ManifestEntry:
        """Add ``mod_id`` unless already declared; returns the (existing) entry."""
        existing = self.find(mod_id)
        if existing is not None:
            return existing
        entry = ManifestEntry(id=mod_id, name=name)
        self.mods.append(entry)
        return entry

    def remove(self, mod_id: str) -> bool:
        before = len(self.mods)
        self.mods = [m for m in self.mods if m.id != mod_id]
        return len(self.mods) != before

    def to_json(self) -> Dict[str, Any]:
        return {
            "loader": self.loader,
            "gameVersion": self.game_version,
            "modsFolder": self.mods_folder,
            "mods": [m.to_json() for m in self.mods],
        }

    @classmethod
    def from_json(cls, data: Any) -> "Manifest":
        """Build a manifest from its parsed JSON form.

        Raises:
            StateError: If required keys are missing or have the wrong type.
        """
        if not isinstance(data, dict):
            raise StateError("Manifest root must be an object")
        loader = data.get("loader")
        game_version = data.get("gameVersion")
        if not isinstance(loader, str) or not isinstance(game_version, str):
            raise StateError("Manifest is missing 'loader' or 'gameVersion'")
        mods = []
        for raw in data.get("mods") or []:
            if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
                raise StateError(f"Invalid manifest entry: {raw!r}")
            name = raw.get("name")
            mods.append(ManifestEntry(id=raw["id"], name=name if isinstance(name, str) else None))
        return cls(
            loader=loader,
            game_version=game_version,
            mods_folder=data.get("modsFolder") or Constants.DEFAULT_MODS_FOLDER,
            mods=mods,
        )

    @classmethod
    def load(cls, path: str) -> "Manifest":
        """Read the manifest at ``path``.

        Raises:
            StateError: When the file is missing or is not a valid manifest.
        """
        if not os.path.isfile(path):
            raise StateError(f"{os.path.basename(path)} not found, run 'init' first")
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"Cannot read {path}: {exc}") from exc
        return cls.from_json(data)

    def save(self, path: str) -> None:
        write_json_atomic(path, self.to_json())
        logger.debug("Saved manifest to %s", path)


def write_json_atomic(path: str, data: Any) -> None:
    """Write ``data`` as indented JSON via a temp file and ``os.replace``.

    Readers never observe a half-written file.

    Raises:
        StateError: If the file cannot be written.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.write("\n")
        os.replace(tmp_path, path)
    except OSError as exc:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise StateError(f"Cannot write {path}: {exc}") from exc
