"""Per-invocation state: where things live and what is currently declared/installed."""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from common.cancellation import CancellationToken
from common.errors import StateError
from components.models import InstalledComponent
from components.reader import archive_name, read_installed_components
from constants import Constants

from .lockfile import LockEntry, Lockfile
from .manifest import Manifest

logger = logging.getLogger(__name__)


class Workspace:
    """The manifest, the lockfile and the mods directory under one root.

    Passed explicitly to every operation instead of living in globals.
    """

    def __init__(self, root: str, manifest: Manifest, lockfile: Lockfile):
        self.root = os.path.abspath(root)
        self.manifest = manifest
        self.lockfile = lockfile
        self._installed: Optional[List[InstalledComponent]] = None

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.root, Constants.MANIFEST_FILE)

    @property
    def lockfile_path(self) -> str:
        return os.path.join(self.root, Constants.LOCKFILE_FILE)

    @property
    def mods_directory(self) -> str:
        return os.path.join(self.root, self.manifest.mods_folder)

    def mod_path(self, entry: LockEntry) -> str:
        return os.path.join(self.mods_directory, entry.file_name)

    @classmethod
    def load(cls, root: str) -> "Workspace":
        """Load manifest and lockfile from ``root``.

        Raises:
            StateError: When the manifest is missing or either file is corrupt.
        """
        manifest = Manifest.load(os.path.join(root, Constants.MANIFEST_FILE))
        lockfile = Lockfile.load(os.path.join(root, Constants.LOCKFILE_FILE))
        return cls(root, manifest, lockfile)

    @classmethod
    def init(cls, root: str, loader: str, game_version: str,
             mods_folder: str = Constants.DEFAULT_MODS_FOLDER) -> "Workspace":
        """Create a fresh manifest in ``root``.

        Raises:
            StateError: When a manifest already exists.
        """
        path = os.path.join(root, Constants.MANIFEST_FILE)
        if os.path.exists(path):
            raise StateError(f"{Constants.MANIFEST_FILE} already exists in {os.path.abspath(root)}")
        os.makedirs(root, exist_ok=True)
        workspace = cls(root, Manifest(loader=loader, game_version=game_version, mods_folder=mods_folder),
                        Lockfile())
        workspace.save_manifest()
        os.makedirs(workspace.mods_directory, exist_ok=True)
        logger.info("Created %s for %s %s", Constants.MANIFEST_FILE, loader, game_version)
        return workspace

    def save_manifest(self) -> None:
        self.manifest.save(self.manifest_path)

    def save_lockfile(self) -> None:
        self.lockfile.save(self.lockfile_path)

    def installed_components(self, token: Optional[CancellationToken] = None,
                             refresh: bool = False) -> List[InstalledComponent]:
        """Components read from the mods directory, cached for this invocation."""
        if self._installed is None or refresh:
            self._installed = read_installed_components(self.mods_directory, token)
        return self._installed

    def get_mod_name(self, mod_id: str) -> str:
        """Best known display name for ``mod_id``, falling back to the id."""
        entry = self.lockfile.find_by_id(mod_id)
        if entry is not None and entry.name:
            return entry.name
        declared = self.manifest.find(mod_id)
        if declared is not None and declared.name:
            return declared.name
        return mod_id

    def get_mod_id(self, name_or_id: str, token: Optional[CancellationToken] = None) -> Optional[str]:
        """Resolve a user-typed name or id to a tracked mod id (case-insensitive).

        Lock entries are searched first, then the manifest, then installed
        archives, whose component is mapped back to the lock entry owning
        the archive.
        """
        needle = name_or_id.strip().lower()
        for entry in self.lockfile:
            if entry.id.lower() == needle or (entry.name or "").lower() == needle:
                return entry.id
        for declared in self.manifest.mods:
            if declared.id.lower() == needle or (declared.name or "").lower() == needle:
                return declared.id
        for installed in self.installed_components(token):
            component = installed.component
            if component.id.lower() != needle and (component.name or "").lower() != needle:
                continue
            if installed.file_name is None:
                continue
            owner = self.lockfile.find_by_file(archive_name(installed.file_name))
            if owner is not None:
                return owner.id
        return None
