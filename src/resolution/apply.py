"""Carry out an approved change set, one persisted mutation at a time."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import List, Optional

from common.cancellation import CancellationToken, check_cancelled
from common.errors import IntegrityError, ModkeeperError
from common.hashing import sha1_file
from state.lockfile import LockEntry
from state.workspace import Workspace

from .changes import ChangeSet, ModInstall, ModUninstall, ResolutionFailure

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    installed: List[str] = field(default_factory=list)
    uninstalled: List[str] = field(default_factory=list)
    failures: List[ResolutionFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _install(install: ModInstall, changes: ChangeSet, workspace: Workspace, registry,
             token: Optional[CancellationToken]) -> None:
    artifact = install.artifact
    mods_directory = workspace.mods_directory
    os.makedirs(mods_directory, exist_ok=True)
    target = os.path.join(mods_directory, artifact.file_name)

    fd, tmp_path = tempfile.mkstemp(prefix=".download-", suffix=".part", dir=mods_directory)
    os.close(fd)
    try:
        registry.download(artifact.url, tmp_path, token)
        digest = sha1_file(tmp_path, token)
        if artifact.sha1 and digest != artifact.sha1:
            raise IntegrityError(
                f"Hash mismatch for {artifact.file_name}: expected {artifact.sha1}, got {digest}"
            )
        check_cancelled(token)
        os.replace(tmp_path, target)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    previous = workspace.lockfile.find_by_id(install.mod_id)
    workspace.lockfile.upsert(
        LockEntry(
            id=install.mod_id,
            name=changes.names.get(install.mod_id) or install.entry.name or (previous.name if previous else None),
            download_url=artifact.url,
            file_name=artifact.file_name,
            hash=digest,
            released_on=artifact.release_marker,
            dependencies=artifact.required_dependency_ids,
        )
    )
    workspace.save_lockfile()

    if previous is not None and previous.file_name != artifact.file_name:
        old_path = workspace.mod_path(previous)
        if os.path.isfile(old_path):
            os.remove(old_path)


def _uninstall(uninstall: ModUninstall, workspace: Workspace) -> None:
    if workspace.lockfile.remove(uninstall.mod_id) is not None:
        workspace.save_lockfile()
    if uninstall.file is not None and os.path.isfile(uninstall.file):
        os.remove(uninstall.file)


def apply_changes(
    changes: ChangeSet,
    workspace: Workspace,
    registry,
    token: Optional[CancellationToken] = None,
) -> ApplyResult:
    """Apply ``changes``: every install, then every uninstall, then save the manifest.

    The lockfile is written after each individual mutation, so an
    interrupted run leaves it describing exactly the work that completed.
    A failing item is logged and recorded and the rest continue;
    :class:`~common.cancellation.OperationCancelled` propagates.
    """
    result = ApplyResult()

    for install in changes.installs:
        check_cancelled(token)
        name = changes.name_of(install.mod_id)
        logger.info("Installing %s (%s)", name, install.artifact.version_number or install.artifact.file_name)
        try:
            _install(install, changes, workspace, registry, token)
        except (ModkeeperError, OSError) as exc:
            logger.error("Failed to install %s: %s", name, exc)
            result.failures.append(ResolutionFailure(install.mod_id, str(exc)))
            continue
        result.installed.append(install.mod_id)

    for uninstall in changes.uninstalls:
        check_cancelled(token)
        name = changes.name_of(uninstall.mod_id)
        logger.info("Removing %s", name)
        try:
            _uninstall(uninstall, workspace)
        except (ModkeeperError, OSError) as exc:
            logger.error("Failed to remove %s: %s", name, exc)
            result.failures.append(ResolutionFailure(uninstall.mod_id, str(exc)))
            continue
        result.uninstalled.append(uninstall.mod_id)

    renamed = False
    for entry in workspace.lockfile:
        if not entry.name and entry.id in changes.names:
            entry.name = changes.names[entry.id]
            renamed = True
    if renamed:
        workspace.save_lockfile()

    workspace.save_manifest()
    return result
