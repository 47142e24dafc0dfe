"""Plan the installs and uninstalls that bring the mods folder in line with the manifest.

The planner is pure with respect to persisted state: it reads the manifest,
the lockfile and the mods directory, queries the registry, and returns a
:class:`ChangeSet`. Only :mod:`resolution.apply` writes anything.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, List, Optional, Set, Tuple

from common.cancellation import CancellationToken, OperationCancelled, check_cancelled
from common.errors import ModNotFoundError, ModNotSupportedError, RegistryError
from common.hashing import sha1_file
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from registry.modrinth.models import ResolvedArtifact
from state.lockfile import LockEntry
from state.manifest import ManifestEntry
from state.workspace import Workspace

logger = logging.getLogger(__name__)


class InstallReason(Enum):
    NOT_INSTALLED = "not_installed"
    INVALID_HASH = "invalid_hash"
    NEW_VERSION = "new_version"
    HASH_CHANGED = "hash_changed"


class UninstallReason(Enum):
    ORPHAN = "orphan"
    NOT_SUPPORTED = "not_supported"


@dataclass
class ModInstall:
    reason: InstallReason
    entry: ManifestEntry
    artifact: ResolvedArtifact
    lock_entry: Optional[LockEntry] = None

    @property
    def mod_id(self) -> str:
        return self.entry.id


@dataclass
class ModUninstall:
    """A planned removal. ``file`` is None when there is nothing left on disk."""
    reason: UninstallReason
    mod_id: str
    lock_entry: Optional[LockEntry] = None
    file: Optional[str] = None


@dataclass
class ResolutionFailure:
    mod_id: str
    reason: str


@dataclass
class ChangeSet:
    installs: List[ModInstall] = field(default_factory=list)
    uninstalls: List[ModUninstall] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)
    failures: List[ResolutionFailure] = field(default_factory=list)
    names: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.installs and not self.uninstalls

    def name_of(self, mod_id: str) -> str:
        return self.names.get(mod_id, mod_id)


def local_state(mod_id: str, workspace: Workspace,
                token: Optional[CancellationToken] = None) -> Optional[InstallReason]:
    """Classify ``mod_id`` from local state alone; None means nothing to do locally."""
    lock_entry = workspace.lockfile.find_by_id(mod_id)
    if lock_entry is None:
        return InstallReason.NOT_INSTALLED
    path = workspace.mod_path(lock_entry)
    if not os.path.isfile(path):
        return InstallReason.NOT_INSTALLED
    if sha1_file(path, token) != lock_entry.hash:
        return InstallReason.INVALID_HASH
    return None


def compute_changes(
    workspace: Workspace,
    registry,
    check_registry: bool = False,
    token: Optional[CancellationToken] = None,
) -> ChangeSet:
    """Compute the change set for ``workspace``.

    Args:
        workspace: Manifest, lockfile and mods directory. Not mutated, apart
            from display names cached on manifest entries.
        registry: Object providing ``resolve_artifact`` and ``fetch_display_name``.
        check_registry: Also compare installed mods against the registry's
            newest artifact (new release or changed file hash).
        token: Cancellation token observed before every lookup and hash.

    Returns:
        ChangeSet: Installs in resolution order, then uninstalls in lockfile
        order. Per-mod registry failures are recorded, never raised.
    """
    manifest = workspace.manifest
    changes = ChangeSet()
    queue: Deque[Tuple[ManifestEntry, Optional[InstallReason]]] = deque()
    seen: Set[str] = set()

    def enqueue(entry: ManifestEntry) -> None:
        if entry.id in seen:
            return
        seen.add(entry.id)
        reason = local_state(entry.id, workspace, token)
        if reason is not None or check_registry:
            queue.append((entry, reason))

    with Timer() as timer:
        for entry in manifest.mods:
            check_cancelled(token)
            enqueue(entry)

        while queue:
            check_cancelled(token)
            entry, reason = queue.popleft()
            try:
                artifact = registry.resolve_artifact(entry.id, manifest.loader, manifest.game_version)
            except ModNotSupportedError as exc:
                logger.warning("%s (%s %s)", exc, manifest.loader, manifest.game_version)
                changes.unsupported.append(entry.id)
                continue
            except RegistryError as exc:
                logger.error("Failed to resolve mod %s: %s", entry.id, exc)
                changes.failures.append(ResolutionFailure(entry.id, str(exc)))
                continue

            lock_entry = workspace.lockfile.find_by_id(entry.id)
            if reason is None and lock_entry is not None:
                if lock_entry.released_on != artifact.release_marker:
                    reason = InstallReason.NEW_VERSION
                elif lock_entry.hash != artifact.sha1:
                    reason = InstallReason.HASH_CHANGED
            if reason is not None:
                changes.installs.append(ModInstall(reason, entry, artifact, lock_entry))

            for dep_id in artifact.required_dependency_ids:
                enqueue(manifest.find(dep_id) or ManifestEntry(id=dep_id))

        _plan_orphans(workspace, changes)

    _backfill_names(workspace, registry, changes, token)

    if is_debug_enabled(logger):
        logger.debug(
            "Change set computed",
            extra=extra_context(
                event="compute_changes", component="resolution", action="compute",
                outcome="empty" if changes.is_empty else "changes",
                installs=len(changes.installs), uninstalls=len(changes.uninstalls),
                duration_ms=timer.duration_ms(),
            ),
        )
    return changes


def _plan_orphans(workspace: Workspace, changes: ChangeSet) -> None:
    """Add ORPHAN uninstalls for lock entries nothing desired still requires."""
    manifest = workspace.manifest
    by_id: Dict[str, LockEntry] = {e.id: e for e in workspace.lockfile}
    candidates = {e.id for e in workspace.lockfile if manifest.find(e.id) is None}

    # Walk recorded dependency edges from everything that stays, plus the
    # edges of artifacts about to be installed.
    stack: List[str] = []
    for entry in workspace.lockfile:
        if entry.id not in candidates:
            stack.extend(entry.dependencies)
    for install in changes.installs:
        stack.extend(install.artifact.required_dependency_ids)

    visited: Set[str] = set()
    while stack:
        mod_id = stack.pop()
        if mod_id in visited:
            continue
        visited.add(mod_id)
        candidates.discard(mod_id)
        entry = by_id.get(mod_id)
        if entry is not None:
            stack.extend(entry.dependencies)

    for entry in workspace.lockfile:
        if entry.id not in candidates:
            continue
        path = workspace.mod_path(entry)
        changes.uninstalls.append(
            ModUninstall(
                reason=UninstallReason.ORPHAN,
                mod_id=entry.id,
                lock_entry=entry,
                file=path if os.path.isfile(path) else None,
            )
        )


def _backfill_names(workspace: Workspace, registry, changes: ChangeSet,
                    token: Optional[CancellationToken] = None) -> None:
    """Fetch display names for ids that lack one, each id at most once."""
    known: Dict[str, str] = {}
    ordered: List[str] = []

    def note(mod_id: str, name: Optional[str]) -> None:
        if name and mod_id not in known:
            known[mod_id] = name
        if mod_id not in ordered:
            ordered.append(mod_id)

    for entry in workspace.manifest.mods:
        note(entry.id, entry.name)
    for lock_entry in workspace.lockfile:
        note(lock_entry.id, lock_entry.name)
    for install in changes.installs:
        note(install.mod_id, install.entry.name)
    for uninstall in changes.uninstalls:
        note(uninstall.mod_id, uninstall.lock_entry.name if uninstall.lock_entry else None)

    missing = [mod_id for mod_id in ordered if mod_id not in known]
    if missing:
        check_cancelled(token)
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, min(Constants.MAX_CONCURRENCY, len(missing)))
        ) as executor:
            futures = [executor.submit(registry.fetch_display_name, mod_id) for mod_id in missing]
            for mod_id, future in zip(missing, futures):
                try:
                    known[mod_id] = future.result()
                except OperationCancelled:
                    raise
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    logger.warning("Could not fetch name of mod %s: %s", mod_id, exc)

    for entry in workspace.manifest.mods:
        if not entry.name and entry.id in known:
            entry.name = known[entry.id]
    for install in changes.installs:
        if not install.entry.name and install.mod_id in known:
            install.entry.name = known[install.mod_id]
    changes.names.update(known)


def queue_unsupported_removals(changes: ChangeSet, workspace: Workspace) -> None:
    """Turn every unsupported id into a NOT_SUPPORTED uninstall.

    The id is also dropped from the manifest so it is not resolved again.
    Lock entries that still record it as a dependency are reported.
    """
    for mod_id in changes.unsupported:
        for entry in workspace.lockfile:
            if mod_id in entry.dependencies:
                logger.warning(
                    "Mod %s depends on %s, which is being removed",
                    changes.name_of(entry.id), changes.name_of(mod_id),
                )
        workspace.manifest.remove(mod_id)
        if any(u.mod_id == mod_id for u in changes.uninstalls):
            continue
        lock_entry = workspace.lockfile.find_by_id(mod_id)
        path = workspace.mod_path(lock_entry) if lock_entry is not None else None
        changes.uninstalls.append(
            ModUninstall(
                reason=UninstallReason.NOT_SUPPORTED,
                mod_id=mod_id,
                lock_entry=lock_entry,
                file=path if path is not None and os.path.isfile(path) else None,
            )
        )
    changes.unsupported = []
