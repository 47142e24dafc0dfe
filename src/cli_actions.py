"""Command implementations: each mutates the manifest, then plans and applies changes."""

from __future__ import annotations

import logging
import os
from typing import Optional

from cli_output import confirm, render_changes, render_list
from common.cancellation import CancellationToken
from common.errors import ModNotFoundError, RegistryError
from components.platform import detect_runtime_version, platform_components
from constants import ExitCodes
from registry.modrinth import SearchHit, is_modrinth_id
from resolution.apply import apply_changes
from resolution.changes import compute_changes, queue_unsupported_removals
from resolution.dependencies import DependencyErrorLevel, check_dependencies
from resolution.integrity import LockfileStatus, check_lockfile
from state.workspace import Workspace

logger = logging.getLogger(__name__)

STG = "[*] "


def find_mod_online(registry, query: str, assume_yes: bool = False) -> Optional[SearchHit]:
    """Resolve a user query to a registry project.

    Ids are looked up directly; anything else goes through search, and a
    hit whose title differs from the query must be confirmed.
    """
    if is_modrinth_id(query):
        try:
            return registry.get_project(query)
        except ModNotFoundError:
            pass

    hit = registry.search(query)
    if hit is None:
        logger.error("Mod %s not found online", query)
        return None

    by = f" by {hit.author}" if hit.author else ""
    if hit.title.lower() == query.lower():
        logger.warning("Mod %s found online as %s%s", query, hit.title, by)
    else:
        logger.info("Mod %s found online as %s%s", query, hit.title, by)
        if not confirm("Is the mod above correct?", True, assume_yes):
            return None
    return hit


def _finish(args, workspace: Workspace, registry, token: Optional[CancellationToken],
            check_registry: bool = False, had_errors: bool = False) -> int:
    """Plan, confirm and apply. Shared tail of every mutating command."""
    changes = compute_changes(workspace, registry, check_registry=check_registry, token=token)

    if changes.unsupported:
        names = ", ".join(changes.name_of(mod_id) for mod_id in changes.unsupported)
        logger.warning("Not supported on %s %s: %s",
                       workspace.manifest.loader, workspace.manifest.game_version, names)
        if confirm("Remove unsupported mods?", True, args.ASSUME_YES):
            queue_unsupported_removals(changes, workspace)

    if changes.is_empty:
        logger.info("%sNo changes needed.", STG)
    else:
        logger.info("%sPlanned changes:", STG)
        render_changes(changes)
        if not confirm("Apply these changes?", True, args.ASSUME_YES):
            logger.info("No changes applied.")
            return ExitCodes.SUCCESS.value

    result = apply_changes(changes, workspace, registry, token)
    if had_errors or changes.failures or changes.unsupported or not result.ok:
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def perform_init(args) -> int:
    Workspace.init(args.DIRECTORY, args.LOADER, args.GAME_VERSION, args.MODS_FOLDER)
    return ExitCodes.SUCCESS.value


def perform_add(args, workspace: Workspace, registry, token: Optional[CancellationToken] = None) -> int:
    had_errors = False
    for query in args.MODS:
        if workspace.manifest.find(query) is not None:
            logger.warning("Mod %s is already added", query)
            continue
        hit = find_mod_online(registry, query, args.ASSUME_YES)
        if hit is None:
            had_errors = True
            continue
        if workspace.manifest.find(hit.id) is not None:
            logger.warning("Mod %s is already added", hit.title)
            continue
        workspace.manifest.add(hit.id, hit.title)
    return _finish(args, workspace, registry, token, had_errors=had_errors)


def perform_remove(args, workspace: Workspace, registry, token: Optional[CancellationToken] = None) -> int:
    had_errors = False
    for name in args.MODS:
        mod_id = workspace.get_mod_id(name, token)
        declared = workspace.manifest.find(mod_id) if mod_id else None
        lock_entry = workspace.lockfile.find_by_id(mod_id) if mod_id else None
        if declared is None and lock_entry is None:
            logger.error("Mod %s not installed", name)
            had_errors = True
            continue

        used_by = [e for e in workspace.lockfile if mod_id in e.dependencies]
        if used_by:
            logger.error("Mod %s is used by the following mod(s):", workspace.get_mod_name(mod_id))
            for entry in used_by:
                logger.error("  %s", entry.name or entry.file_name or entry.id)

        if declared is None:
            logger.error("Mod %s was implicitly installed therefore cannot be uninstalled", name)
            had_errors = True
            continue

        if used_by and not confirm("Do you want to continue?", False, args.ASSUME_YES):
            continue
        workspace.manifest.remove(mod_id)
    return _finish(args, workspace, registry, token, had_errors=had_errors)


def perform_update(args, workspace: Workspace, registry, token: Optional[CancellationToken] = None) -> int:
    return _finish(args, workspace, registry, token, check_registry=True)


def perform_change(args, workspace: Workspace, registry, token: Optional[CancellationToken] = None) -> int:
    logger.info("%sChanging game version from %s to %s", STG, workspace.manifest.game_version, args.GAME_VERSION)
    workspace.manifest.game_version = args.GAME_VERSION
    return _finish(args, workspace, registry, token, check_registry=True)


def perform_check(args, workspace: Workspace, registry, token: Optional[CancellationToken] = None) -> int:
    """Report lockfile drift and unmet dependencies, then install missing dependencies."""
    logger.info("%sChecking lockfile", STG)
    problems = check_lockfile(workspace.mods_directory, workspace.lockfile, token)
    for problem in problems:
        file_name = os.path.basename(problem.file)
        if problem.status is LockfileStatus.NOT_TRACKED:
            logger.error("File %s does not exist in the lockfile", file_name)
        elif problem.status is LockfileStatus.CHECKSUM_MISMATCH:
            logger.error("File %s checksum mismatched", file_name)
        else:
            logger.error("File %s does not exist", problem.file)

    logger.info("%sChecking dependencies", STG)
    errors, ok = check_dependencies(
        workspace.installed_components(token),
        workspace.lockfile,
        platform_components(workspace.manifest.game_version, detect_runtime_version()),
        errors_only=getattr(args, "ERRORS_ONLY", False),
    )

    for error in errors:
        if error.level is not DependencyErrorLevel.DEPENDS:
            continue
        try:
            hit = find_mod_online(registry, error.other_id, args.ASSUME_YES)
        except RegistryError as exc:
            logger.error("Could not look up %s: %s", error.other_id, exc)
            continue
        if hit is not None and workspace.manifest.find(hit.id) is None:
            workspace.manifest.add(hit.id, hit.title)

    return _finish(args, workspace, registry, token, had_errors=bool(problems) or not ok)


def perform_list(args, workspace: Workspace, registry=None, token: Optional[CancellationToken] = None) -> int:
    logger.info("%sReading mods", STG)
    render_list(workspace)
    return ExitCodes.SUCCESS.value
