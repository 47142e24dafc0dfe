"""Console presentation: change plans, mod lists and yes/no prompts."""

import logging
import sys
from typing import List, Optional, TextIO

from resolution.changes import ChangeSet, InstallReason, UninstallReason
from state.workspace import Workspace

logger = logging.getLogger(__name__)

_INSTALL_LABELS = {
    InstallReason.NOT_INSTALLED: "install",
    InstallReason.INVALID_HASH: "reinstall (invalid hash)",
    InstallReason.NEW_VERSION: "update",
    InstallReason.HASH_CHANGED: "reinstall (file changed upstream)",
}

_UNINSTALL_LABELS = {
    UninstallReason.ORPHAN: "remove (no longer needed)",
    UninstallReason.NOT_SUPPORTED: "remove (not supported)",
}


def render_changes(changes: ChangeSet, out: Optional[TextIO] = None) -> List[str]:
    """Print the plan, installs first. Returns the printed lines."""
    out = out or sys.stdout
    lines = []
    for install in changes.installs:
        artifact = install.artifact
        version = artifact.version_number or artifact.file_name
        if install.lock_entry is not None and install.reason is InstallReason.NEW_VERSION:
            version = f"{install.lock_entry.file_name} -> {artifact.file_name}"
        lines.append(f"  + {changes.name_of(install.mod_id)} {version} [{_INSTALL_LABELS[install.reason]}]")
    for uninstall in changes.uninstalls:
        lines.append(f"  - {changes.name_of(uninstall.mod_id)} [{_UNINSTALL_LABELS[uninstall.reason]}]")
    for line in lines:
        print(line, file=out)
    return lines


def render_list(workspace: Workspace, out: Optional[TextIO] = None) -> List[str]:
    """Print every lock entry, tagging dependencies and orphans."""
    out = out or sys.stdout
    lines = []
    for entry in workspace.lockfile:
        line = f"{workspace.get_mod_name(entry.id) or entry.file_name} ({entry.id})"
        if workspace.manifest.find(entry.id) is None:
            if any(entry.id in other.dependencies for other in workspace.lockfile):
                line += " (dependency)"
            else:
                line += " (orphan)"
        lines.append(line)
    for line in lines:
        print(line, file=out)
    return lines


def confirm(prompt: str, default: bool = True, assume_yes: bool = False) -> bool:
    """Ask a yes/no question on the terminal.

    Returns ``default`` when stdin is not interactive or the answer is empty.
    """
    if assume_yes:
        return True
    if not sys.stdin or not sys.stdin.isatty():
        logger.info("%s %s (non-interactive)", prompt, "yes" if default else "no")
        return default
    suffix = " [Y/n] " if default else " [y/N] "
    try:
        answer = input(prompt + suffix).strip().lower()
    except EOFError:
        return default
    if not answer:
        return default
    return answer in ("y", "yes")
