"""Check declared constraints of installed mods against everything installed."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from components.models import ConstraintKind, InstalledComponent
from constants import Constants
from state.lockfile import LockEntry
from versioning.ranges import VersionRange

logger = logging.getLogger(__name__)


class DependencyStatus(Enum):
    OK = "ok"
    VERSION_MISMATCH = "version_mismatch"
    NOT_FOUND = "not_found"


class DependencyErrorLevel(Enum):
    """The two constraint kinds whose violation fails a check."""
    DEPENDS = "depends"
    BREAKS = "breaks"


@dataclass
class DependencyError:
    level: DependencyErrorLevel
    subject: InstalledComponent
    other_id: str
    other_installed: Optional[InstalledComponent] = None


def should_skip(dependency_id: str) -> bool:
    """True for ids naming the platform itself (loaders, runtime, placeholder)."""
    return (
        dependency_id in Constants.LOADER_COMPONENT_IDS
        or dependency_id == Constants.RUNTIME_COMPONENT_ID
        or dependency_id == Constants.PLACEHOLDER_COMPONENT_ID
    )


def find_best_match(
    dependency_id: str,
    version_range: VersionRange,
    components: Sequence[InstalledComponent],
) -> Tuple[Optional[InstalledComponent], DependencyStatus]:
    """Find a component satisfying ``dependency_id`` within ``version_range``.

    A component matches by id or by listing the id in ``provides``. The
    first satisfying match wins; otherwise the last match seen is returned
    as a version mismatch.
    """
    best: Optional[InstalledComponent] = None
    for installed in components:
        component = installed.component
        if component.id != dependency_id and dependency_id not in component.provides:
            continue
        if version_range.satisfies(component.version):
            return installed, DependencyStatus.OK
        best = installed
    if best is not None:
        return best, DependencyStatus.VERSION_MISMATCH
    return None, DependencyStatus.NOT_FOUND


def check_dependencies(
    installed: Sequence[InstalledComponent],
    lock_entries: Iterable[LockEntry],
    platform: Sequence[InstalledComponent] = (),
    errors_only: bool = False,
) -> Tuple[List[DependencyError], bool]:
    """Check every locked component's constraints.

    Components whose archive has no lock entry are not checked, though
    they can still satisfy other components' constraints.

    Args:
        installed: Components read from the mods directory.
        lock_entries: Current lockfile entries.
        platform: Synthetic game/runtime components.
        errors_only: Suppress advisory (recommends/suggests/conflicts) messages.

    Returns:
        Tuple of (collected errors, ok). ``ok`` is also False for version
        mismatches on ``depends``, which are reported but not collected.
    """
    locked_files = {e.file_name for e in lock_entries}
    components = list(installed) + list(platform)
    errors: List[DependencyError] = []
    ok = True

    for subject in installed:
        if subject.file_name is None or os.path.basename(subject.file_name) not in locked_files:
            continue
        mod = subject.component

        for dep_id, version_range in mod.constraints(ConstraintKind.DEPENDS).items():
            if should_skip(dep_id):
                continue
            other, status = find_best_match(dep_id, version_range, components)
            if status is DependencyStatus.VERSION_MISMATCH:
                ok = False
                logger.error(
                    "Dependency %s %s for mod %s not satisfied (installed version: %s)",
                    dep_id, version_range, mod.id, other.component.version,
                )
            elif status is DependencyStatus.NOT_FOUND:
                ok = False
                errors.append(DependencyError(DependencyErrorLevel.DEPENDS, subject, dep_id))
                logger.error("Dependency %s %s for mod %s not installed", dep_id, version_range, mod.id)

        for kind, label, log in (
            (ConstraintKind.RECOMMENDS, "Recommendation", logger.warning),
            (ConstraintKind.SUGGESTS, "Suggestion", logger.info),
        ):
            for dep_id, version_range in mod.constraints(kind).items():
                if should_skip(dep_id) or errors_only:
                    continue
                other, status = find_best_match(dep_id, version_range, components)
                if status is DependencyStatus.VERSION_MISMATCH:
                    log("%s %s %s for mod %s not satisfied (installed version: %s)",
                        label, dep_id, version_range, mod.id, other.component.version)
                elif status is DependencyStatus.NOT_FOUND:
                    log("%s %s %s for mod %s not installed", label, dep_id, version_range, mod.id)

        for dep_id, version_range in mod.constraints(ConstraintKind.CONFLICTS).items():
            if should_skip(dep_id):
                continue
            other, status = find_best_match(dep_id, version_range, components)
            if status is DependencyStatus.OK and not errors_only:
                logger.warning("Mod %s %s conflicts with %s", other.component.id, other.component.version, mod.id)

        for dep_id, version_range in mod.constraints(ConstraintKind.BREAKS).items():
            if should_skip(dep_id):
                continue
            other, status = find_best_match(dep_id, version_range, components)
            if status is DependencyStatus.OK:
                ok = False
                errors.append(DependencyError(DependencyErrorLevel.BREAKS, subject, dep_id, other))
                logger.error("Mod %s %s breaks %s", other.component.id, other.component.version, mod.id)

    if is_debug_enabled(logger):
        logger.debug(
            "Dependency check finished",
            extra=extra_context(
                event="dependency_check", component="resolution", action="check_dependencies",
                outcome="ok" if ok else "failed", count=len(errors),
            ),
        )
    return errors, ok
