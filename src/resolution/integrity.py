"""Compare the mods directory against the lockfile."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from common.cancellation import CancellationToken, check_cancelled
from common.hashing import sha1_file
from common.logging_utils import extra_context, is_debug_enabled
from components.reader import list_archives
from state.lockfile import LockEntry

logger = logging.getLogger(__name__)


class LockfileStatus(Enum):
    NOT_TRACKED = "not_tracked"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    NOT_EXISTS = "not_exists"


@dataclass
class LockfileError:
    """A disagreement between one file and the lockfile.

    ``file`` is an absolute path; ``entry`` is None for untracked files.
    """
    status: LockfileStatus
    file: str
    entry: Optional[LockEntry] = None


def check_lockfile(
    mods_directory: str,
    lock_entries: Iterable[LockEntry],
    token: Optional[CancellationToken] = None,
) -> List[LockfileError]:
    """Report untracked archives, hash mismatches and missing tracked files.

    Archives are visited in name order and matched to lock entries by exact
    file name; lock entries are then checked in lockfile order. The two
    passes are independent. Read only.
    """
    entries = list(lock_entries)
    by_file: dict = {}
    for entry in entries:
        by_file.setdefault(entry.file_name, entry)
    errors: List[LockfileError] = []

    for path in list_archives(mods_directory):
        check_cancelled(token)
        entry = by_file.get(os.path.basename(path))
        if entry is None:
            errors.append(LockfileError(LockfileStatus.NOT_TRACKED, path))
            continue
        if sha1_file(path, token) != entry.hash:
            errors.append(LockfileError(LockfileStatus.CHECKSUM_MISMATCH, path, entry))

    for entry in entries:
        path = os.path.join(os.path.abspath(mods_directory), entry.file_name)
        if not os.path.isfile(path):
            errors.append(LockfileError(LockfileStatus.NOT_EXISTS, path, entry))

    if is_debug_enabled(logger):
        logger.debug(
            "Lockfile integrity check finished",
            extra=extra_context(
                event="integrity_check", component="resolution", action="check_lockfile",
                outcome="clean" if not errors else "problems", count=len(errors),
            ),
        )
    return errors
