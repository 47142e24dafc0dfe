"""Content hashing for installed archives."""
from __future__ import annotations

import hashlib
from typing import Optional

from common.cancellation import CancellationToken, check_cancelled

_CHUNK = 1024 * 1024


def sha1_file(path: str, token: Optional[CancellationToken] = None) -> str:
    """Return the lowercase hex sha1 of the file at ``path``."""
    check_cancelled(token)
    digest = hashlib.sha1()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()
