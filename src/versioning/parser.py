"""Token parsing utilities for version constraints."""

from enum import Enum
from typing import Optional, Tuple

from packaging import version as pep440

from .models import SemanticVersion


class Operator(Enum):
    """Comparison operator of a single constraint."""
    EQUAL = "="
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    GREATER = ">"
    LESS = "<"
    CARET = "^"
    TILDE = "~"


# Two-character operators must be tried before their one-character prefixes.
_PREFIXES = (
    (">=", Operator.GREATER_EQUAL),
    ("<=", Operator.LESS_EQUAL),
    ("=", Operator.EQUAL),
    (">", Operator.GREATER),
    ("<", Operator.LESS),
    ("^", Operator.CARET),
    ("~", Operator.TILDE),
)


def split_operator(token: str) -> Tuple[Operator, str, bool]:
    """Split a constraint token into (operator, version text, explicit).

    ``explicit`` is False when no prefix was present and the operator
    defaulted to equality; formatting uses it to reproduce the input.
    """
    for prefix, operator in _PREFIXES:
        if token.startswith(prefix):
            return operator, token[len(prefix):], True
    return Operator.EQUAL, token, False


def coerce_pep440(value: str) -> Optional[pep440.Version]:
    """Best-effort PEP 440 view of a mod version string.

    Mod versions routinely carry suffixes PEP 440 rejects (``1.2.3+mc1.20.1``
    is fine, ``0.5.1-fabric`` is not); on failure the numeric prefix is used.
    """
    try:
        return pep440.Version(value)
    except pep440.InvalidVersion:
        semver = SemanticVersion.parse(value)
        if semver is None:
            return None
        return pep440.Version(str(semver))
