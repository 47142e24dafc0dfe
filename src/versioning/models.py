"""Version value types used by constraint evaluation."""

from dataclasses import dataclass
from typing import Optional, Tuple

_CONCRETE_CHARS = frozenset("0123456789.")
_PARTIAL_CHARS = frozenset("0123456789.xX*")
WILDCARDS = frozenset({"x", "X", "*"})


def _leading(value: str, allowed: frozenset) -> str:
    """Return the longest prefix of ``value`` made only of ``allowed`` characters."""
    for i, char in enumerate(value):
        if char not in allowed:
            return value[:i]
    return value


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """A concrete major.minor.patch version.

    Anything after the numeric prefix (pre-release tags, build metadata,
    loader suffixes like ``+mc1.20``) is ignored; missing components are 0.
    """
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, value: str) -> Optional["SemanticVersion"]:
        """Parse ``value`` or return None when it has no numeric prefix."""
        if value is None:
            return None
        parts = _leading(value.strip(), _CONCRETE_CHARS).split(".")[:3]
        if not all(p.isdigit() for p in parts):
            return None
        numbers = [int(p) for p in parts] + [0] * (3 - len(parts))
        return cls(*numbers)

    def to_partial(self) -> "PartialVersion":
        return PartialVersion(self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True, eq=False)
class PartialVersion:
    """A version whose components may be unknown.

    A component of None is a wildcard: it never disqualifies equality and
    never decides ordering. Comparisons walk major, minor, patch and stop at
    the first position where both sides are known and differ.
    """
    major: Optional[int]
    minor: Optional[int] = None
    patch: Optional[int] = None

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def parse(cls, value: str) -> Optional["PartialVersion"]:
        """Parse ``1``, ``1.2``, ``1.2.x``, ``1.*`` and similar.

        Components absent from the string are wildcards.
        """
        if value is None:
            return None
        parts = _leading(value.strip(), _PARTIAL_CHARS).split(".")[:3]
        components = []
        for part in parts:
            if part in WILDCARDS:
                components.append(None)
            elif part.isdigit():
                components.append(int(part))
            else:
                return None
        components += [None] * (3 - len(components))
        return cls(*components)

    def components(self) -> Tuple[Optional[int], Optional[int], Optional[int]]:
        return self.major, self.minor, self.patch

    def _compare(self, other: "PartialVersion") -> int:
        for mine, theirs in zip(self.components(), other.components()):
            if mine is None or theirs is None:
                continue
            if mine < theirs:
                return -1
            if mine > theirs:
                return 1
        return 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SemanticVersion):
            other = other.to_partial()
        if not isinstance(other, PartialVersion):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: "PartialVersion") -> bool:
        return self._compare(_as_partial(other)) < 0

    def __gt__(self, other: "PartialVersion") -> bool:
        return self._compare(_as_partial(other)) > 0

    def __le__(self, other: "PartialVersion") -> bool:
        return self._compare(_as_partial(other)) <= 0

    def __ge__(self, other: "PartialVersion") -> bool:
        return self._compare(_as_partial(other)) >= 0

    def __str__(self) -> str:
        return ".".join("x" if c is None else str(c) for c in self.components())


def _as_partial(value) -> PartialVersion:
    if isinstance(value, SemanticVersion):
        return value.to_partial()
    return value
