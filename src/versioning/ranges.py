"""Version constraint expressions.

Two syntaxes are supported:

* Fabric/Quilt style (``fabric.mod.json``): a single comparator such as
  ``>=1.2.3``, ``^1.0`` or ``1.20.x``; several comparators separated by
  spaces that must all hold; or a JSON array of alternatives of which any
  may hold.
* Forge/NeoForge style (``mods.toml``): Maven intervals such as
  ``[47,)``, ``[1.0,2.0)`` or ``[1.2]``.

Both implement :class:`VersionRange` so resolution code never needs to know
which format a component came from.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

from .models import PartialVersion, SemanticVersion
from .parser import Operator, coerce_pep440, split_operator

VersionLike = Union[str, SemanticVersion]


class VersionRange:
    """Interface for anything that can accept or reject a concrete version."""

    def satisfies(self, version: VersionLike) -> bool:
        raise NotImplementedError

    def to_json(self):
        """Return the value as it would appear in a metadata file."""
        return str(self)


def _as_semver(version: VersionLike) -> Optional[SemanticVersion]:
    if isinstance(version, SemanticVersion):
        return version
    return SemanticVersion.parse(version)


class SingleVersionRange(VersionRange):
    """One comparator, e.g. ``>=1.2``, ``~0.4.1``, ``1.20.x`` or ``*``."""

    def __init__(self, token: str):
        token = token.strip()
        self.operator, self.raw, self._explicit = split_operator(token)
        self.version: Optional[PartialVersion] = PartialVersion.parse(self.raw)

    @property
    def is_wildcard(self) -> bool:
        return self.raw == "*"

    def satisfies(self, version: VersionLike) -> bool:
        if self.is_wildcard:
            return True
        if self.version is None:
            return False
        concrete = _as_semver(version)
        if concrete is None:
            return False
        actual = concrete.to_partial()
        bound = self.version

        if self.operator is Operator.EQUAL:
            return actual == bound
        if self.operator is Operator.GREATER_EQUAL:
            return actual >= bound
        if self.operator is Operator.LESS_EQUAL:
            return actual <= bound
        if self.operator is Operator.GREATER:
            return actual > bound
        if self.operator is Operator.LESS:
            return actual < bound
        if self.operator is Operator.CARET:
            if not actual >= bound:
                return False
            if bound.major is None:
                return True
            return actual < PartialVersion(bound.major + 1, 0, 0)
        if self.operator is Operator.TILDE:
            if not actual >= bound:
                return False
            if bound.major is None:
                return True
            if bound.minor is None:
                return actual < PartialVersion(bound.major + 1, 0, 0)
            return actual < PartialVersion(bound.major, bound.minor + 1, 0)
        raise ValueError(f"Unknown operator {self.operator}")

    def __str__(self) -> str:
        if self.is_wildcard or not self._explicit:
            return self.raw
        return f"{self.operator.value}{self.raw}"

    def __repr__(self) -> str:
        return f"SingleVersionRange({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SingleVersionRange) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


class ListOperator(Enum):
    """How the members of a listed range combine."""
    AND = "and"
    OR = "or"


class ListedVersionRange(VersionRange):
    """Several ranges combined with AND (space separated) or OR (array)."""

    def __init__(self, operator: ListOperator, values: Sequence[VersionRange]):
        self.operator = operator
        self.values: List[VersionRange] = list(values)

    def satisfies(self, version: VersionLike) -> bool:
        if self.operator is ListOperator.OR:
            return any(v.satisfies(version) for v in self.values)
        return all(v.satisfies(version) for v in self.values)

    def to_json(self):
        if self.operator is ListOperator.OR:
            return [v.to_json() for v in self.values]
        return str(self)

    def __str__(self) -> str:
        if self.operator is ListOperator.AND:
            return " ".join(str(v) for v in self.values)
        return " || ".join(str(v) for v in self.values)

    def __repr__(self) -> str:
        return f"ListedVersionRange({self.operator.name}, {[str(v) for v in self.values]!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ListedVersionRange):
            return False
        return self.operator is other.operator and set(map(str, self.values)) == set(map(str, other.values))

    def __hash__(self) -> int:
        return hash((self.operator, frozenset(map(str, self.values))))


def parse_range(raw: Union[str, Sequence[str]]) -> VersionRange:
    """Parse a Fabric-style constraint.

    Args:
        raw: A string (one comparator, or several separated by spaces for
            AND) or a list of strings (alternatives, OR).

    Raises:
        ValueError: If ``raw`` is neither a string nor a list of strings.
    """
    if isinstance(raw, str):
        tokens = raw.split()
        if len(tokens) > 1:
            return ListedVersionRange(ListOperator.AND, [SingleVersionRange(t) for t in tokens])
        return SingleVersionRange(raw)
    if isinstance(raw, (list, tuple)):
        values = []
        for item in raw:
            if not isinstance(item, str):
                raise ValueError(f"Expected a version string, got {type(item).__name__}")
            values.append(parse_range(item))
        return ListedVersionRange(ListOperator.OR, values)
    raise ValueError(f"Expected a string or an array, got {type(raw).__name__}")


@dataclass(frozen=True)
class _Interval:
    lower: Optional[str]
    lower_inclusive: bool
    upper: Optional[str]
    upper_inclusive: bool


class IntervalVersionRange(VersionRange):
    """Maven interval notation as used by Forge ``mods.toml``.

    ``[1.0,2.0)`` is inclusive/exclusive, ``(,1.5]`` has no lower bound,
    ``[1.2]`` pins a version, several intervals joined by commas form a
    union. A bare version is a soft requirement (that version or newer);
    an empty string or ``*`` accepts anything.
    """

    def __init__(self, raw: str):
        self.raw = raw.strip()
        self._intervals = self._parse(self.raw)

    @staticmethod
    def _split_union(spec: str) -> List[str]:
        parts, current, depth = [], "", 0
        for char in spec:
            if char in "[(":
                if depth == 0:
                    current = ""
                depth += 1
                current += char
            elif char in "])":
                depth -= 1
                current += char
                if depth == 0:
                    parts.append(current)
                    current = ""
            elif depth > 0:
                current += char
        return parts

    @classmethod
    def _parse(cls, spec: str) -> Optional[List[_Interval]]:
        if spec in ("", "*"):
            return None
        if spec[0] not in "[(":
            return [_Interval(spec, True, None, False)]

        intervals = []
        for part in cls._split_union(spec):
            inner = part[1:-1]
            if "," not in inner:
                pinned = inner.strip()
                if not pinned:
                    raise ValueError(f"Empty version interval in {spec!r}")
                intervals.append(_Interval(pinned, True, pinned, True))
                continue
            lower, upper = (s.strip() for s in inner.split(",", 1))
            intervals.append(
                _Interval(lower or None, part[0] == "[", upper or None, part[-1] == "]")
            )
        if not intervals:
            raise ValueError(f"Invalid version interval {spec!r}")
        return intervals

    def satisfies(self, version: VersionLike) -> bool:
        if self._intervals is None:
            return True
        actual = coerce_pep440(str(version))
        if actual is None:
            return False
        for interval in self._intervals:
            if interval.lower is not None:
                lower = coerce_pep440(interval.lower)
                if lower is None:
                    continue
                if actual < lower or (actual == lower and not interval.lower_inclusive):
                    continue
            if interval.upper is not None:
                upper = coerce_pep440(interval.upper)
                if upper is None:
                    continue
                if actual > upper or (actual == upper and not interval.upper_inclusive):
                    continue
            return True
        return False

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"IntervalVersionRange({self.raw!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IntervalVersionRange) and self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)
