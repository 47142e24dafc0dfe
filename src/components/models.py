"""Installed-component models.

Every component, whatever metadata format it came from, exposes the same
capability set: ``id``, ``version``, ``name``, ``provides`` and
``constraints(kind)``. Dependency resolution only depends on that set.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from versioning.ranges import IntervalVersionRange, VersionRange, parse_range


class ConstraintKind(Enum):
    """Relationship a component declares towards another id."""
    DEPENDS = "depends"
    RECOMMENDS = "recommends"
    SUGGESTS = "suggests"
    CONFLICTS = "conflicts"
    BREAKS = "breaks"


@dataclass
class GenericComponent:
    """A component without constraints (the game, the runtime, unknown archives)."""
    id: str
    version: str
    name: Optional[str] = None

    @property
    def provides(self) -> List[str]:
        return []

    def constraints(self, kind: ConstraintKind) -> Dict[str, VersionRange]:
        return {}

    def __str__(self) -> str:
        return f"{self.name or self.id} ({self.version})"


@dataclass
class FabricMod(GenericComponent):
    """Component described by ``fabric.mod.json`` (also used for Quilt's Fabric-compatible metadata)."""
    provides_ids: List[str] = field(default_factory=list)
    nested_jars: List[str] = field(default_factory=list)
    relations: Dict[ConstraintKind, Dict[str, VersionRange]] = field(default_factory=dict)

    @property
    def provides(self) -> List[str]:
        return self.provides_ids

    def constraints(self, kind: ConstraintKind) -> Dict[str, VersionRange]:
        return self.relations.get(kind, {})

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "FabricMod":
        """Build from the parsed ``fabric.mod.json`` document.

        Raises:
            ValueError: When ``id``/``version`` are missing or a range is malformed.
        """
        if not isinstance(data, Mapping):
            raise ValueError("fabric.mod.json root is not an object")
        mod_id = data.get("id")
        version = data.get("version")
        if not isinstance(mod_id, str) or not isinstance(version, str):
            raise ValueError("fabric.mod.json is missing id or version")

        relations: Dict[ConstraintKind, Dict[str, VersionRange]] = {}
        for kind in ConstraintKind:
            section = data.get(kind.value)
            if not section:
                continue
            if not isinstance(section, Mapping):
                raise ValueError(f"'{kind.value}' must be an object")
            relations[kind] = {dep_id: parse_range(raw) for dep_id, raw in section.items()}

        jars = []
        for jar in data.get("jars") or []:
            if isinstance(jar, Mapping) and isinstance(jar.get("file"), str):
                jars.append(jar["file"])

        provides = [p for p in (data.get("provides") or []) if isinstance(p, str)]

        name = data.get("name")
        return cls(
            id=mod_id,
            version=version,
            name=name if isinstance(name, str) else None,
            provides_ids=provides,
            nested_jars=jars,
            relations=relations,
        )


# mods.toml dependency "type" (NeoForge) or "mandatory" (Forge) mapped onto constraint kinds
_FORGE_TYPES = {
    "required": ConstraintKind.DEPENDS,
    "optional": ConstraintKind.SUGGESTS,
    "discouraged": ConstraintKind.CONFLICTS,
    "incompatible": ConstraintKind.BREAKS,
}


@dataclass
class ForgeDependency:
    mod_id: str
    kind: ConstraintKind
    version_range: IntervalVersionRange


@dataclass
class ForgeMod(GenericComponent):
    """Component described by ``META-INF/mods.toml`` (Forge) or ``neoforge.mods.toml``."""
    dependencies: List[ForgeDependency] = field(default_factory=list)

    def constraints(self, kind: ConstraintKind) -> Dict[str, VersionRange]:
        return {d.mod_id: d.version_range for d in self.dependencies if d.kind is kind}

    @classmethod
    def from_toml(
        cls,
        mod: Mapping[str, Any],
        dependencies: Optional[Mapping[str, Any]],
        jar_version: Optional[str] = None,
        neoforge: bool = False,
    ) -> "ForgeMod":
        """Build from one ``[[mods]]`` table and the file's ``[dependencies]`` table.

        Args:
            mod: The ``[[mods]]`` entry.
            dependencies: The top-level ``dependencies`` table, keyed by mod id.
            jar_version: Value substituted for ``${file.jarVersion}``.
            neoforge: Read from ``neoforge.mods.toml``, where a dependency
                without ``type`` or ``mandatory`` is required.
        """
        mod_id = mod.get("modId")
        version = mod.get("version", "0")
        if not isinstance(mod_id, str):
            raise ValueError("mods.toml entry is missing modId")
        if version == "${file.jarVersion}":
            version = jar_version or "0"

        deps = []
        for raw in (dependencies or {}).get(mod_id, []) or []:
            if not isinstance(raw, Mapping) or not isinstance(raw.get("modId"), str):
                continue
            dep_type = raw.get("type")
            if isinstance(dep_type, str):
                kind = _FORGE_TYPES.get(dep_type.lower(), ConstraintKind.SUGGESTS)
            elif "mandatory" in raw:
                kind = ConstraintKind.DEPENDS if raw["mandatory"] else ConstraintKind.SUGGESTS
            else:
                kind = ConstraintKind.DEPENDS if neoforge else ConstraintKind.SUGGESTS
            deps.append(
                ForgeDependency(
                    mod_id=raw["modId"],
                    kind=kind,
                    version_range=IntervalVersionRange(str(raw.get("versionRange", ""))),
                )
            )

        return cls(
            id=mod_id,
            version=str(version),
            name=mod.get("displayName"),
            dependencies=deps,
        )


@dataclass
class InstalledComponent:
    """A component together with the archive it was read from.

    ``file_name`` is None for platform components; nested archives use
    ``outer.jar/inner.jar``.
    """
    file_name: Optional[str]
    component: GenericComponent
