"""Value types returned by the Modrinth registry client."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DependencyKind(Enum):
    """Modrinth ``dependency_type`` values."""
    REQUIRED = "required"
    OPTIONAL = "optional"
    INCOMPATIBLE = "incompatible"
    EMBEDDED = "embedded"


@dataclass
class ArtifactDependency:
    project_id: Optional[str]
    version_id: Optional[str]
    kind: DependencyKind


@dataclass
class ResolvedArtifact:
    """The newest downloadable file of a mod for one (loader, game version) pair.

    ``release_marker`` identifies the published version (its publish
    timestamp) and is what the lockfile records to detect new releases.
    """
    mod_id: str
    version_number: str
    version_name: str
    version_type: str
    release_marker: str
    url: str
    file_name: str
    sha1: str
    dependencies: List[ArtifactDependency] = field(default_factory=list)

    @property
    def required_dependency_ids(self) -> List[str]:
        ids: List[str] = []
        for dep in self.dependencies:
            if dep.kind is DependencyKind.REQUIRED and dep.project_id and dep.project_id not in ids:
                ids.append(dep.project_id)
        return ids


@dataclass
class SearchHit:
    id: str
    title: str
    author: Optional[str] = None
