"""Modrinth registry package.

- models.py: resolved artifacts, dependency kinds and search hits
- client.py: HTTP interactions with the Modrinth API v2

Public API is preserved at registry.modrinth.
"""

# Patch point exposed for tests
from common.http_client import get_json  # noqa: F401

# Public API re-exports
from .models import (  # noqa: F401
    ArtifactDependency,
    DependencyKind,
    ResolvedArtifact,
    SearchHit,
)
from .client import ModrinthClient, is_modrinth_id  # noqa: F401

__all__ = [
    "ArtifactDependency",
    "DependencyKind",
    "ResolvedArtifact",
    "SearchHit",
    "ModrinthClient",
    "is_modrinth_id",
    "get_json",
]
