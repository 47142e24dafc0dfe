"""Shared fixtures: an in-memory registry and on-disk workspaces."""

import hashlib

import pytest

from common.errors import ModNotFoundError, ModNotSupportedError, RegistryError
from registry.modrinth.models import ArtifactDependency, DependencyKind, ResolvedArtifact
from state.lockfile import LockEntry, Lockfile
from state.manifest import Manifest, ManifestEntry
from state.workspace import Workspace


class FakeRegistry:
    """Registry double serving artifacts from a dict and counting calls."""

    def __init__(self):
        self.artifacts = {}
        self.contents = {}
        self.names = {}
        self.unsupported = set()
        self.broken = set()
        self.resolve_calls = []
        self.name_calls = []
        self.download_calls = []
        self.search_calls = []
        self.projects = {}
        self.search_hits = {}
        self.on_download = None

    def publish(self, mod_id, deps=(), content=None, marker="2024-01-01T00:00:00Z",
                optional=(), file_name=None):
        content = content if content is not None else f"{mod_id}:{marker}".encode()
        url = f"https://cdn.example/{mod_id}/{marker}.jar"
        dependencies = [ArtifactDependency(d, None, DependencyKind.REQUIRED) for d in deps]
        dependencies += [ArtifactDependency(d, None, DependencyKind.OPTIONAL) for d in optional]
        artifact = ResolvedArtifact(
            mod_id=mod_id,
            version_number="1.0.0",
            version_name=f"{mod_id} 1.0.0",
            version_type="release",
            release_marker=marker,
            url=url,
            file_name=file_name or f"{mod_id}-1.0.0.jar",
            sha1=hashlib.sha1(content).hexdigest(),
            dependencies=dependencies,
        )
        self.artifacts[mod_id] = artifact
        self.contents[url] = content
        return artifact

    def resolve_artifact(self, mod_id, loader, game_version):
        self.resolve_calls.append(mod_id)
        if mod_id in self.broken:
            raise RegistryError(f"Connection to registry failed for {mod_id}")
        if mod_id in self.unsupported:
            raise ModNotSupportedError(mod_id)
        if mod_id not in self.artifacts:
            raise ModNotFoundError(mod_id)
        return self.artifacts[mod_id]

    def get_project(self, mod_id):
        if mod_id not in self.projects:
            raise ModNotFoundError(mod_id)
        return self.projects[mod_id]

    def search(self, query):
        self.search_calls.append(query)
        return self.search_hits.get(query)

    def fetch_display_name(self, mod_id):
        self.name_calls.append(mod_id)
        if mod_id in self.broken:
            raise RegistryError("offline")
        return self.names.get(mod_id, mod_id.upper())

    def download(self, url, dest_path, token=None):
        self.download_calls.append(url)
        with open(dest_path, "wb") as fh:
            fh.write(self.contents[url])
        if self.on_download is not None:
            self.on_download(url)


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def make_workspace(tmp_path):
    """Build a workspace on disk from manifest ids and (artifact, installed) pairs."""

    def _make(manifest_ids=(), installed=(), loader="fabric", game_version="1.20.1"):
        manifest = Manifest(loader, game_version, mods=[ManifestEntry(i) for i in manifest_ids])
        lockfile = Lockfile()
        mods_dir = tmp_path / "mods"
        mods_dir.mkdir(exist_ok=True)
        for artifact, content in installed:
            lockfile.upsert(LockEntry(
                id=artifact.mod_id,
                name=None,
                download_url=artifact.url,
                file_name=artifact.file_name,
                hash=artifact.sha1,
                released_on=artifact.release_marker,
                dependencies=artifact.required_dependency_ids,
            ))
            if content is not None:
                (mods_dir / artifact.file_name).write_bytes(content)
        workspace = Workspace(str(tmp_path), manifest, lockfile)
        workspace.save_manifest()
        workspace.save_lockfile()
        return workspace

    return _make


@pytest.fixture
def installed_content(registry):
    """Return the published bytes of an artifact, as if it had been downloaded."""

    def _content(artifact):
        return registry.contents[artifact.url]

    return _content
