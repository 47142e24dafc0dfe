"""Tests for manifest, lockfile and workspace persistence."""

import json

import pytest

from common.errors import StateError
from state.lockfile import LockEntry, Lockfile
from state.manifest import Manifest, ManifestEntry
from state.workspace import Workspace


def _entry(mod_id, file_name=None, deps=None, name=None):
    return LockEntry(
        id=mod_id,
        name=name,
        download_url=f"https://cdn.example/{mod_id}.jar",
        file_name=file_name or f"{mod_id}.jar",
        hash="0" * 40,
        released_on="2024-01-01T00:00:00Z",
        dependencies=deps or [],
    )


class TestManifest:
    """Test modlist.json handling."""

    def test_round_trip(self, tmp_path):
        """Test save then load reproduces the same data and JSON keys."""
        path = tmp_path / "modlist.json"
        manifest = Manifest("fabric", "1.20.1", "mods", [ManifestEntry("AANobbMI", "Sodium"), ManifestEntry("P7dR8mSH")])
        manifest.save(str(path))

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw == {
            "loader": "fabric",
            "gameVersion": "1.20.1",
            "modsFolder": "mods",
            "mods": [{"id": "AANobbMI", "name": "Sodium"}, {"id": "P7dR8mSH", "name": None}],
        }
        assert Manifest.load(str(path)) == manifest

    def test_missing_file(self, tmp_path):
        """Test a missing manifest is a state error."""
        with pytest.raises(StateError):
            Manifest.load(str(tmp_path / "modlist.json"))

    def test_corrupt_file(self, tmp_path):
        """Test invalid JSON is a state error."""
        path = tmp_path / "modlist.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(StateError):
            Manifest.load(str(path))

    def test_add_and_remove(self):
        """Test add is idempotent and remove reports whether anything changed."""
        manifest = Manifest("fabric", "1.20.1")
        first = manifest.add("a", "A")
        assert manifest.add("a") is first
        assert manifest.remove("a")
        assert not manifest.remove("a")


class TestLockfile:
    """Test modlist-lock.json handling."""

    def test_round_trip(self, tmp_path):
        """Test save then load reproduces the same entries."""
        path = tmp_path / "modlist-lock.json"
        lockfile = Lockfile([_entry("a", deps=["b"], name="A"), _entry("b")])
        lockfile.save(str(path))

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw[0]["fileName"] == "a.jar"
        assert raw[0]["downloadUrl"] == "https://cdn.example/a.jar"
        assert raw[0]["releasedOn"] == "2024-01-01T00:00:00Z"
        assert raw[0]["dependencies"] == ["b"]
        assert Lockfile.load(str(path)).entries == lockfile.entries

    def test_missing_file_is_empty(self, tmp_path):
        """Test a missing lockfile is an empty one."""
        assert len(Lockfile.load(str(tmp_path / "modlist-lock.json"))) == 0

    def test_upsert_keeps_one_entry_per_id(self):
        """Test upsert replaces in place."""
        lockfile = Lockfile([_entry("a"), _entry("b")])
        lockfile.upsert(_entry("a", file_name="a-2.jar"))
        assert [e.id for e in lockfile] == ["a", "b"]
        assert lockfile.find_by_id("a").file_name == "a-2.jar"
        assert lockfile.find_by_file("a-2.jar").id == "a"

    def test_missing_key(self):
        """Test entries without required keys are rejected."""
        with pytest.raises(StateError):
            Lockfile.from_json([{"id": "a"}])


class TestWorkspace:
    """Test workspace lookups."""

    def test_init_and_load(self, tmp_path):
        """Test init writes the manifest and creates the mods folder."""
        Workspace.init(str(tmp_path), "fabric", "1.20.1")
        assert (tmp_path / "mods").is_dir()
        workspace = Workspace.load(str(tmp_path))
        assert workspace.manifest.loader == "fabric"
        assert len(workspace.lockfile) == 0
        with pytest.raises(StateError):
            Workspace.init(str(tmp_path), "fabric", "1.20.1")

    def test_name_and_id_lookup(self, tmp_path):
        """Test names resolve through the lockfile first, then the manifest."""
        manifest = Manifest("fabric", "1.20.1", mods=[ManifestEntry("a", "Alpha"), ManifestEntry("c", "Gamma")])
        workspace = Workspace(str(tmp_path), manifest, Lockfile([_entry("a", name="Alpha Locked"), _entry("b")]))

        assert workspace.get_mod_name("a") == "Alpha Locked"
        assert workspace.get_mod_name("c") == "Gamma"
        assert workspace.get_mod_name("b") == "b"
        assert workspace.get_mod_id("alpha locked") == "a"
        assert workspace.get_mod_id("GAMMA") == "c"
        assert workspace.get_mod_id("unknown") is None
