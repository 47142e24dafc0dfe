"""Tests for the Modrinth registry client."""

import json
from unittest.mock import patch

import pytest

from common.errors import ModNotFoundError, ModNotSupportedError, RegistryError
from registry.modrinth import DependencyKind, ModrinthClient, is_modrinth_id


def _version(number, date, files=None, game_versions=("1.20.1",), loaders=("fabric",), deps=()):
    return {
        "id": f"v-{number}",
        "name": f"Release {number}",
        "version_number": number,
        "version_type": "release",
        "date_published": date,
        "game_versions": list(game_versions),
        "loaders": list(loaders),
        "files": files if files is not None else [{
            "url": f"https://cdn.modrinth.com/data/x/{number}.jar",
            "filename": f"mod-{number}.jar",
            "primary": True,
            "hashes": {"sha1": "a" * 40, "sha512": "b" * 128},
        }],
        "dependencies": list(deps),
    }


class TestIsModrinthId:
    """Test id detection."""

    def test_ids(self):
        """Test eight alphanumerics form an id; slugs do not."""
        assert is_modrinth_id("AANobbMI")
        assert not is_modrinth_id("sodium")
        assert not is_modrinth_id("fabric-a")
        assert not is_modrinth_id("AANobbMI1")


class TestResolveArtifact:
    """Test artifact selection."""

    @patch('registry.modrinth.client.get_json')
    def test_picks_newest_matching_version(self, mock_get_json):
        """Test the newest version for the loader and game version wins."""
        mock_get_json.return_value = (200, {}, [
            _version("1.0.0", "2024-01-01T00:00:00Z"),
            _version("1.2.0", "2024-03-01T00:00:00Z"),
            _version("2.0.0", "2024-04-01T00:00:00Z", loaders=("forge",)),
        ])

        artifact = ModrinthClient("https://api.example/v2").resolve_artifact("AANobbMI", "fabric", "1.20.1")

        assert artifact.version_number == "1.2.0"
        assert artifact.file_name == "mod-1.2.0.jar"
        assert artifact.release_marker == "2024-03-01T00:00:00Z"
        assert artifact.sha1 == "a" * 40
        url = mock_get_json.call_args[0][0]
        assert url == "https://api.example/v2/project/AANobbMI/version"
        params = mock_get_json.call_args[1]["params"]
        assert json.loads(params["loaders"]) == ["fabric"]
        assert json.loads(params["game_versions"]) == ["1.20.1"]

    @patch('registry.modrinth.client.get_json')
    def test_same_date_prefers_higher_version(self, mock_get_json):
        """Test equal publish dates fall back to version ordering."""
        mock_get_json.return_value = (200, {}, [
            _version("1.9.0", "2024-01-01T00:00:00Z"),
            _version("1.10.0", "2024-01-01T00:00:00Z"),
        ])

        artifact = ModrinthClient().resolve_artifact("mod", "fabric", "1.20.1")

        assert artifact.version_number == "1.10.0"

    @patch('registry.modrinth.client.get_json')
    def test_primary_file_and_required_dependencies(self, mock_get_json):
        """Test the primary file is chosen and only required dependencies are exposed."""
        files = [
            {"url": "https://cdn/x-sources.jar", "filename": "x-sources.jar", "primary": False, "hashes": {"sha1": "1" * 40}},
            {"url": "https://cdn/x.jar", "filename": "x.jar", "primary": True, "hashes": {"sha1": "2" * 40}},
        ]
        deps = [
            {"project_id": "P7dR8mSH", "version_id": None, "dependency_type": "required"},
            {"project_id": "optional1", "version_id": None, "dependency_type": "optional"},
            {"project_id": "embedded", "version_id": None, "dependency_type": "embedded"},
        ]
        mock_get_json.return_value = (200, {}, [_version("1.0", "2024-01-01T00:00:00Z", files=files, deps=deps)])

        artifact = ModrinthClient().resolve_artifact("mod", "fabric", "1.20.1")

        assert artifact.file_name == "x.jar"
        assert artifact.sha1 == "2" * 40
        assert artifact.required_dependency_ids == ["P7dR8mSH"]
        assert [d.kind for d in artifact.dependencies] == [
            DependencyKind.REQUIRED, DependencyKind.OPTIONAL, DependencyKind.EMBEDDED,
        ]

    @patch('registry.modrinth.client.get_json')
    def test_skips_path_like_file_names(self, mock_get_json):
        """Test file names containing separators are never used."""
        bad = [{"url": "https://cdn/evil.jar", "filename": "../evil.jar", "primary": True, "hashes": {}}]
        mock_get_json.return_value = (200, {}, [
            _version("2.0", "2024-02-01T00:00:00Z", files=bad),
            _version("1.0", "2024-01-01T00:00:00Z"),
        ])

        artifact = ModrinthClient().resolve_artifact("mod", "fabric", "1.20.1")

        assert artifact.version_number == "1.0"

    @patch('registry.modrinth.client.get_json')
    def test_not_found(self, mock_get_json):
        """Test HTTP 404 raises ModNotFoundError."""
        mock_get_json.return_value = (404, {}, None)
        with pytest.raises(ModNotFoundError) as exc:
            ModrinthClient().resolve_artifact("nope", "fabric", "1.20.1")
        assert exc.value.mod_id == "nope"

    @patch('registry.modrinth.client.get_json')
    def test_not_supported(self, mock_get_json):
        """Test no matching version raises ModNotSupportedError."""
        mock_get_json.return_value = (200, {}, [_version("1.0", "2024-01-01T00:00:00Z", game_versions=("1.19.2",))])
        with pytest.raises(ModNotSupportedError):
            ModrinthClient().resolve_artifact("mod", "fabric", "1.20.1")

    @patch('registry.modrinth.client.get_json')
    def test_transport_failure(self, mock_get_json):
        """Test a transport failure raises RegistryError."""
        mock_get_json.return_value = (0, {}, "Request failed after 3 attempts: timeout")
        with pytest.raises(RegistryError):
            ModrinthClient().resolve_artifact("mod", "fabric", "1.20.1")


class TestSearchAndNames:
    """Test search, project lookups and the name cache."""

    @patch('registry.modrinth.client.get_json')
    def test_search_returns_first_hit(self, mock_get_json):
        """Test search replaces dashes and returns the most downloaded hit."""
        mock_get_json.return_value = (200, {}, {"hits": [
            {"project_id": "AANobbMI", "title": "Sodium", "author": "jellysquid3"},
        ]})

        hit = ModrinthClient().search("sodium-extra")

        assert (hit.id, hit.title, hit.author) == ("AANobbMI", "Sodium", "jellysquid3")
        params = mock_get_json.call_args[1]["params"]
        assert params["query"] == "sodium extra"
        assert params["index"] == "downloads"

    @patch('registry.modrinth.client.get_json')
    def test_search_without_hits(self, mock_get_json):
        """Test an empty result is None."""
        mock_get_json.return_value = (200, {}, {"hits": []})
        assert ModrinthClient().search("nothing") is None

    @patch('registry.modrinth.client.get_json')
    def test_display_name_is_cached(self, mock_get_json):
        """Test a project title is fetched once per client."""
        mock_get_json.return_value = (200, {}, {"id": "AANobbMI", "title": "Sodium"})
        client = ModrinthClient()

        assert client.fetch_display_name("AANobbMI") == "Sodium"
        assert client.fetch_display_name("AANobbMI") == "Sodium"
        assert mock_get_json.call_count == 1

    @patch('registry.modrinth.client.get_json')
    def test_get_project_not_found(self, mock_get_json):
        """Test an unknown project raises ModNotFoundError."""
        mock_get_json.return_value = (404, {}, None)
        with pytest.raises(ModNotFoundError):
            ModrinthClient().get_project("AAAAAAAA")
