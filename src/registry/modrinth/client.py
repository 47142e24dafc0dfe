"""Modrinth API v2 client: version resolution, search and project metadata."""
from __future__ import annotations

import json
import logging
import string
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import semantic_version

from common.cancellation import CancellationToken, check_cancelled
from common.errors import ModNotFoundError, ModNotSupportedError, RegistryError
from common.http_client import get_json, stream_download
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

from .models import ArtifactDependency, DependencyKind, ResolvedArtifact, SearchHit

logger = logging.getLogger(__name__)

_ID_CHARS = frozenset(string.ascii_letters + string.digits)


def is_modrinth_id(value: str) -> bool:
    """Modrinth project ids are exactly eight alphanumeric characters."""
    return len(value) == 8 and all(c in _ID_CHARS for c in value)


def _version_sort_key(version: Dict[str, Any]):
    """Newest publish date first; equal dates fall back to the higher version number."""
    try:
        coerced = semantic_version.Version.coerce(str(version.get("version_number") or "0"))
    except ValueError:
        coerced = semantic_version.Version("0.0.0")
    return str(version.get("date_published") or ""), coerced


def _parse_dependencies(raw: Any) -> List[ArtifactDependency]:
    deps: List[ArtifactDependency] = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        try:
            kind = DependencyKind(item.get("dependency_type"))
        except ValueError:
            continue
        deps.append(ArtifactDependency(
            project_id=item.get("project_id"),
            version_id=item.get("version_id"),
            kind=kind,
        ))
    return deps


class ModrinthClient:
    """Thin client over the endpoints the resolver needs.

    Display names are cached per instance so backfilling the same id twice
    costs one request.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[CancellationToken] = None):
        self.base_url = (base_url or Constants.REGISTRY_URL_MODRINTH).rstrip("/") + "/"
        self.token = token
        self._names: Dict[str, str] = {}

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None):
        url = self.base_url + path
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request", component="client", action="GET",
                    target=safe_url(url), registry="modrinth",
                ),
            )
        with Timer() as timer:
            status, _, data = get_json(url, params=params, token=self.token)
        if status == 0:
            raise RegistryError(str(data))
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response", component="client", outcome="received",
                    status_code=status, duration_ms=timer.duration_ms(), registry="modrinth",
                ),
            )
        return status, data

    def resolve_artifact(self, mod_id: str, loader: str, game_version: str) -> ResolvedArtifact:
        """Pick the newest file of ``mod_id`` built for ``loader`` and ``game_version``.

        Raises:
            ModNotFoundError: The project does not exist.
            ModNotSupportedError: No version matches the loader and game version.
            RegistryError: Transport failure or unexpected payload.
        """
        check_cancelled(self.token)
        logger.debug("Fetching versions for mod %s", mod_id)
        status, versions = self._get(
            f"project/{quote(mod_id, safe='')}/version",
            params={"loaders": json.dumps([loader]), "game_versions": json.dumps([game_version])},
        )
        if status == 404:
            raise ModNotFoundError(mod_id)
        if status != 200 or not isinstance(versions, list):
            raise RegistryError(f"Unexpected response for mod {mod_id} (HTTP {status})")

        for version in sorted(
            (v for v in versions if isinstance(v, dict)), key=_version_sort_key, reverse=True
        ):
            if game_version not in (version.get("game_versions") or []):
                continue
            if loader not in (version.get("loaders") or []):
                continue

            files = [f for f in version.get("files") or [] if isinstance(f, dict)]
            file = next((f for f in files if f.get("primary")), files[0] if files else None)
            if file is None:
                logger.warning("Version %s of %s has no file", version.get("name"), mod_id)
                continue

            url = str(file.get("url") or "")
            file_name = file.get("filename") or url.rsplit("/", 1)[-1]
            if not file_name or "/" in file_name or "\\" in file_name:
                logger.warning("Invalid filename \"%s\" for version %s", file_name, version.get("name"))
                continue

            return ResolvedArtifact(
                mod_id=mod_id,
                version_number=str(version.get("version_number") or ""),
                version_name=str(version.get("name") or ""),
                version_type=str(version.get("version_type") or ""),
                release_marker=str(version.get("date_published") or ""),
                url=url,
                file_name=file_name,
                sha1=str((file.get("hashes") or {}).get("sha1") or ""),
                dependencies=_parse_dependencies(version.get("dependencies")),
            )

        raise ModNotSupportedError(mod_id, f"Mod {self._names.get(mod_id, mod_id)} not supported")

    def get_project(self, mod_id: str) -> SearchHit:
        """Fetch project metadata.

        Raises:
            ModNotFoundError: The project does not exist.
            RegistryError: Transport failure or unexpected payload.
        """
        check_cancelled(self.token)
        logger.debug("Fetching metadata for mod %s", mod_id)
        status, data = self._get(f"project/{quote(mod_id, safe='')}")
        if status == 404:
            raise ModNotFoundError(mod_id)
        if status != 200 or not isinstance(data, dict) or not data.get("id"):
            raise RegistryError(f"Unexpected response for project {mod_id} (HTTP {status})")
        hit = SearchHit(id=data["id"], title=data.get("title") or data["id"])
        self._names[hit.id] = hit.title
        return hit

    def search(self, query: str) -> Optional[SearchHit]:
        """Return the most downloaded project matching ``query``, or None."""
        check_cancelled(self.token)
        logger.debug("Searching online for mod %s", query)
        status, data = self._get(
            "search", params={"query": query.replace("-", " "), "index": "downloads", "limit": 1}
        )
        if status != 200 or not isinstance(data, dict):
            raise RegistryError(f"Search for {query} failed (HTTP {status})")
        hits = data.get("hits") or []
        if not hits or not isinstance(hits[0], dict) or not hits[0].get("project_id"):
            return None
        first = hits[0]
        return SearchHit(id=first["project_id"], title=first.get("title") or first["project_id"],
                         author=first.get("author"))

    def fetch_display_name(self, mod_id: str) -> str:
        if mod_id not in self._names:
            self._names[mod_id] = self.get_project(mod_id).title
        return self._names[mod_id]

    def download(self, url: str, dest_path: str, token: Optional[CancellationToken] = None) -> None:
        stream_download(url, dest_path, token=token or self.token)
