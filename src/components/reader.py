"""Read installed mod archives from a mods directory.

Supports Fabric/Quilt (``fabric.mod.json``, including nested ``jars``) and
Forge/NeoForge (``META-INF/mods.toml`` / ``META-INF/neoforge.mods.toml``).
Unreadable or unrecognised archives are skipped with a warning so one bad
file never hides the rest of the directory.
"""

from __future__ import annotations

import glob
import io
import json
import logging
import os
import zipfile
from typing import List, Optional

from common.cancellation import CancellationToken, check_cancelled
from constants import Constants

from .models import FabricMod, ForgeMod, InstalledComponent

logger = logging.getLogger(__name__)

FABRIC_METADATA = "fabric.mod.json"
NEOFORGE_METADATA = "META-INF/neoforge.mods.toml"
FORGE_METADATA = ("META-INF/mods.toml", NEOFORGE_METADATA)
JAR_MANIFEST = "META-INF/MANIFEST.MF"


def sanitize_json(text: str) -> str:
    """Escape raw line breaks inside JSON strings.

    Plenty of published ``fabric.mod.json`` files embed literal newlines in
    descriptions, which strict JSON parsers reject.
    """
    out = []
    in_string = False
    escape_next = False
    for char in text:
        if char == '"' and not escape_next:
            in_string = not in_string
        if in_string and escape_next:
            escape_next = False
            out.append(char)
            continue
        escape_next = False
        if in_string:
            if char == "\n":
                out.append("\\n")
                continue
            if char == "\r":
                out.append("\\r")
                continue
            if char == "\\":
                escape_next = True
        out.append(char)
    return "".join(out)


def _read_text(archive: zipfile.ZipFile, name: str) -> str:
    return archive.read(name).decode("utf-8-sig")


def _jar_version(archive: zipfile.ZipFile) -> Optional[str]:
    """Return ``Implementation-Version`` from the jar manifest, if any."""
    if JAR_MANIFEST not in archive.namelist():
        return None
    for line in _read_text(archive, JAR_MANIFEST).splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "Implementation-Version":
            return value.strip() or None
    return None


def _read_fabric(archive: zipfile.ZipFile, file_name: str, result: List[InstalledComponent]) -> None:
    try:
        data = json.loads(sanitize_json(_read_text(archive, FABRIC_METADATA)))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {FABRIC_METADATA}: {exc}") from exc
    mod = FabricMod.from_json(data)
    result.append(InstalledComponent(file_name=file_name, component=mod))

    for jar in mod.nested_jars:
        if jar not in archive.namelist():
            raise ValueError(f"Nested jar {jar} not found")
        nested_name = f"{file_name}/{jar}"
        with zipfile.ZipFile(io.BytesIO(archive.read(jar))) as nested:
            _read_archive(nested, nested_name, result)


def _read_forge(archive: zipfile.ZipFile, entry: str, file_name: str, result: List[InstalledComponent]) -> None:
    try:
        import tomllib as toml  # type: ignore
    except Exception:  # pylint: disable=broad-exception-caught
        import tomli as toml  # type: ignore

    try:
        data = toml.loads(_read_text(archive, entry))
    except toml.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {entry}: {exc}") from exc

    mods = data.get("mods")
    if not isinstance(mods, list) or not mods:
        raise ValueError(f"{entry} declares no mods")
    jar_version = _jar_version(archive)
    for mod in mods:
        result.append(
            InstalledComponent(
                file_name=file_name,
                component=ForgeMod.from_toml(
                    mod, data.get("dependencies"), jar_version, neoforge=entry == NEOFORGE_METADATA
                ),
            )
        )


def _read_archive(archive: zipfile.ZipFile, file_name: str, result: List[InstalledComponent]) -> None:
    names = set(archive.namelist())
    if FABRIC_METADATA in names:
        _read_fabric(archive, file_name, result)
        return
    for entry in FORGE_METADATA:
        if entry in names:
            _read_forge(archive, entry, file_name, result)
            return
    raise ValueError("not a recognised mod archive")


def archive_name(file_name: str) -> str:
    """Basename of the top-level archive, for plain and nested (``outer.jar/inner.jar``) paths."""
    marker = ".jar/"
    if marker in file_name:
        file_name = file_name[: file_name.index(marker) + len(".jar")]
    return os.path.basename(file_name)


def list_archives(mods_directory: str) -> List[str]:
    """Return absolute paths of mod archives in ``mods_directory``, sorted by name."""
    if not os.path.isdir(mods_directory):
        return []
    return sorted(glob.glob(os.path.join(os.path.abspath(mods_directory), Constants.ARCHIVE_GLOB)))


def read_installed_components(
    mods_directory: str, token: Optional[CancellationToken] = None
) -> List[InstalledComponent]:
    """Read every mod archive in ``mods_directory``.

    Returns:
        Components in directory (name) order; nested components follow
        their container.
    """
    components: List[InstalledComponent] = []
    for path in list_archives(mods_directory):
        check_cancelled(token)
        found: List[InstalledComponent] = []
        try:
            with zipfile.ZipFile(path) as archive:
                _read_archive(archive, path, found)
        except (zipfile.BadZipFile, OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Skipping %s: %s", os.path.basename(path), exc)
            continue
        components.extend(found)

    logger.debug("Read %d component(s) from %s", len(components), mods_directory)
    return components
