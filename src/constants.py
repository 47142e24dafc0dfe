"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3
    CANCELLED = 130


class Loaders(Enum):
    """Mod loaders supported by the program.

    Args:
        Enum (string): Loader name as used by the registry.
    """

    FABRIC = "fabric"
    QUILT = "quilt"
    FORGE = "forge"
    NEOFORGE = "neoforge"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_MODRINTH = "https://api.modrinth.com/v2/"
    USER_AGENT = "modkeeper/0.4.0 (+https://github.com/modkeeper/modkeeper)"
    SUPPORTED_LOADERS = [loader.value for loader in Loaders]
    MANIFEST_FILE = "modlist.json"
    LOCKFILE_FILE = "modlist-lock.json"
    DEFAULT_MODS_FOLDER = "mods"
    ARCHIVE_GLOB = "*.jar"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300

    # Bounded worker pool for independent registry lookups (metadata backfill)
    MAX_CONCURRENCY = 4

    # Ids that name the platform itself rather than an installable mod
    LOADER_COMPONENT_IDS = ["fabricloader", "quilt_loader", "forge", "neoforge"]
    RUNTIME_COMPONENT_ID = "java"
    GAME_COMPONENT_ID = "minecraft"
    PLACEHOLDER_COMPONENT_ID = "another-mod"

    CONFIG_FILE_NAMES = ["modkeeper.yml", "modkeeper.yaml"]
    USER_CONFIG_PATH = os.path.join("~", ".config", "modkeeper", "config.yml")


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file.

    Looks at an explicit path first, then ``modkeeper.yml`` in the current
    directory, then the per-user config. Missing or unreadable files yield
    an empty dict.
    """
    candidates = [path] if path else [
        *Constants.CONFIG_FILE_NAMES,
        os.path.expanduser(Constants.USER_CONFIG_PATH),
    ]
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            import yaml  # pylint: disable=import-outside-toplevel

            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
            if isinstance(data, dict):
                return data
            logging.getLogger(__name__).warning(
                "Ignoring config %s: top level is not a mapping", candidate
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logging.getLogger(__name__).warning("Failed to load config %s: %s", candidate, exc)
        return {}
    return {}
