"""Synthetic components describing the platform a mod set runs on."""

from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from constants import Constants

from .models import GenericComponent, InstalledComponent

logger = logging.getLogger(__name__)


def detect_runtime_version() -> Optional[str]:
    """Return the installed Java version, or None when it cannot be determined.

    ``java --version`` prints e.g. ``openjdk 21.0.2 2024-01-16``; the second
    whitespace-separated token is the version.
    """
    try:
        result = subprocess.run(
            ["java", "--version"],
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.debug("Java runtime detection failed: %s", exc)
        return None
    if result.returncode != 0:
        return None
    tokens = (result.stdout or "").split()
    return tokens[1] if len(tokens) > 1 else None


def platform_components(game_version: str, runtime_version: Optional[str] = None) -> List[InstalledComponent]:
    """Return the game (and, when known, the Java runtime) as installed components."""
    components = [
        InstalledComponent(
            file_name=None,
            component=GenericComponent(id=Constants.GAME_COMPONENT_ID, version=game_version, name="Minecraft"),
        )
    ]
    if runtime_version:
        components.append(
            InstalledComponent(
                file_name=None,
                component=GenericComponent(id=Constants.RUNTIME_COMPONENT_ID, version=runtime_version, name="Java"),
            )
        )
    return components
