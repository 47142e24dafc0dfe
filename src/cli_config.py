"""CLI configuration overrides for runtime tunables (registry URL, timeouts, concurrency).

Kept out of modkeeper.py to keep the entrypoint slim. Applies YAML config,
then environment variables, then CLI flags (highest precedence), and never
raises to avoid breaking the CLI.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from constants import Constants, _load_yaml_config

logger = logging.getLogger(__name__)


def _apply_yaml(config: Dict[str, Any]) -> None:
    registry = config.get("registry") or {}
    if not isinstance(registry, dict):
        logger.warning("Ignoring 'registry' config: expected a mapping")
        registry = {}
    if registry.get("base_url"):
        Constants.REGISTRY_URL_MODRINTH = str(registry["base_url"])
    if registry.get("user_agent"):
        Constants.USER_AGENT = str(registry["user_agent"])
    if registry.get("timeout") is not None:
        Constants.REQUEST_TIMEOUT = int(registry["timeout"])
    if registry.get("retries") is not None:
        Constants.HTTP_RETRY_MAX = max(1, int(registry["retries"]))
    if config.get("concurrency") is not None:
        Constants.MAX_CONCURRENCY = max(1, int(config["concurrency"]))


def apply_config_overrides(args) -> None:
    """Apply YAML, environment and CLI overrides onto ``Constants``.

    Intentionally defensive: a bad value is logged and skipped.
    """
    try:
        _apply_yaml(_load_yaml_config(getattr(args, "CONFIG", None)))
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid config value: %s", exc)

    try:
        env_url = os.environ.get("MODKEEPER_REGISTRY_URL")
        if env_url and env_url.strip():
            Constants.REGISTRY_URL_MODRINTH = env_url.strip()
        env_agent = os.environ.get("MODKEEPER_USER_AGENT")
        if env_agent and env_agent.strip():
            Constants.USER_AGENT = env_agent.strip()

        if getattr(args, "REGISTRY_URL", None):
            Constants.REGISTRY_URL_MODRINTH = args.REGISTRY_URL
        if getattr(args, "CONCURRENCY", None) is not None:
            Constants.MAX_CONCURRENCY = max(1, int(args.CONCURRENCY))
    except Exception:  # pylint: disable=broad-exception-caught
        # Defensive: never break CLI on config overrides
        pass
