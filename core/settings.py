"""Wizard settings: built-in defaults, overlaid by config/settings.yaml, then by env vars."""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
SETTINGS_FILE = "settings.yaml"

_DEFAULTS: dict[str, Any] = {
    "api": {
        "base_url": "https://n8n.lumendigital.com.br/webhook",
        "timeout": 30.0,
        # Keyring entry / env var that holds the session token
        "token_secret": "AGENT_API_TOKEN",
    },
    "batch": {
        "id_resolution_delay": 1.0,
        "principal_default_name": "Recepção - Agente Principal",
    },
    "single": {
        "confirm_retries": 5,
        "confirm_delay": 1.0,
    },
    "editor": {
        "trigger_char": "/",
        "palette_height": 400,
        "viewport_margin": 10,
    },
    "templates": {
        # Empty: the templates bundled with the onboarding package
        "dir": "",
    },
    "logging": {
        "file": "logs/wizard.log",
        "level": "INFO",
        "log_to_console": False,
        "max_bytes": 10 * 1024 * 1024,
        "backup_count": 3,
    },
}

# Env var -> dot path. Applied last, so a .env file can point the wizard elsewhere.
ENV_OVERRIDES: dict[str, str] = {
    "AGENT_WIZARD_BASE_URL": "api.base_url",
    "AGENT_WIZARD_LOG_LEVEL": "logging.level",
}

_cached: dict[str, Any] | None = None


def get_default_settings() -> dict[str, Any]:
    return copy.deepcopy(_DEFAULTS)


def get_setting(settings: dict[str, Any], path: str, default: Any = None) -> Any:
    """Nested lookup by dot path, e.g. get_setting(s, "batch.id_resolution_delay")."""
    node: Any = settings
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def _overlay(target: dict[str, Any], values: dict[str, Any]) -> None:
    """Recursively copy values onto target; None leaves the default in place."""
    for key, value in values.items():
        if value is None:
            continue
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _overlay(current, value)
        else:
            target[key] = value


def _set_path(settings: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = settings
    for key in parents:
        node = node.setdefault(key, {})
    node[leaf] = value


def _read_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        # Runs before logging is configured; the warning reaches stderr
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top level is not a mapping", path)
        return {}
    return data


def load_settings(config_dir: Path | None = None) -> dict[str, Any]:
    """Settings for this process. Computed once; reload_settings() forces a re-read."""
    global _cached
    if _cached is None:
        settings = get_default_settings()
        _overlay(settings, _read_file((config_dir or CONFIG_DIR) / SETTINGS_FILE))
        for var, path in ENV_OVERRIDES.items():
            value = os.environ.get(var)
            if value:
                _set_path(settings, path, value)
        _cached = settings
    return _cached


def reload_settings() -> None:
    global _cached
    _cached = None
