"""3-layer configuration for an ISMS roadmap workspace.

Loads and merges configuration from:
1. Default settings (built-in)
2. Workspace config (.isms-roadmap/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .. import __version__

logger = logging.getLogger("isms_roadmap.config")

WORKSPACE_DIR = ".isms-roadmap"

DEFAULT_CONFIG: dict = {
    "organization": {
        "name": "",
        "owner": "",
    },
    "questionnaire": {
        "bank": "iso27001",
    },
    "roadmap": {
        "target_maturity_level": "Avancé",
        "estimated_timeline": "6-12 months",
        "total_estimated_cost": "Medium",
    },
    "storage": {
        "path": "records",
    },
    "logging": {
        "level": "WARNING",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def workspace_dir(project_path: Path) -> Path:
    return project_path / WORKSPACE_DIR


def load_project_config(project_path: Path) -> dict:
    """Load workspace configuration from .isms-roadmap/config.yaml."""
    config_path = workspace_dir(project_path) / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    return data


def get_effective_config(
    project_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a workspace."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path)
    if project_config:
        config = deep_merge(config, project_config)

    env_owner = os.environ.get("ISMS_OWNER", "")
    if env_owner:
        config = deep_merge(config, {"organization": {"owner": env_owner}})

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_project_path"] = str(project_path)
    return config


def get_storage_path(config: dict) -> Path:
    project_path = Path(config.get("_project_path", "."))
    storage = Path(config.get("storage", {}).get("path") or "records")
    if storage.is_absolute():
        return storage
    return workspace_dir(project_path) / storage


def initialize_workspace(project_path: Path, organization: str = "") -> Path:
    """Create the .isms-roadmap directory with a starter config."""
    ws = workspace_dir(project_path)
    (ws / "records").mkdir(parents=True, exist_ok=True)

    config_path = ws / "config.yaml"
    if not config_path.exists():
        config_path.write_text(
            "# ISMS roadmap workspace configuration\n"
            "\n"
            f"isms_roadmap_version: \"{__version__}\"\n"
            "\n"
            "organization:\n"
            f'  name: "{organization or project_path.name}"\n'
            '  owner: ""\n'
            "\n"
            "roadmap:\n"
            "  target_maturity_level: Avancé\n"
            '  estimated_timeline: "6-12 months"\n'
            "  total_estimated_cost: Medium\n",
            encoding="utf-8",
        )
    return ws
