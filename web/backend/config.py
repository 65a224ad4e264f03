#!/usr/bin/env python3
"""
Configuration access for the placement web API.

The API shares `config.yaml` (and its environment overrides) with the
scheduler CLI; see core/config_loader.py for the sections.
"""

import os
from pathlib import Path
from functools import lru_cache

from core.config_loader import AppConfig, load_config


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    `PLACEMENT_CONFIG` points at an alternative YAML file.

    Returns:
        AppConfig: The application configuration.
    """
    config_path = os.environ.get("PLACEMENT_CONFIG", str(get_project_root() / "config.yaml"))
    return load_config(config_path)
