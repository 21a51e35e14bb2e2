"""Configuration management utilities."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)


def load_config(config_path) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file (str or Path)

    Returns:
        Dictionary containing configuration (empty dict for an empty file)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.debug(f"Loaded config keys: {list(config.keys())}")

    return config


def merge_config(
    base: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Deep-merge override values onto a base configuration.

    Nested dicts are merged key by key; any other value (including lists)
    replaces the base value. Neither input is modified.

    Args:
        base: Base configuration
        overrides: Partial configuration to apply on top (may be None)

    Returns:
        New merged dictionary
    """
    merged = copy.deepcopy(dict(base))

    if not overrides:
        return merged

    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged
