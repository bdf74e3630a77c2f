"""
Configuration utility functions
"""

from pathlib import Path
from typing import Any

import yaml


def load_yaml(filepath: str) -> dict[str, Any]:
    """
    Load YAML file and return as dictionary

    Args:
        filepath: Path to YAML file (relative or absolute)

    Returns:
        Dictionary with YAML data (empty dict for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If YAML is invalid

    Example:
        >>> config = load_yaml("config/providers/pipeline.yaml")
        >>> print(config['candles']['interval'])
        1m
    """
    path = Path(filepath)

    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {filepath}")

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_yaml_safe(filepath: str) -> dict[str, Any]:
    """
    Load YAML file with fallback to empty dict if file doesn't exist

    Example:
        >>> config = load_yaml_safe("config/providers/optional.yaml")
        >>> # Returns {} if file doesn't exist
    """
    try:
        return load_yaml(filepath)
    except (FileNotFoundError, yaml.YAMLError):
        return {}


def get_nested(config: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Walk nested YAML sections, returning default on the first missing key

    Example:
        >>> get_nested({"signals": {"rsi": {"oversold": 35}}}, "signals", "rsi", "oversold")
        35
        >>> get_nested({}, "signals", "rsi", "oversold", default=30)
        30
    """
    node: Any = config
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return default if node is None else node
