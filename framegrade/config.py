"""
Configuration management for FrameGrade

Settings live in a YAML file. Anything the file leaves out comes from
get_default_config(), and ${VAR} references are expanded from the environment.
"""

import yaml
import os
import re
import copy
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

_ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')

# (dot path, smallest accepted value)
_LOWER_BOUNDS = (
    ('grading.clarity_radius', 1),
    ('grading.lut_export_size', 2),
    ('lut_cache.max_items', 1),
    ('masks.curve_segments', 1),
    ('masks.import_softness', 0.0),
)


def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """Expand ${VAR} references; unknown variables are left as written."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _ENV_REFERENCE.sub(lambda m: os.getenv(m.group(1), m.group(0)), obj)
    return obj


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay `override` on a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace numeric settings that are unusable with their defaults

    Args:
        config: Merged configuration, updated in place

    Returns:
        The same dictionary
    """
    defaults = get_default_config()
    for key_path, lower in _LOWER_BOUNDS:
        value = get_config_value(config, key_path)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < lower:
            fallback = get_config_value(defaults, key_path)
            logger.warning(f"Invalid value for {key_path}: {value!r}, using {fallback}")
            update_config_value(config, key_path, fallback)
    return config


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Args:
        config_path: Path to config file. If None, uses the packaged config.yaml

    Returns:
        Configuration dictionary, defaults on a missing or unreadable file
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return get_default_config()

    if not isinstance(overrides, dict):
        logger.error(f"Config file {config_path} must hold a mapping, got {type(overrides).__name__}")
        return get_default_config()

    logger.info(f"Loaded configuration from {config_path}")
    return validate_config(_merge(get_default_config(), _expand_env_vars(overrides)))


def get_default_config() -> Dict[str, Any]:
    return {
        'grading': {
            'clarity_radius': 5,
            'lut_export_size': 33,
        },
        'lut_cache': {
            'max_items': 16,
        },
        'masks': {
            'import_softness': 10.0,
            'curve_segments': 16,
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }


def save_config(config: Dict[str, Any], config_path: Path) -> bool:
    """Write the configuration as YAML; returns False when the file cannot be written."""
    try:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, indent=2)
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        return False
    logger.info(f"Saved configuration to {config_path}")
    return True


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Look up a nested value by dot path, e.g. 'lut_cache.max_items'

    Returns `default` when any segment of the path is missing.
    """
    value = config
    try:
        for key in key_path.split('.'):
            value = value[key]
    except (KeyError, TypeError):
        return default
    return value


def update_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set a nested value by dot path, creating intermediate sections."""
    *parents, leaf = key_path.split('.')
    section = config
    for key in parents:
        section = section.setdefault(key, {})
    section[leaf] = value
