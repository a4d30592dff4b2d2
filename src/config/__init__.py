"""
Configuration Module for postbox.

This module provides configuration loading and management for the postbox
service. Configuration is loaded from config.yml and supports Docker secrets.

Usage:
    >>> from config import load_config
    >>> from config.settings import Settings
    >>> config = load_config()
    >>> settings = Settings.from_config(config)
    >>> settings.records_path
    PosixPath('data/blogs.json')
"""
import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from config.yml file.

    Args:
        config_path: Path to config.yml file. If None, looks in current directory
                    and parent directories.

    Returns:
        Dictionary containing configuration settings

    Example:
        >>> config = load_config()
        >>> quality = config.get("images", {}).get("quality", 25)
    """
    if config_path is None:
        config_path = os.environ.get("POSTBOX_CONFIG")

    if config_path is None:
        # Try to find config.yml in current directory or parent directories
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            candidate = parent / "config.yml"
            if candidate.exists():
                config_path = str(candidate)
                break

        # If still not found, check the project root (where this file is located)
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            candidate = project_root / "config.yml"
            if candidate.exists():
                config_path = str(candidate)

    if config_path is None:
        logger.warning("config.yml not found, using default configuration")
        return get_default_config()

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
            if not isinstance(config, dict):
                logger.warning("Configuration root must be a mapping, using default configuration")
                return get_default_config()
            _fill_missing_sections(config)
            logger.info(f"Loaded configuration from {config_path}")
            return config
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {config_path}")
        return get_default_config()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        return get_default_config()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration when config.yml is not available.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "cors": {
            "enabled": False,
            "origins": []
        },
        "http": {
            "url_prefix": ""
        },
        "storage": {
            "data_dir": "./data",
            "records_file": "blogs.json",
            "images_dir": "images"
        },
        "images": {
            "quality": 25,
            "max_bytes": 1024 * 1024,
            "max_additional": 5
        },
        "tokens": {
            "secret_key_file": "/run/secrets/postbox_secret_key",
            "expiry_seconds": 300,
            "algorithm": "HS256"
        }
    }


def _fill_missing_sections(config: Dict[str, Any]) -> None:
    """Add default values for sections absent from config.yml (in place)."""
    for section, defaults in get_default_config().items():
        value = config.get(section)
        if value is None:
            config[section] = defaults
        elif not isinstance(value, dict):
            logger.warning(f"Config section '{section}' must be a mapping; using defaults")
            config[section] = defaults
        else:
            for key, default in defaults.items():
                value.setdefault(key, default)


def read_secret_file(filepath: str) -> Optional[str]:
    """Read a Docker secret from a file.

    Docker secrets are mounted as files in /run/secrets/ directory.
    This function reads the content of the secret file.

    Args:
        filepath: Path to the secret file

    Returns:
        Content of the secret file (stripped of whitespace), or None if file doesn't exist

    Example:
        >>> key = read_secret_file("/run/secrets/postbox_secret_key")
    """
    try:
        with open(filepath, "r") as f:
            return f.read().strip()
    except FileNotFoundError:
        logger.debug(f"Secret file not found: {filepath}")
        return None
    except OSError as e:
        logger.error(f"Error reading secret file {filepath}: {e}")
        return None
