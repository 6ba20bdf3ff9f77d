"""
Configuration loading for router deployments.

Loads YAML settings, applies environment overrides and validates the result
against the schema so a router is never built from a half-valid file.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .config_schema import RouterSettings, validate_router_settings
from .exceptions import ConfigurationError

# Environment variable -> settings key
ENV_OVERRIDES = {
    "BACKRUN_ADMIN": "admin",
    "BACKRUN_DEFAULT_ADMIN_SHARE_BPS": "default_admin_share_bps",
    "BACKRUN_MAX_ROUTE_HOPS": "max_route_hops",
    "BACKRUN_LOG_LEVEL": "log_level",
}


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    return config_dict


def apply_env_overrides(
    config_dict: Dict[str, Any], environ: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Return a copy of ``config_dict`` with BACKRUN_* environment values applied."""
    environ = os.environ if environ is None else environ
    merged = dict(config_dict)
    for env_key, field in ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value:
            merged[field] = value
    return merged


def load_router_settings(
    config_path: Optional[Union[str, Path]] = None,
    use_env: bool = True,
    environ: Optional[Dict[str, str]] = None,
) -> RouterSettings:
    """
    Load router settings from YAML and/or the environment.

    Args:
        config_path: Optional YAML file; when omitted settings come from the environment only
        use_env: Apply BACKRUN_* overrides (after loading a .env file if present)
        environ: Mapping used instead of ``os.environ`` (tests)

    Returns:
        Validated RouterSettings

    Raises:
        ConfigurationError: If the file cannot be loaded or fails validation
    """
    config_dict: Dict[str, Any] = {}
    if config_path is not None:
        config_dict = load_yaml_config(config_path)

    if use_env:
        if environ is None:
            load_dotenv()
        config_dict = apply_env_overrides(config_dict, environ)

    return validate_router_settings(config_dict)
