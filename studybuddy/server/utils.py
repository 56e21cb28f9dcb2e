"""Utility functions for proxy configuration.

This module provides helpers for YAML loading and merging command-line
overrides into a ProxyConfig.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from .config import ProxyConfig

# Mapping from CLI argument names to config paths
CLI_ARG_MAPPING = {
    'host': 'server.host',
    'port': 'server.port',
    'endpoint': 'server.endpoint',
    'gateway_url': 'gateway.url',
    'model': 'gateway.model',
    'api_key_env': 'gateway.api_key_env',
    'temperature': 'generation.temperature',
    'top_p': 'generation.top_p',
}


def load_yaml_config(yaml_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        yaml_path: Path to the YAML configuration file

    Returns:
        Dictionary containing the configuration data

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the YAML is empty or invalid
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {yaml_path}: {e}")

    if data is None:
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {yaml_path}")

    return data


def load_proxy_config_from_yaml(yaml_path: str) -> ProxyConfig:
    data = load_yaml_config(yaml_path)
    return ProxyConfig(**data)


def merge_configs(base_config: ProxyConfig, cli_args: Dict[str, Any]) -> ProxyConfig:
    """Merge CLI arguments into base configuration.

    Only arguments that were actually given (not None) override the base.

    Returns:
        New ProxyConfig with merged values
    """
    config_dict = base_config.model_dump()

    for arg_name, value in cli_args.items():
        if value is not None and arg_name in CLI_ARG_MAPPING:
            keys = CLI_ARG_MAPPING[arg_name].split('.')
            current = config_dict
            for key in keys[:-1]:
                current = current.setdefault(key, {})
            current[keys[-1]] = value

    return ProxyConfig(**config_dict)
