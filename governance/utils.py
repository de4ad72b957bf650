import json
import os
from pathlib import Path

import click
import yaml
from ape import networks

from governance.constants import LOCAL_NETWORKS
from governance.errors import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    try:
        with open(filepath, "r") as file:
            return yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigurationError(f"File not found: {filepath}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {filepath}: {e}")


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    try:
        with open(filepath, "r") as file:
            return json.load(file)
    except FileNotFoundError:
        raise ConfigurationError(f"File not found: {filepath}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed JSON in {filepath}: {e}")


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def get_chain_id() -> int:
    return networks.provider.network.chain_id


def check_infura_plugin() -> None:
    """Runs through an Infura provider need the plugin and an API key."""
    if is_local_network() or networks.provider.name != "infura":
        return
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES as key_names
    except ImportError:
        raise ConfigurationError("The ape-infura plugin is required for Infura networks")
    if not any(os.environ.get(name) for name in key_names):
        raise ConfigurationError(f"No Infura API key set; export one of {', '.join(key_names)}")


def check_plugins() -> None:
    click.echo("Checking plugins...")
    check_infura_plugin()
