# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Converter configuration.

Lookup order for the config file:
1. Explicit path argument
2. $JOBWIRE_CONFIG
3. ~/.jobwire/config.yaml (optional; defaults apply when absent)

Example config.yaml:

    script_args_field: scriptargs
    interpreter_shape: legacy
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from jobwire.errors import ConfigurationError


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "JOBWIRE_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.jobwire/config.yaml")

SCRIPT_ARGS_FIELDS = ("args", "scriptargs")
INTERPRETER_SHAPES = ("current", "legacy")


@dataclass(frozen=True)
class ConverterConfig:
    """Settings shared by every converter in one conversion call.

    Attributes:
        script_args_field: Wire field written for script_file_args
        interpreter_shape: "current" writes a flat scriptInterpreter string plus
            interpreterArgsQuoted; "legacy" writes the nested object
        map_entry_tag: Element name of XML map entries
        map_key_attr: Attribute holding an XML map entry's key
        map_value_attr: Attribute holding an XML map entry's value
    """
    script_args_field: str = "args"
    interpreter_shape: str = "current"
    map_entry_tag: str = "entry"
    map_key_attr: str = "key"
    map_value_attr: str = "value"

    def __post_init__(self):
        if self.script_args_field not in SCRIPT_ARGS_FIELDS:
            raise ConfigurationError(
                f"script_args_field must be one of {SCRIPT_ARGS_FIELDS}, "
                f"got {self.script_args_field!r}"
            )
        if self.interpreter_shape not in INTERPRETER_SHAPES:
            raise ConfigurationError(
                f"interpreter_shape must be one of {INTERPRETER_SHAPES}, "
                f"got {self.interpreter_shape!r}"
            )
        for name in ("map_entry_tag", "map_key_attr", "map_value_attr"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(f"{name} must be a non-empty string")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConverterConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**data)


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Return the config file location after applying the lookup order."""
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_config(path: Optional[Union[str, Path]] = None) -> ConverterConfig:
    """Load converter configuration from YAML.

    Args:
        path: Config file path; falls back to $JOBWIRE_CONFIG, then the default

    Returns:
        ConverterConfig (all defaults when the default file does not exist)

    Raises:
        FileNotFoundError: If an explicitly named config file does not exist
        ConfigurationError: If the file is not valid YAML or has bad values
    """
    explicit = bool(path) or bool(os.environ.get(CONFIG_ENV_VAR))
    config_path = resolve_config_path(path)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.debug(f"No config at {config_path}, using defaults")
        return ConverterConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Top-level config in {config_path} must be a mapping")

    logger.debug(f"Loaded converter config from {config_path}")
    return ConverterConfig.from_dict(data)
