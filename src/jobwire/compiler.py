# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Compiler - Build the typed config tree from a YAML job definition.

The YAML mirrors the config tree attribute for attribute:

    name: nightly-backup
    project_name: ops
    schedule: "0 0 2 ? * * *"
    command:
      - shell_command: /usr/local/bin/backup
        error_handler:
          shell_command: /usr/local/bin/alert
    notification:
      - type: on_failure
        email:
          recipients: [ops@example.com]

A nested block may be written as a single mapping or as a list of mappings.
Validation happens once here: unknown attributes and wrong scalar types raise
CompileError naming the attribute path, so converters can trust the tree.
"""

import logging
import typing
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from jobwire.errors import CompileError
from jobwire.schemas import Job


logger = logging.getLogger(__name__)


def load_job_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a job definition YAML file."""
    yaml_path = Path(path).expanduser()
    if not yaml_path.exists():
        raise CompileError(f"Job definition not found: {yaml_path}")
    try:
        data = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CompileError(f"Failed to parse YAML in {yaml_path}: {e}") from e
    if not isinstance(data, dict):
        raise CompileError(f"Job definition must be a mapping: {yaml_path}")
    return data


def compile_job(job_def: Dict[str, Any]) -> Job:
    """
    Compile a job definition dict → Job config tree.

    Args:
        job_def: Parsed YAML mapping (the job's attributes at top level)

    Returns:
        Job ready for to_wire_document

    Raises:
        CompileError: On unknown attributes or wrong value types
    """
    job = _build(Job, job_def, "job")
    logger.debug(f"Compiled job '{job.name}' with {len(job.command)} commands")
    return job


def _build(cls: type, data: Any, path: str) -> Any:
    if not isinstance(data, dict):
        raise CompileError(f"{path}: expected a mapping, got {type(data).__name__}")

    hints = typing.get_type_hints(cls)
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise CompileError(f"{path}: unknown attribute(s) {unknown}")

    values = {}
    for name, raw in data.items():
        if raw is None:
            continue
        values[name] = _coerce(hints[name], raw, f"{path}.{name}")
    return cls(**values)


def _coerce(hint: Any, raw: Any, path: str) -> Any:
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is Union:
        # Optional[X]
        inner = [a for a in args if a is not type(None)]
        return _coerce(inner[0], raw, path)

    if origin is list:
        item_type = args[0]
        items = raw if isinstance(raw, list) else [raw]
        return [_coerce(item_type, item, f"{path}[{i}]") for i, item in enumerate(items)]

    if origin is dict:
        if not isinstance(raw, dict):
            raise CompileError(f"{path}: expected a mapping, got {type(raw).__name__}")
        return {str(k): _scalar_string(v, f"{path}.{k}") for k, v in raw.items()}

    if is_dataclass(hint):
        return _build(hint, raw, path)

    if hint is bool:
        if not isinstance(raw, bool):
            raise CompileError(f"{path}: expected true or false, got {raw!r}")
        return raw

    if hint is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise CompileError(f"{path}: expected an integer, got {raw!r}")
        return raw

    return _scalar_string(raw, path)


def _scalar_string(raw: Any, path: str) -> str:
    # YAML reads `timeout: 30` as an int; string attributes accept any scalar
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (str, int, float)):
        return str(raw)
    raise CompileError(f"{path}: expected a string, got {type(raw).__name__}")


# =============================================================================
# Config tree → plain data
# =============================================================================

def job_to_dict(job: Job) -> Dict[str, Any]:
    """Convert a config tree back to plain data for YAML output.

    Unset attributes and empty blocks are left out; defaults that differ from
    None (execution_enabled and friends) are kept.
    """
    return _to_plain(job)


def _to_plain(obj: Any) -> Any:
    if is_dataclass(obj):
        result = {}
        for f in fields(obj):
            value = _to_plain(getattr(obj, f.name))
            if value is None or value == [] or value == {}:
                continue
            result[f.name] = value
        return result
    if isinstance(obj, list):
        return [_to_plain(item) for item in obj]
    if isinstance(obj, dict):
        return dict(obj)
    return obj


def dump_job_yaml(job: Job) -> str:
    """Serialize a config tree as YAML in attribute order."""
    return yaml.safe_dump(job_to_dict(job), sort_keys=False, default_flow_style=False)
