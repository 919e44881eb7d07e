# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Plugin blocks - typed plugins with free-form string configuration.

Wire shapes:
- Step / notification plugin: {"type": ..., "configuration": {...}}
- Log filter plugin:          {"type": ..., "config": {...}}
- Global log filters:         sequence.pluginConfig.LogFilter = [log filter, ...]
- Lifecycle plugins:          plugins.ExecutionLifecycle = {type: {...}, ...}
- Project schedules:          schedules = [{"name": ..., "jobParams": ...}, ...]

Configuration maps are JSON objects. Exported documents occasionally carry
them as XML fragments instead; those are decoded with the map codec.
"""

import logging
from typing import Any, Dict, List, Optional

from jobwire.converters.context import ConversionContext
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, fields_from_wire, fields_to_wire
from jobwire.mapcodec import decode_element_map_xml, decode_map_xml, map_from_json, map_to_json
from jobwire.schemas import Plugin, ProjectSchedule


logger = logging.getLogger(__name__)

PROJECT_SCHEDULE_FIELDS = (
    FieldSpec("name", "name"),
    FieldSpec("job_options", "jobParams"),
)


# =============================================================================
# Single plugins
# =============================================================================

def plugin_to_wire(
    plugin: Plugin,
    ctx: ConversionContext,
    config_key: str = "configuration",
) -> Optional[Dict[str, Any]]:
    """Convert one plugin; a plugin without a type is skipped."""
    if not plugin.type:
        ctx.skip("plugin has no type")
        return None
    return {"type": plugin.type, config_key: map_to_json(plugin.config)}


def plugin_from_wire(
    wire: Any,
    ctx: ConversionContext,
    config_key: str = "configuration",
    element_map: bool = False,
) -> Optional[Plugin]:
    """Read one plugin object; a plugin without a type is skipped.

    Raises:
        MalformedWireInput: If wire is not an object
    """
    if not isinstance(wire, dict):
        raise MalformedWireInput(
            f"plugin must be an object, got {type(wire).__name__}", path=ctx.path
        )
    plugin_type = wire.get("type")
    if not plugin_type:
        ctx.skip("plugin has no type")
        return None
    if not isinstance(plugin_type, str):
        raise MalformedWireInput("plugin type must be a string", path=ctx.at("type").path)
    config = plugin_config_from_wire(wire.get(config_key), ctx.at(config_key), element_map)
    return Plugin(type=plugin_type, config=config)


def plugin_config_from_wire(
    raw: Any,
    ctx: ConversionContext,
    element_map: bool = False,
) -> Dict[str, str]:
    """Read a configuration map given as a JSON object or an XML fragment."""
    if isinstance(raw, str) and raw.lstrip().startswith("<"):
        if element_map:
            return decode_element_map_xml(raw, "config", path=ctx.path)
        cfg = ctx.config
        return decode_map_xml(
            raw,
            "configuration",
            entry_tag=cfg.map_entry_tag,
            key_attr=cfg.map_key_attr,
            value_attr=cfg.map_value_attr,
            path=ctx.path,
        )
    return map_from_json(raw, ctx.path)


def _as_list(raw: Any, ctx: ConversionContext) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, list):
        return raw
    raise MalformedWireInput(f"expected a list, got {type(raw).__name__}", path=ctx.path)


# =============================================================================
# Log filters
# =============================================================================

def log_filters_to_wire(plugins: List[Plugin], ctx: ConversionContext) -> List[Dict[str, Any]]:
    """Convert log filter plugins to [{"type", "config"}, ...]."""
    result = []
    for i, plugin in enumerate(plugins):
        wire = plugin_to_wire(plugin, ctx.at(i), config_key="config")
        if wire is not None:
            result.append(wire)
    return result


def log_filters_from_wire(raw: Any, ctx: ConversionContext) -> List[Plugin]:
    result = []
    for i, item in enumerate(_as_list(raw, ctx)):
        plugin = plugin_from_wire(item, ctx.at(i), config_key="config", element_map=True)
        if plugin is not None:
            result.append(plugin)
    return result


def global_log_filters_to_wire(
    plugins: List[Plugin],
    ctx: ConversionContext,
    sequence: Dict[str, Any],
) -> None:
    """Write job-wide log filters into the sequence object."""
    filters = log_filters_to_wire(plugins, ctx.at("global_log_filter"))
    if filters:
        sequence["pluginConfig"] = {"LogFilter": filters}


def global_log_filters_from_wire(sequence: Dict[str, Any], ctx: ConversionContext) -> List[Plugin]:
    plugin_config = sequence.get("pluginConfig")
    if plugin_config is None:
        return []
    if not isinstance(plugin_config, dict):
        raise MalformedWireInput("pluginConfig must be an object", path=ctx.at("pluginConfig").path)
    return log_filters_from_wire(
        plugin_config.get("LogFilter"), ctx.at("pluginConfig", "LogFilter")
    )


# =============================================================================
# Execution lifecycle plugins
# =============================================================================

def lifecycle_plugins_to_wire(
    plugins: List[Plugin],
    ctx: ConversionContext,
) -> Optional[Dict[str, Dict[str, str]]]:
    """Convert lifecycle plugins to a map of plugin type → configuration.

    Raises:
        InvariantViolation: If two plugins share a type
    """
    result: Dict[str, Dict[str, str]] = {}
    for i, plugin in enumerate(plugins):
        plugin_ctx = ctx.at("execution_lifecycle_plugin", i)
        if not plugin.type:
            plugin_ctx.skip("plugin has no type")
            continue
        if plugin.type in result:
            raise InvariantViolation(
                f"duplicate execution lifecycle plugin type '{plugin.type}'",
                path=plugin_ctx.path,
            )
        result[plugin.type] = map_to_json(plugin.config)
    return result or None


def lifecycle_plugins_from_wire(raw: Any, ctx: ConversionContext) -> List[Plugin]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise MalformedWireInput("ExecutionLifecycle must be an object", path=ctx.path)
    return [
        Plugin(type=plugin_type, config=plugin_config_from_wire(raw[plugin_type], ctx.at(plugin_type)))
        for plugin_type in sorted(raw)
    ]


# =============================================================================
# Project schedules
# =============================================================================

def project_schedules_to_wire(
    schedules: List[ProjectSchedule],
    ctx: ConversionContext,
) -> List[Dict[str, Any]]:
    result = []
    for i, schedule in enumerate(schedules):
        if not schedule.name:
            ctx.at("project_schedule", i).skip("project schedule has no name")
            continue
        result.append(fields_to_wire(schedule, PROJECT_SCHEDULE_FIELDS))
    return result


def project_schedules_from_wire(raw: Any, ctx: ConversionContext) -> List[ProjectSchedule]:
    result = []
    for i, item in enumerate(_as_list(raw, ctx)):
        item_ctx = ctx.at(i)
        if not isinstance(item, dict):
            raise MalformedWireInput("project schedule must be an object", path=item_ctx.path)
        values = fields_from_wire(item, PROJECT_SCHEDULE_FIELDS, item_ctx.path)
        if not values.get("name"):
            item_ctx.skip("project schedule has no name")
            continue
        result.append(ProjectSchedule(**values))
    return result
