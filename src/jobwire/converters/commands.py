# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Command sequence converters.

A command is exactly one of: shell command, inline script, script URL,
script file, job reference, step plugin or node-step plugin. Step and
node-step plugins share the command-level `type` / `configuration` slot and
are told apart by `nodeStep`.

Wire shape of one command:

    {
      "description": "...",
      "exec": "...", "script": "...", "scripturl": "...", "scriptfile": "...",
      "args": "...", "fileExtension": "...",
      "scriptInterpreter": "sudo", "interpreterArgsQuoted": true,
      "jobref": {..., "nodefilters": {..., "dispatch": {...}}},
      "type": "...", "configuration": {...}, "nodeStep": false,
      "errorhandler": {<same fields, no nesting>},
      "plugins": {"LogFilter": [...]}
    }
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from jobwire.converters.context import ConversionContext
from jobwire.converters.plugins import log_filters_from_wire, log_filters_to_wire, plugin_config_from_wire
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, FieldType, Presence, fields_from_wire, fields_to_wire
from jobwire.mapcodec import map_to_json
from jobwire.schemas import (
    Command,
    CommandPlugins,
    Dispatch,
    ErrorHandler,
    JobReference,
    NodeFilter,
    Plugin,
    ScriptInterpreter,
)


logger = logging.getLogger(__name__)

STEP_FIELDS = (
    FieldSpec("description", "description"),
    FieldSpec("shell_command", "exec"),
    FieldSpec("inline_script", "script"),
    FieldSpec("script_url", "scripturl"),
    FieldSpec("script_file", "scriptfile"),
    FieldSpec("file_extension", "fileExtension"),
    FieldSpec("expand_token_in_script_file", "expandTokenInScriptFile", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("keep_going_on_success", "keepgoingOnSuccess", FieldType.BOOL, Presence.NON_NULL),
)

# Write side picks one name from ConverterConfig.script_args_field
SCRIPT_ARGS_READ = FieldSpec("script_file_args", "args", aliases=("scriptargs",))

JOB_REFERENCE_FIELDS = (
    FieldSpec("uuid", "uuid"),
    FieldSpec("name", "name"),
    FieldSpec("group_name", "group"),
    FieldSpec("project_name", "project"),
    FieldSpec("run_for_each_node", "runForEachNode", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("node_step", "nodeStep", FieldType.BOOL_STRING, Presence.NON_NULL),
    FieldSpec("args", "args"),
    FieldSpec("import_options", "importOptions", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("child_nodes", "childNodes", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("fail_on_disable", "failOnDisable", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("ignore_notifications", "ignoreNotifications", FieldType.BOOL, Presence.NON_NULL),
)

NODE_FILTER_FIELDS = (
    FieldSpec("filter", "filter"),
    FieldSpec("exclude_filter", "excludeFilter"),
    FieldSpec("exclude_precedence", "excludePrecedence", FieldType.BOOL, Presence.NON_NULL),
)

DISPATCH_FIELDS = (
    FieldSpec("thread_count", "threadcount", FieldType.INT, Presence.NON_NULL),
    FieldSpec("keep_going", "keepgoing", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("rank_attribute", "rankAttribute"),
    FieldSpec("rank_order", "rankOrder"),
)

LEGACY_INTERPRETER_FIELDS = (
    FieldSpec("invocation_string", "invocationString"),
    FieldSpec("args_quoted", "argsQuoted", FieldType.BOOL, Presence.NON_NULL),
)

CURRENT_INTERPRETER_FIELDS = (
    FieldSpec("invocation_string", "scriptInterpreter"),
    FieldSpec("args_quoted", "interpreterArgsQuoted", FieldType.BOOL, Presence.NON_NULL),
)


# =============================================================================
# Script interpreter
# =============================================================================

@dataclass
class LegacyInterpreterShape:
    """scriptInterpreter: {"invocationString": ..., "argsQuoted": ...}"""
    invocation_string: Optional[str] = None
    args_quoted: Optional[bool] = None


@dataclass
class CurrentInterpreterShape:
    """scriptInterpreter: "..." with interpreterArgsQuoted beside it."""
    invocation_string: Optional[str] = None
    args_quoted: Optional[bool] = None


InterpreterShape = Union[LegacyInterpreterShape, CurrentInterpreterShape]


def resolve_interpreter_shape(wire: Dict[str, Any], ctx: ConversionContext) -> Optional[InterpreterShape]:
    """Work out which interpreter shape a wire command uses, if any."""
    raw = wire.get("scriptInterpreter")
    if raw == "":
        raw = None
    if isinstance(raw, dict):
        return LegacyInterpreterShape(
            **fields_from_wire(raw, LEGACY_INTERPRETER_FIELDS, ctx.at("scriptInterpreter").path)
        )
    if raw is None and wire.get("interpreterArgsQuoted") is None:
        return None
    values = fields_from_wire(wire, CURRENT_INTERPRETER_FIELDS, ctx.path)
    if values.get("invocation_string") == "":
        del values["invocation_string"]
    return CurrentInterpreterShape(**values)


def interpreter_from_wire(wire: Dict[str, Any], ctx: ConversionContext) -> Optional[ScriptInterpreter]:
    shape = resolve_interpreter_shape(wire, ctx)
    if shape is None:
        return None
    return ScriptInterpreter(invocation_string=shape.invocation_string, args_quoted=shape.args_quoted)


def interpreter_to_wire(
    interpreter: ScriptInterpreter,
    ctx: ConversionContext,
    target: Dict[str, Any],
) -> None:
    if ctx.config.interpreter_shape == "legacy":
        legacy = fields_to_wire(interpreter, LEGACY_INTERPRETER_FIELDS)
        if legacy:
            target["scriptInterpreter"] = legacy
    else:
        fields_to_wire(interpreter, CURRENT_INTERPRETER_FIELDS, target)


# =============================================================================
# Job references
# =============================================================================

def job_reference_to_wire(
    ref: JobReference,
    ctx: ConversionContext,
    inherited_node_step: Optional[bool] = None,
) -> Dict[str, Any]:
    """Convert a job reference.

    Args:
        ref: Job reference block
        ctx: Context located at the reference
        inherited_node_step: Value written for nodeStep when ref.node_step is
            unset (error handlers inherit their parent command's kind)
    """
    wire = fields_to_wire(ref, JOB_REFERENCE_FIELDS)
    if ref.node_step is None and inherited_node_step is not None:
        wire["nodeStep"] = "true" if inherited_node_step else "false"

    node_filter = ctx.single(ref.node_filters, "node_filters", "job reference")
    if node_filter is not None:
        filter_ctx = ctx.at("node_filters")
        filters = fields_to_wire(node_filter, NODE_FILTER_FIELDS)
        dispatch = filter_ctx.single(node_filter.dispatch, "dispatch", "node filter")
        if dispatch is not None:
            filters["dispatch"] = fields_to_wire(dispatch, DISPATCH_FIELDS)
        wire["nodefilters"] = filters
    return wire


def job_reference_from_wire(wire: Any, ctx: ConversionContext) -> JobReference:
    if not isinstance(wire, dict):
        raise MalformedWireInput("jobref must be an object", path=ctx.path)
    ref = JobReference(**fields_from_wire(wire, JOB_REFERENCE_FIELDS, ctx.path))

    filters = wire.get("nodefilters")
    if filters is not None:
        filters_ctx = ctx.at("nodefilters")
        if not isinstance(filters, dict):
            raise MalformedWireInput("nodefilters must be an object", path=filters_ctx.path)
        node_filter = NodeFilter(**fields_from_wire(filters, NODE_FILTER_FIELDS, filters_ctx.path))
        dispatch = filters.get("dispatch")
        if dispatch is not None:
            dispatch_ctx = filters_ctx.at("dispatch")
            if not isinstance(dispatch, dict):
                raise MalformedWireInput("dispatch must be an object", path=dispatch_ctx.path)
            node_filter.dispatch = [Dispatch(**fields_from_wire(dispatch, DISPATCH_FIELDS, dispatch_ctx.path))]
        ref.node_filters = [node_filter]
    return ref


# =============================================================================
# Steps (shared by commands and error handlers)
# =============================================================================

def _step_to_wire(
    step: ErrorHandler,
    ctx: ConversionContext,
    parent: str,
    inherited_node_step: Optional[bool] = None,
) -> Dict[str, Any]:
    wire = fields_to_wire(step, STEP_FIELDS)
    fields_to_wire(step, (FieldSpec("script_file_args", ctx.config.script_args_field),), wire)

    interpreter = ctx.single(step.script_interpreter, "script_interpreter", parent)
    if interpreter is not None:
        interpreter_to_wire(interpreter, ctx.at("script_interpreter"), wire)

    ref = ctx.single(step.job, "job", parent)
    if ref is not None:
        wire["jobref"] = job_reference_to_wire(ref, ctx.at("job"), inherited_node_step)

    step_plugin = ctx.single(step.step_plugin, "step_plugin", parent)
    node_step_plugin = ctx.single(step.node_step_plugin, "node_step_plugin", parent)
    if step_plugin is not None and node_step_plugin is not None:
        raise InvariantViolation(
            "step_plugin and node_step_plugin cannot both be set on one step",
            path=ctx.path,
        )
    if step_plugin is not None:
        _step_plugin_to_wire(step_plugin, ctx.at("step_plugin"), False, wire)
    if node_step_plugin is not None:
        _step_plugin_to_wire(node_step_plugin, ctx.at("node_step_plugin"), True, wire)
    return wire


def _step_plugin_to_wire(plugin: Plugin, ctx: ConversionContext, node_step: bool, wire: Dict[str, Any]) -> None:
    if not plugin.type:
        ctx.skip("plugin has no type")
        return
    wire["type"] = plugin.type
    wire["nodeStep"] = node_step
    wire["configuration"] = map_to_json(plugin.config)


def _step_values(wire: Dict[str, Any], ctx: ConversionContext) -> Dict[str, Any]:
    values = fields_from_wire(wire, STEP_FIELDS, ctx.path)
    values.update(fields_from_wire(wire, (SCRIPT_ARGS_READ,), ctx.path))

    interpreter = interpreter_from_wire(wire, ctx)
    if interpreter is not None:
        values["script_interpreter"] = [interpreter]

    if wire.get("jobref") is not None:
        values["job"] = [job_reference_from_wire(wire["jobref"], ctx.at("jobref"))]

    plugin_type = wire.get("type")
    if plugin_type is not None:
        if not isinstance(plugin_type, str):
            raise MalformedWireInput("type must be a string", path=ctx.at("type").path)
        node_step = fields_from_wire(
            wire, (FieldSpec("node_step", "nodeStep", FieldType.BOOL),), ctx.path
        ).get("node_step", False)
        plugin = Plugin(
            type=plugin_type,
            config=plugin_config_from_wire(wire.get("configuration"), ctx.at("configuration")),
        )
        values["node_step_plugin" if node_step else "step_plugin"] = [plugin]
    return values


# =============================================================================
# Commands
# =============================================================================

def command_to_wire(command: Command, ctx: ConversionContext) -> Dict[str, Any]:
    """Convert one command, including its error handler and log filters.

    Raises:
        TooManyNestedBlocksError: If a capped block is given more than once
        InvariantViolation: If step_plugin and node_step_plugin are both set
    """
    wire = _step_to_wire(command, ctx, "command")

    handler = ctx.single(command.error_handler, "error_handler", "command")
    if handler is not None:
        wire["errorhandler"] = _step_to_wire(
            handler,
            ctx.at("error_handler"),
            "error handler",
            inherited_node_step=bool(command.node_step_plugin),
        )

    plugins = ctx.single(command.plugins, "plugins", "command")
    if plugins is not None:
        filters = log_filters_to_wire(plugins.log_filter_plugin, ctx.at("plugins", "log_filter_plugin"))
        if filters:
            wire["plugins"] = {"LogFilter": filters}

    logger.debug(f"Converted command at {ctx.path}")
    return wire


def command_from_wire(wire: Any, ctx: ConversionContext) -> Command:
    """Read one wire command.

    Raises:
        MalformedWireInput: If the command or one of its blocks has the wrong shape
    """
    if not isinstance(wire, dict):
        raise MalformedWireInput(
            f"command must be an object, got {type(wire).__name__}", path=ctx.path
        )
    command = Command(**_step_values(wire, ctx))

    handler = wire.get("errorhandler")
    if handler is not None:
        handler_ctx = ctx.at("errorhandler")
        if not isinstance(handler, dict):
            raise MalformedWireInput("errorhandler must be an object", path=handler_ctx.path)
        command.error_handler = [ErrorHandler(**_step_values(handler, handler_ctx))]

    plugins = wire.get("plugins")
    if plugins is not None:
        plugins_ctx = ctx.at("plugins")
        if not isinstance(plugins, dict):
            raise MalformedWireInput("plugins must be an object", path=plugins_ctx.path)
        filters = log_filters_from_wire(plugins.get("LogFilter"), plugins_ctx.at("LogFilter"))
        if filters:
            command.plugins = [CommandPlugins(log_filter_plugin=filters)]
    return command


def commands_to_wire(commands: List[Command], ctx: ConversionContext) -> List[Dict[str, Any]]:
    return [command_to_wire(command, ctx.at("command", i)) for i, command in enumerate(commands)]


def commands_from_wire(raw: Any, ctx: ConversionContext) -> List[Command]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedWireInput("commands must be a list", path=ctx.path)
    return [command_from_wire(item, ctx.at(i)) for i, item in enumerate(raw)]
