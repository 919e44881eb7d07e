# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Document assembler - whole job config tree ⇄ wire job document.

Write path: Job → to_wire_document → dict (→ dump_document → JSON text)
Read path:  JSON text / dict / [dict] → from_wire_document → Job

Job-level scalars live in three wire places: top level, the `dispatch`
object and the `sequence` object. The `sequence` object is always written,
with its command list, even when the job has no commands.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from jobwire.config import ConverterConfig
from jobwire.converters.commands import commands_from_wire, commands_to_wire
from jobwire.converters.context import ConversionContext
from jobwire.converters.notifications import notifications_from_wire, notifications_to_wire
from jobwire.converters.options import options_from_wire, options_to_wire
from jobwire.converters.orchestrator import (
    log_limit_from_wire,
    log_limit_to_wire,
    orchestrator_from_wire,
    orchestrator_to_wire,
)
from jobwire.converters.plugins import (
    global_log_filters_from_wire,
    global_log_filters_to_wire,
    lifecycle_plugins_from_wire,
    lifecycle_plugins_to_wire,
    project_schedules_from_wire,
    project_schedules_to_wire,
)
from jobwire.converters.schedule import schedule_from_wire, schedule_to_wire
from jobwire.errors import MalformedWireInput
from jobwire.fields import FieldSpec, FieldType, Presence, fields_from_wire, fields_to_wire
from jobwire.schemas import ConversionResult, Job, RunnerSelector


logger = logging.getLogger(__name__)

JOB_FIELDS = (
    FieldSpec("id", "id"),
    FieldSpec("name", "name", presence=Presence.ALWAYS),
    FieldSpec("group_name", "group"),
    FieldSpec("project_name", "project"),
    FieldSpec("description", "description", presence=Presence.ALWAYS),
    FieldSpec("execution_enabled", "executionEnabled", FieldType.BOOL, Presence.ALWAYS),
    FieldSpec("default_tab", "defaultTab"),
    FieldSpec("log_level", "loglevel"),
    FieldSpec("allow_concurrent_executions", "multipleExecutions", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("node_filter_editable", "nodeFilterEditable", FieldType.BOOL, Presence.ALWAYS),
    FieldSpec("nodes_selected_by_default", "nodesSelectedByDefault", FieldType.BOOL, Presence.ALWAYS),
    FieldSpec("schedule_enabled", "scheduleEnabled", FieldType.BOOL, Presence.ALWAYS),
    FieldSpec("retry", "retry.retry"),
    FieldSpec("retry_delay", "retry.delay"),
    FieldSpec("timeout", "timeout"),
    FieldSpec("time_zone", "timeZone"),
    FieldSpec("max_thread_count", "dispatch.threadcount", FieldType.INT_STRING, Presence.NON_NULL),
    FieldSpec("continue_next_node_on_error", "dispatch.keepgoing", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("rank_attribute", "dispatch.rankAttribute"),
    FieldSpec("rank_order", "dispatch.rankOrder"),
    FieldSpec("success_on_empty_node_filter", "dispatch.successOnEmptyNodeFilter",
              FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("node_filter_exclude_precedence", "dispatch.excludePrecedence",
              FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("node_filter_query", "nodefilters.filter", aliases=("nodeFilters.filter",)),
    FieldSpec("node_filter_exclude_query", "nodefilters.excludeFilter",
              aliases=("nodeFilters.excludeFilter",)),
    FieldSpec("continue_on_error", "sequence.keepgoing", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("command_ordering_strategy", "sequence.strategy"),
    FieldSpec("preserve_options_order", "preserveOrder", FieldType.BOOL, Presence.NON_NULL),
)

RUNNER_SELECTOR_FIELDS = (
    FieldSpec("filter", "filter"),
    FieldSpec("filter_mode", "filterMode"),
    FieldSpec("filter_type", "filterType"),
)

WireInput = Union[str, bytes, Dict[str, Any], list]


# =============================================================================
# Config → wire
# =============================================================================

def to_wire_document(
    job: Job,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult[Dict[str, Any]]:
    """Assemble the wire job document for a config tree.

    Args:
        job: Config tree root
        config: Converter settings (defaults when omitted)

    Returns:
        ConversionResult holding the document and any skip diagnostics

    Raises:
        StructuralViolation: If a cardinality cap or invariant is broken
    """
    ctx = ConversionContext(config=config or ConverterConfig())

    doc = fields_to_wire(job, JOB_FIELDS)
    sequence = doc.setdefault("sequence", {})
    sequence["commands"] = commands_to_wire(job.command, ctx)
    global_log_filters_to_wire(job.global_log_filter, ctx, sequence)

    options = options_to_wire(job.option, ctx)
    if options:
        doc["options"] = options

    schedule = schedule_to_wire(job.schedule, ctx.at("schedule"))
    if schedule is not None:
        doc["schedule"] = schedule

    notifications = notifications_to_wire(job.notification, ctx)
    if notifications:
        doc["notification"] = notifications

    orchestrator = orchestrator_to_wire(job.orchestrator, ctx)
    if orchestrator is not None:
        doc["orchestrator"] = orchestrator

    log_limit_to_wire(job.log_limit, ctx, doc)

    selector = ctx.single(job.runner_selector, "runner_selector", "job")
    if selector is not None:
        wire_selector = fields_to_wire(selector, RUNNER_SELECTOR_FIELDS)
        if wire_selector:
            doc["runnerSelector"] = wire_selector

    lifecycle = lifecycle_plugins_to_wire(job.execution_lifecycle_plugin, ctx)
    if lifecycle:
        doc["plugins"] = {"ExecutionLifecycle": lifecycle}

    schedules = project_schedules_to_wire(job.project_schedule, ctx)
    if schedules:
        doc["schedules"] = schedules

    logger.debug(f"Assembled wire document for job '{job.name}' ({len(job.command)} commands)")
    return ConversionResult(value=doc, diagnostics=ctx.diagnostics)


def dump_document(doc: Dict[str, Any]) -> str:
    """Serialize a wire document; equal documents give identical text."""
    return json.dumps(doc, sort_keys=True, indent=2, ensure_ascii=False)


# =============================================================================
# Wire → config
# =============================================================================

def from_wire_document(
    doc: WireInput,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult[Job]:
    """Rebuild the config tree from a wire job document.

    Args:
        doc: Job object, one-element list of job objects (the export shape),
            or JSON text of either
        config: Converter settings (defaults when omitted)

    Returns:
        ConversionResult holding the Job and any skip diagnostics

    Raises:
        MalformedWireInput: If the document does not have the expected shape
    """
    ctx = ConversionContext(config=config or ConverterConfig())
    data = _unwrap(doc)

    retry = data.get("retry")
    if isinstance(retry, (str, int)):
        data = dict(data, retry={"retry": str(retry)})

    job = Job(**fields_from_wire(data, JOB_FIELDS))

    sequence = data.get("sequence") or {}
    if not isinstance(sequence, dict):
        raise MalformedWireInput("sequence must be an object", path="sequence")
    sequence_ctx = ctx.at("sequence")
    job.command = commands_from_wire(sequence.get("commands"), sequence_ctx.at("commands"))
    job.global_log_filter = global_log_filters_from_wire(sequence, sequence_ctx)

    job.option = options_from_wire(data.get("options"), ctx.at("options"))
    job.schedule = schedule_from_wire(data.get("schedule"), ctx.at("schedule"))
    job.notification = notifications_from_wire(data.get("notification"), ctx.at("notification"))
    job.orchestrator = orchestrator_from_wire(data.get("orchestrator"), ctx.at("orchestrator"))
    job.log_limit = log_limit_from_wire(data, ctx)

    selector = data.get("runnerSelector")
    if selector is not None:
        if not isinstance(selector, dict):
            raise MalformedWireInput("runnerSelector must be an object", path="runnerSelector")
        values = fields_from_wire(selector, RUNNER_SELECTOR_FIELDS, "runnerSelector")
        if values:
            job.runner_selector = [RunnerSelector(**values)]

    plugins = data.get("plugins")
    if plugins is not None:
        if not isinstance(plugins, dict):
            raise MalformedWireInput("plugins must be an object", path="plugins")
        job.execution_lifecycle_plugin = lifecycle_plugins_from_wire(
            plugins.get("ExecutionLifecycle"), ctx.at("plugins", "ExecutionLifecycle")
        )

    job.project_schedule = project_schedules_from_wire(data.get("schedules"), ctx.at("schedules"))

    logger.debug(f"Read job '{job.name}' with {len(ctx.diagnostics)} diagnostics")
    return ConversionResult(value=job, diagnostics=ctx.diagnostics)


def _unwrap(doc: WireInput) -> Dict[str, Any]:
    if isinstance(doc, (str, bytes)):
        try:
            doc = json.loads(doc)
        except json.JSONDecodeError as e:
            raise MalformedWireInput(f"invalid JSON: {e}") from e
    if isinstance(doc, list):
        if len(doc) != 1:
            raise MalformedWireInput(f"expected exactly one job, got {len(doc)}")
        doc = doc[0]
    if not isinstance(doc, dict):
        raise MalformedWireInput(f"job document must be an object, got {type(doc).__name__}")
    return doc
