# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Orchestrator and log limit converters.

Orchestrator wire shape:
    {"type": "subset", "configuration": {"count": "2"}}

Only the parameters the type takes are written; the others are absent,
never zero. Types outside the known set are treated as custom plugins and
pass every parameter that is set.
"""

import logging
from typing import Any, Dict, List, Optional

from jobwire.converters.context import ConversionContext
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, FieldType, Presence, fields_from_wire, fields_to_wire
from jobwire.schemas import LogLimit, Orchestrator


logger = logging.getLogger(__name__)

ORCHESTRATOR_PARAMETERS = {
    "subset": ("count",),
    "rankTiered": (),
    "maxPercentage": ("percent",),
    "orchestrator-highest-lowest-attribute": ("attribute", "sort"),
}

SORT_DIRECTIONS = ("high", "low")

ORCHESTRATOR_CONFIG_FIELDS = (
    FieldSpec("count", "count", FieldType.INT_STRING, Presence.NON_NULL),
    FieldSpec("percent", "percent", FieldType.INT_STRING, Presence.NON_NULL),
    FieldSpec("attribute", "attribute"),
    FieldSpec("sort", "sort"),
)

LOG_LIMIT_FIELDS = (
    FieldSpec("output", "loglimit"),
    FieldSpec("action", "loglimitAction"),
    FieldSpec("status", "loglimitStatus"),
)


def orchestrator_to_wire(
    orchestrators: List[Orchestrator],
    ctx: ConversionContext,
) -> Optional[Dict[str, Any]]:
    """Convert the (capped) orchestrator block.

    Raises:
        TooManyNestedBlocksError: If more than one orchestrator is given
        InvariantViolation: If the type's required parameter is missing
    """
    orchestrator = ctx.single(orchestrators, "orchestrator", "job")
    if orchestrator is None:
        return None
    o_ctx = ctx.at("orchestrator")
    if not orchestrator.type:
        o_ctx.skip("orchestrator has no type")
        return None

    parameters = ORCHESTRATOR_PARAMETERS.get(orchestrator.type)
    if parameters is None:
        logger.debug(f"Custom orchestrator type '{orchestrator.type}'")
        table = ORCHESTRATOR_CONFIG_FIELDS
    else:
        for name in parameters:
            if getattr(orchestrator, name) in (None, ""):
                raise InvariantViolation(
                    f"orchestrator type '{orchestrator.type}' requires {name}",
                    path=o_ctx.at(name).path,
                )
        if orchestrator.sort and "sort" in parameters and orchestrator.sort not in SORT_DIRECTIONS:
            raise InvariantViolation(
                f"sort must be one of {SORT_DIRECTIONS}, got '{orchestrator.sort}'",
                path=o_ctx.at("sort").path,
            )
        table = tuple(spec for spec in ORCHESTRATOR_CONFIG_FIELDS if spec.config_name in parameters)

    wire: Dict[str, Any] = {"type": orchestrator.type}
    configuration = fields_to_wire(orchestrator, table)
    if configuration:
        wire["configuration"] = configuration
    return wire


def orchestrator_from_wire(raw: Any, ctx: ConversionContext) -> List[Orchestrator]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise MalformedWireInput("orchestrator must be an object", path=ctx.path)
    orchestrator_type = raw.get("type")
    if not orchestrator_type:
        ctx.skip("orchestrator has no type")
        return []
    configuration = raw.get("configuration") or {}
    if not isinstance(configuration, dict):
        raise MalformedWireInput("configuration must be an object", path=ctx.at("configuration").path)
    values = fields_from_wire(configuration, ORCHESTRATOR_CONFIG_FIELDS, ctx.at("configuration").path)
    return [Orchestrator(type=str(orchestrator_type), **values)]


def log_limit_to_wire(limits: List[LogLimit], ctx: ConversionContext, target: Dict[str, Any]) -> None:
    """Write the (capped) log limit as job-level fields."""
    limit = ctx.single(limits, "log_limit", "job")
    if limit is not None:
        fields_to_wire(limit, LOG_LIMIT_FIELDS, target)


def log_limit_from_wire(doc: Dict[str, Any], ctx: ConversionContext) -> List[LogLimit]:
    values = fields_from_wire(doc, LOG_LIMIT_FIELDS, ctx.path)
    return [LogLimit(**values)] if values else []
