# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Option set converter (job input parameters)."""

import logging
from typing import Any, Dict, List, Optional

from jobwire.converters.context import ConversionContext
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, FieldType, Presence, fields_from_wire, fields_to_wire
from jobwire.schemas import Option


logger = logging.getLogger(__name__)

OPTION_FIELDS = (
    FieldSpec("name", "name"),
    FieldSpec("label", "label"),
    FieldSpec("default_value", "value"),
    FieldSpec("description", "description"),
    FieldSpec("validation_regex", "regex"),
    FieldSpec("value_choices", "values", FieldType.STRING_LIST),
    FieldSpec("value_choices_url", "valuesUrl"),
    FieldSpec("multi_value_delimiter", "delimiter"),
    FieldSpec("storage_path", "storagePath"),
    FieldSpec("type", "type"),
    FieldSpec("date_format", "dateFormat"),
    FieldSpec("required", "required", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("sort_values", "sortValues", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("require_predefined_choice", "enforcedValues", FieldType.BOOL, Presence.NON_NULL,
              aliases=("enforced",)),
    FieldSpec("allow_multiple_values", "multivalued", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("obscure_input", "secure", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("exposed_to_scripts", "valueExposed", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("hidden", "hidden", FieldType.BOOL, Presence.NON_NULL),
    FieldSpec("is_date", "isDate", FieldType.BOOL, Presence.NON_NULL),
)


def validate_option(option: Option, ctx: ConversionContext) -> None:
    """Check the attribute dependencies of one option.

    Raises:
        InvariantViolation: On the first inconsistent attribute pair
    """
    if option.storage_path and not option.obscure_input:
        raise InvariantViolation(
            "storage_path requires obscure_input to be true", path=ctx.path
        )
    if option.exposed_to_scripts and not option.obscure_input:
        raise InvariantViolation(
            "exposed_to_scripts requires obscure_input to be true", path=ctx.path
        )
    if option.date_format and not option.is_date:
        raise InvariantViolation("date_format requires is_date to be true", path=ctx.path)
    if any(not choice for choice in option.value_choices):
        raise InvariantViolation("value_choices may not contain empty values", path=ctx.path)


def option_to_wire(option: Option, ctx: ConversionContext) -> Optional[Dict[str, Any]]:
    """Convert one option; an unnamed option is skipped."""
    if not option.name:
        ctx.skip("option has no name")
        return None
    validate_option(option, ctx)
    return fields_to_wire(option, OPTION_FIELDS)


def options_to_wire(options: List[Option], ctx: ConversionContext) -> List[Dict[str, Any]]:
    result = []
    for i, option in enumerate(options):
        wire = option_to_wire(option, ctx.at("option", i))
        if wire is not None:
            result.append(wire)
    return result


def options_from_wire(raw: Any, ctx: ConversionContext) -> List[Option]:
    """Read the option list.

    Older exports carry options as a map of name → option; both shapes are read.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        items = []
        for name in sorted(raw):
            item = raw[name]
            if isinstance(item, dict) and "name" not in item:
                item = dict(item, name=name)
            items.append(item)
    elif isinstance(raw, list):
        items = raw
    else:
        raise MalformedWireInput("options must be a list", path=ctx.path)

    result = []
    for i, item in enumerate(items):
        item_ctx = ctx.at(i)
        if not isinstance(item, dict):
            raise MalformedWireInput("option must be an object", path=item_ctx.path)
        values = fields_from_wire(item, OPTION_FIELDS, item_ctx.path)
        if not values.get("name"):
            item_ctx.skip("option has no name")
            continue
        result.append(Option(**values))
    logger.debug(f"Read {len(result)} options")
    return result
