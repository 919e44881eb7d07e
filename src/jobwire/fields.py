# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Scalar field mapper - table-driven config attribute ⇄ wire field conversion.

Each block converter declares a tuple of FieldSpec entries instead of writing
one line of glue per field. A wire path may be dotted to reach into a nested
wire object:

    FieldSpec("max_thread_count", "dispatch.threadcount", FieldType.INT_STRING)

Reading is lenient about scalar encodings the service is known to mix
("true" vs true, "3" vs 3) and strict about shape: an object where a scalar
belongs raises MalformedWireInput naming the wire path.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from jobwire.errors import MalformedWireInput
from jobwire.mapcodec import map_from_json, map_to_json


class FieldType(Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    INT_STRING = "int_string"      # int carried as a decimal string
    BOOL_STRING = "bool_string"    # bool carried as "true"/"false"
    STRING_LIST = "string_list"
    CSV_LIST = "csv_list"          # list carried as one comma-joined string
    STRING_MAP = "string_map"


class Presence(Enum):
    ALWAYS = "always"        # emitted even when unset (as the type's zero value)
    NON_EMPTY = "non_empty"  # omitted when None, "" or an empty collection
    NON_NULL = "non_null"    # omitted only when None


@dataclass(frozen=True)
class FieldSpec:
    """One row of a field-mapping table."""
    config_name: str
    wire_path: str
    field_type: FieldType = FieldType.STRING
    presence: Presence = Presence.NON_EMPTY
    aliases: Tuple[str, ...] = ()


_ZERO_VALUES = {
    FieldType.STRING: "",
    FieldType.BOOL: False,
    FieldType.INT: 0,
    FieldType.INT_STRING: "0",
    FieldType.BOOL_STRING: "false",
    FieldType.STRING_LIST: [],
    FieldType.CSV_LIST: "",
    FieldType.STRING_MAP: {},
}


# =============================================================================
# Config → wire
# =============================================================================

def fields_to_wire(
    obj: Any,
    table: Iterable[FieldSpec],
    target: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Copy the table's attributes of obj into a wire object.

    Args:
        obj: Config tree node (any object with the table's attributes)
        table: Field specs to apply
        target: Wire object to write into; a new dict when omitted

    Returns:
        The target wire object
    """
    if target is None:
        target = {}
    for spec in table:
        value = getattr(obj, spec.config_name)
        if not _is_present(value, spec.presence):
            continue
        if value is None:
            encoded = _ZERO_VALUES[spec.field_type]
        else:
            encoded = _encode(value, spec.field_type)
        _set_path(target, spec.wire_path, encoded)
    return target


def _is_present(value: Any, presence: Presence) -> bool:
    if presence is Presence.ALWAYS:
        return True
    if value is None:
        return False
    if presence is Presence.NON_EMPTY and isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def _encode(value: Any, field_type: FieldType) -> Any:
    if field_type is FieldType.STRING:
        return str(value)
    if field_type is FieldType.BOOL:
        return bool(value)
    if field_type is FieldType.INT:
        return int(value)
    if field_type is FieldType.INT_STRING:
        return str(int(value))
    if field_type is FieldType.BOOL_STRING:
        return "true" if value else "false"
    if field_type is FieldType.STRING_LIST:
        return [str(v) for v in value]
    if field_type is FieldType.CSV_LIST:
        return ",".join(str(v) for v in value)
    return map_to_json(value)


def _set_path(target: Dict[str, Any], wire_path: str, value: Any) -> None:
    *parents, leaf = wire_path.split(".")
    node = target
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


# =============================================================================
# Wire → config
# =============================================================================

def fields_from_wire(
    wire: Dict[str, Any],
    table: Iterable[FieldSpec],
    path: str = "",
) -> Dict[str, Any]:
    """Read the table's fields out of a wire object.

    Only fields present on the wire appear in the result, so passing it as
    keyword arguments to a dataclass leaves absent attributes at their defaults.

    Args:
        wire: Wire object
        table: Field specs to apply
        path: Location of `wire` in the document, used in error messages

    Returns:
        Dict of config attribute name → decoded value

    Raises:
        MalformedWireInput: If a field has the wrong wire type
    """
    values: Dict[str, Any] = {}
    for spec in table:
        for wire_path in (spec.wire_path,) + spec.aliases:
            raw = _get_path(wire, wire_path, path)
            if raw is not None:
                values[spec.config_name] = _decode(raw, spec.field_type, _join(path, wire_path))
                break
    return values


def _get_path(wire: Dict[str, Any], wire_path: str, path: str) -> Any:
    node: Any = wire
    walked = path
    for part in wire_path.split("."):
        if not isinstance(node, dict):
            raise MalformedWireInput(
                f"expected an object, got {type(node).__name__}", path=walked
            )
        node = node.get(part)
        if node is None:
            return None
        walked = _join(walked, part)
    return node


def _join(path: str, part: str) -> str:
    return f"{path}.{part}" if path else part


def _decode(raw: Any, field_type: FieldType, path: str) -> Any:
    if field_type is FieldType.STRING:
        return _as_string(raw, path)
    if field_type in (FieldType.BOOL, FieldType.BOOL_STRING):
        return _as_bool(raw, path)
    if field_type in (FieldType.INT, FieldType.INT_STRING):
        return _as_int(raw, path)
    if field_type in (FieldType.STRING_LIST, FieldType.CSV_LIST):
        return _as_list(raw, path)
    return map_from_json(raw, path)


def _as_string(raw: Any, path: str) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (str, int, float)):
        return str(raw)
    raise MalformedWireInput(f"expected a string, got {type(raw).__name__}", path=path)


def _as_bool(raw: Any, path: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
        return raw.strip().lower() == "true"
    raise MalformedWireInput(f"expected a boolean, got {raw!r}", path=path)


def _as_int(raw: Any, path: str) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise MalformedWireInput(f"expected an integer, got {raw!r}", path=path)


def _as_list(raw: Any, path: str) -> List[str]:
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if isinstance(raw, list):
        items = []
        for item in raw:
            if isinstance(item, (dict, list)):
                raise MalformedWireInput(
                    f"list items must be scalars, got {type(item).__name__}", path=path
                )
            if item is not None:
                items.append(_as_string(item, path))
        return items
    raise MalformedWireInput(f"expected a list, got {type(raw).__name__}", path=path)
