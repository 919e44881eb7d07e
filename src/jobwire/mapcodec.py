# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Map codec - untyped string maps ⇄ tagged entry lists.

Plugin configuration is a free-form string map. The wire formats have no
unordered map type, so maps are written as entry lists in sorted key order and
two equal maps always serialize to the same bytes.

Shapes:
- JSON: a key-sorted object {"key": "value", ...}
- XML: <configuration><entry key="k" value="v"/>...</configuration>
- XML (log filter config): <config><k>v</k>...</config>
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from jobwire.errors import MalformedMapError, MalformedWireInput


logger = logging.getLogger(__name__)

ENTRY_TAG = "entry"
KEY_ATTR = "key"
VALUE_ATTR = "value"


@dataclass(frozen=True)
class MapEntry:
    """One tagged entry carrying a key attribute and a value attribute."""
    tag: str
    key_attr: str
    value_attr: str
    key: str
    value: str

    def attributes(self) -> Dict[str, str]:
        return {self.key_attr: self.key, self.value_attr: self.value}


def encode_map(
    mapping: Mapping[str, str],
    entry_tag: str = ENTRY_TAG,
    key_attr: str = KEY_ATTR,
    value_attr: str = VALUE_ATTR,
) -> List[MapEntry]:
    """Encode a mapping as tagged entries in lexicographic key order."""
    return [
        MapEntry(entry_tag, key_attr, value_attr, key, mapping[key])
        for key in sorted(mapping)
    ]


def decode_entries(entries: List[MapEntry]) -> Dict[str, str]:
    """Inverse of encode_map. Duplicate keys: last write wins."""
    result: Dict[str, str] = {}
    for entry in entries:
        result[entry.key] = entry.value
    return result


# =============================================================================
# JSON shape
# =============================================================================

def map_to_json(mapping: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Return a key-sorted copy of the mapping for the JSON document."""
    if not mapping:
        return {}
    return {entry.key: entry.value for entry in encode_map(mapping)}


def map_from_json(obj: Any, path: str) -> Dict[str, str]:
    """Read a JSON string map, coercing scalar values to strings.

    Raises:
        MalformedWireInput: If obj is not an object or holds nested values
    """
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise MalformedWireInput(
            f"expected an object, got {type(obj).__name__}", path=path
        )
    result: Dict[str, str] = {}
    for key, value in obj.items():
        if value is None:
            continue
        if isinstance(value, bool):
            result[str(key)] = "true" if value else "false"
        elif isinstance(value, (str, int, float)):
            result[str(key)] = str(value)
        else:
            raise MalformedWireInput(
                f"value of '{key}' must be a scalar, got {type(value).__name__}",
                path=path,
            )
    return result


# =============================================================================
# XML shapes
# =============================================================================

def render_map_xml(
    mapping: Optional[Mapping[str, str]],
    container_tag: str = "configuration",
    entry_tag: str = ENTRY_TAG,
    key_attr: str = KEY_ATTR,
    value_attr: str = VALUE_ATTR,
) -> str:
    """Render a map as <container><entry key=".." value=".."/>...</container>.

    An empty map renders as an empty string (the element is omitted).
    """
    if not mapping:
        return ""
    container = ET.Element(container_tag)
    for entry in encode_map(mapping, entry_tag, key_attr, value_attr):
        ET.SubElement(container, entry.tag, entry.attributes())
    return ET.tostring(container, encoding="unicode")


def decode_map_xml(
    text: str,
    container_tag: str = "configuration",
    entry_tag: str = ENTRY_TAG,
    key_attr: str = KEY_ATTR,
    value_attr: str = VALUE_ATTR,
    path: Optional[str] = None,
) -> Dict[str, str]:
    """Read tagged entries until the container's closing marker.

    Entries need not be sorted. An empty stream decodes to an empty map.

    Raises:
        MalformedMapError: If the stream ends before </container_tag>, an
            element other than entry_tag appears, or an entry has no key
    """
    result: Dict[str, str] = {}
    for depth, event, elem in _pull_events(text, container_tag, path):
        if event != "start" or depth != 1:
            continue
        if elem.tag != entry_tag:
            raise MalformedMapError(
                f"unexpected element <{elem.tag}> while looking for <{entry_tag}> entries",
                path=path,
            )
        key = elem.get(key_attr)
        if not key:
            raise MalformedMapError(
                f"<{entry_tag}> is missing its '{key_attr}' attribute",
                path=path,
            )
        result[key] = elem.get(value_attr, "")
    return result


def render_element_map_xml(
    mapping: Optional[Mapping[str, str]],
    container_tag: str = "config",
) -> str:
    """Render a map as <container><key>value</key>...</container>."""
    if not mapping:
        return ""
    container = ET.Element(container_tag)
    for key in sorted(mapping):
        ET.SubElement(container, key).text = mapping[key]
    return ET.tostring(container, encoding="unicode")


def decode_element_map_xml(
    text: str,
    container_tag: str = "config",
    path: Optional[str] = None,
) -> Dict[str, str]:
    """Inverse of render_element_map_xml.

    Raises:
        MalformedMapError: If the stream is truncated or an entry has children
    """
    result: Dict[str, str] = {}
    for depth, event, elem in _pull_events(text, container_tag, path):
        if event == "start" and depth == 1:
            result[elem.tag] = ""
        elif event == "end" and depth == 1:
            result[elem.tag] = elem.text or ""
    return result


def _pull_events(
    text: str,
    container_tag: str,
    path: Optional[str],
) -> Iterator[Tuple[int, str, ET.Element]]:
    """Yield (depth, event, element) below the container until it closes.

    Depth is 1 for direct children of the container. Elements nested deeper
    than that are rejected.
    """
    if not text or not text.strip():
        return

    parser = ET.XMLPullParser(events=("start", "end"))
    depth = 0
    closed = False
    try:
        parser.feed(text)
        for event, elem in parser.read_events():
            if event == "start":
                if depth == 0 and elem.tag != container_tag:
                    raise MalformedMapError(
                        f"expected <{container_tag}>, found <{elem.tag}>",
                        path=path,
                    )
                if depth >= 2:
                    raise MalformedMapError(
                        f"unexpected element <{elem.tag}> nested inside an entry",
                        path=path,
                    )
                depth += 1
                if depth > 1:
                    yield depth - 1, event, elem
            else:
                depth -= 1
                if depth == 0:
                    closed = True
                    break
                yield depth, event, elem
    except ET.ParseError as e:
        raise MalformedMapError(f"invalid XML: {e}", path=path) from e

    if not closed:
        raise MalformedMapError(
            f"stream ended before closing </{container_tag}>",
            path=path,
        )
    logger.debug(f"Decoded <{container_tag}> map")
