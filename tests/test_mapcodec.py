# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for mapcodec.py module."""

import pytest

from jobwire.errors import MalformedMapError, MalformedWireInput
from jobwire.mapcodec import (
    MapEntry,
    decode_element_map_xml,
    decode_entries,
    decode_map_xml,
    encode_map,
    map_from_json,
    map_to_json,
    render_element_map_xml,
    render_map_xml,
)


class TestEncodeMap:
    """Tests for the tagged entry list."""

    def test_entries_sorted_by_key(self):
        """Test entries come out in lexicographic key order."""
        entries = encode_map({"b": "2", "a": "1", "c": "3"})
        assert [e.key for e in entries] == ["a", "b", "c"]

    def test_entry_attributes(self):
        """Test custom tag and attribute names are carried on each entry."""
        entries = encode_map({"x": "y"}, entry_tag="item", key_attr="k", value_attr="v")
        assert entries == [MapEntry("item", "k", "v", "x", "y")]
        assert entries[0].attributes() == {"k": "x", "v": "y"}

    def test_empty_map(self):
        """Test an empty map encodes to no entries."""
        assert encode_map({}) == []

    def test_decode_entries_last_wins(self):
        """Test duplicate keys keep the last value."""
        entries = [
            MapEntry("entry", "key", "value", "a", "1"),
            MapEntry("entry", "key", "value", "a", "2"),
        ]
        assert decode_entries(entries) == {"a": "2"}


class TestJsonShape:
    """Tests for the JSON object shape."""

    def test_to_json_sorted(self):
        """Test the JSON map is key-sorted."""
        assert list(map_to_json({"z": "1", "a": "2"})) == ["a", "z"]

    def test_to_json_none(self):
        """Test None encodes to an empty object."""
        assert map_to_json(None) == {}

    def test_from_json_coerces_scalars(self):
        """Test numbers and booleans become strings."""
        result = map_from_json({"n": 3, "b": True, "s": "x", "skip": None}, "cfg")
        assert result == {"n": "3", "b": "true", "s": "x"}

    def test_from_json_rejects_list(self):
        """Test a non-object raises with the path."""
        with pytest.raises(MalformedWireInput, match="cfg: expected an object"):
            map_from_json(["a"], "cfg")

    def test_from_json_rejects_nested_value(self):
        """Test nested values are rejected."""
        with pytest.raises(MalformedWireInput, match="must be a scalar"):
            map_from_json({"a": {"b": "c"}}, "cfg")


class TestXmlShape:
    """Tests for <configuration><entry .../></configuration>."""

    def test_render_sorted(self):
        """Test rendering writes sorted entries."""
        xml = render_map_xml({"b": "2", "a": "1"})
        assert xml.startswith("<configuration>")
        assert xml.index('key="a"') < xml.index('key="b"')
        assert xml.endswith("</configuration>")

    def test_render_empty(self):
        """Test an empty map renders as nothing."""
        assert render_map_xml({}) == ""

    def test_render_is_deterministic(self):
        """Test equal maps render identically regardless of insertion order."""
        assert render_map_xml({"a": "1", "b": "2"}) == render_map_xml({"b": "2", "a": "1"})

    def test_decode_rendered(self):
        """Test decoding what was rendered."""
        mapping = {"region": "us-east-1", "count": "3", "quote": 'a "b" <c>'}
        assert decode_map_xml(render_map_xml(mapping)) == mapping

    def test_decode_unsorted_input(self):
        """Test entries need not be sorted on input."""
        xml = '<configuration><entry key="b" value="2"/><entry key="a" value="1"/></configuration>'
        assert decode_map_xml(xml) == {"a": "1", "b": "2"}

    def test_decode_duplicate_key_last_wins(self):
        """Test the last duplicate entry wins."""
        xml = '<configuration><entry key="a" value="1"/><entry key="a" value="2"/></configuration>'
        assert decode_map_xml(xml) == {"a": "2"}

    def test_decode_missing_value(self):
        """Test an entry without a value attribute decodes to empty string."""
        assert decode_map_xml('<configuration><entry key="a"/></configuration>') == {"a": ""}

    def test_decode_empty_stream(self):
        """Test an empty stream decodes to an empty map."""
        assert decode_map_xml("") == {}

    def test_decode_truncated_names_closing_marker(self):
        """Test a truncated stream names the expected closing marker."""
        xml = '<configuration><entry key="a" value="1"/>'
        with pytest.raises(MalformedMapError, match="</configuration>"):
            decode_map_xml(xml)

    def test_decode_unexpected_element(self):
        """Test an unexpected element where an entry belongs."""
        xml = '<configuration><bogus key="a" value="1"/></configuration>'
        with pytest.raises(MalformedMapError, match="unexpected element <bogus>"):
            decode_map_xml(xml)

    def test_decode_empty_key(self):
        """Test an entry with an empty key is rejected."""
        xml = '<configuration><entry key="" value="1"/></configuration>'
        with pytest.raises(MalformedMapError, match="key"):
            decode_map_xml(xml)

    def test_decode_missing_key(self):
        """Test an entry without a key attribute is rejected."""
        xml = '<configuration><entry value="1"/></configuration>'
        with pytest.raises(MalformedMapError, match="missing its 'key' attribute"):
            decode_map_xml(xml)

    def test_decode_wrong_container(self):
        """Test the container element must match."""
        with pytest.raises(MalformedMapError, match="expected <configuration>"):
            decode_map_xml('<config><entry key="a" value="1"/></config>')

    def test_decode_custom_names(self):
        """Test custom tag and attribute names."""
        xml = '<settings><item k="a" v="1"/></settings>'
        result = decode_map_xml(xml, "settings", entry_tag="item", key_attr="k", value_attr="v")
        assert result == {"a": "1"}

    def test_decode_nested_element_rejected(self):
        """Test elements nested inside an entry are rejected."""
        xml = '<configuration><entry key="a" value="1"><x/></entry></configuration>'
        with pytest.raises(MalformedMapError, match="nested"):
            decode_map_xml(xml)

    def test_error_carries_path(self):
        """Test the error message is prefixed with the path."""
        with pytest.raises(MalformedMapError) as exc_info:
            decode_map_xml("<configuration>", path="command[0].configuration")
        assert exc_info.value.path == "command[0].configuration"
        assert str(exc_info.value).startswith("command[0].configuration: ")


class TestElementMapXml:
    """Tests for the <config><key>value</key></config> shape."""

    def test_render(self):
        """Test element-named entries are sorted."""
        assert render_element_map_xml({"b": "2", "a": "1"}) == "<config><a>1</a><b>2</b></config>"

    def test_decode(self):
        """Test decoding element-named entries."""
        assert decode_element_map_xml("<config><a>1</a><b /></config>") == {"a": "1", "b": ""}

    def test_decode_truncated(self):
        """Test truncation names the closing marker."""
        with pytest.raises(MalformedMapError, match="</config>"):
            decode_element_map_xml("<config><a>1</a>")
