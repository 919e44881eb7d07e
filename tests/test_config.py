# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for config.py module."""

import pytest

from jobwire.config import ConverterConfig, load_config, resolve_config_path
from jobwire.errors import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep the user's real config out of the tests."""
    monkeypatch.delenv("JOBWIRE_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


class TestConverterConfig:
    """Tests for the config object."""

    def test_defaults(self):
        """Test the default settings."""
        config = ConverterConfig()
        assert config.script_args_field == "args"
        assert config.interpreter_shape == "current"
        assert config.map_entry_tag == "entry"

    def test_bad_args_field(self):
        """Test an unknown script args field."""
        with pytest.raises(ConfigurationError, match="script_args_field"):
            ConverterConfig(script_args_field="argv")

    def test_bad_interpreter_shape(self):
        """Test an unknown interpreter shape."""
        with pytest.raises(ConfigurationError, match="interpreter_shape"):
            ConverterConfig(interpreter_shape="nested")

    def test_empty_tag(self):
        """Test an empty map tag."""
        with pytest.raises(ConfigurationError, match="map_entry_tag"):
            ConverterConfig(map_entry_tag="")

    def test_unknown_key(self):
        """Test unknown keys in a config mapping."""
        with pytest.raises(ConfigurationError, match="Unknown config keys"):
            ConverterConfig.from_dict({"script_args": "args"})


class TestLoadConfig:
    """Tests for config file lookup."""

    def test_defaults_without_file(self):
        """Test defaults when the default file is absent."""
        assert load_config() == ConverterConfig()

    def test_explicit_path(self, tmp_path):
        """Test loading an explicit file."""
        path = tmp_path / "config.yaml"
        path.write_text("script_args_field: scriptargs\ninterpreter_shape: legacy\n")
        config = load_config(path)
        assert config.script_args_field == "scriptargs"
        assert config.interpreter_shape == "legacy"

    def test_env_path(self, tmp_path, monkeypatch):
        """Test the environment variable."""
        path = tmp_path / "env.yaml"
        path.write_text("map_entry_tag: item\n")
        monkeypatch.setenv("JOBWIRE_CONFIG", str(path))
        assert resolve_config_path() == path
        assert load_config().map_entry_tag == "item"

    def test_explicit_missing(self, tmp_path):
        """Test a named file that does not exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == ConverterConfig()

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML."""
        path = tmp_path / "config.yaml"
        path.write_text("script_args_field: [\n")
        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_config(path)
