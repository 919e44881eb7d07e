# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for compiler.py module."""

import pytest
import yaml

from jobwire.compiler import compile_job, dump_job_yaml, job_to_dict, load_job_yaml
from jobwire.errors import CompileError
from jobwire.schemas import (
    Command,
    EmailNotification,
    ErrorHandler,
    Job,
    Notification,
    Option,
    Plugin,
)


JOB_YAML = """
name: nightly-backup
project_name: ops
timeout: 30
max_thread_count: 2
schedule: "0 0 2 ? * * *"
command:
  - shell_command: /usr/local/bin/backup
    error_handler:
      shell_command: /usr/local/bin/alert
  - node_step_plugin:
      type: copyfile
      config:
        source: /backup
        retries: 3
option:
  name: target
  value_choices: [all, main]
notification:
  - type: on_failure
    email:
      recipients: [ops@example.com]
"""


class TestCompileJob:
    """Tests for building the config tree."""

    def test_compile(self):
        """Test a full definition compiles."""
        job = compile_job(yaml.safe_load(JOB_YAML))
        assert job.name == "nightly-backup"
        assert job.timeout == "30"
        assert job.max_thread_count == 2
        assert job.command[0] == Command(
            shell_command="/usr/local/bin/backup",
            error_handler=[ErrorHandler(shell_command="/usr/local/bin/alert")],
        )
        assert job.command[1].node_step_plugin == [
            Plugin(type="copyfile", config={"source": "/backup", "retries": "3"})
        ]
        assert job.option == [Option(name="target", value_choices=["all", "main"])]
        assert job.notification == [Notification(
            type="on_failure",
            email=[EmailNotification(recipients=["ops@example.com"])],
        )]

    def test_defaults(self):
        """Test unset attributes keep their defaults."""
        job = compile_job({"name": "x"})
        assert job.execution_enabled is True
        assert job.log_level is None
        assert job.command == []

    def test_unknown_attribute(self):
        """Test an unknown attribute names its path."""
        with pytest.raises(CompileError, match=r"job.command\[0\]: unknown attribute\(s\) \['shell'\]"):
            compile_job({"command": [{"shell": "echo"}]})

    def test_wrong_bool(self):
        """Test a string where a bool belongs."""
        with pytest.raises(CompileError, match="job.execution_enabled: expected true or false"):
            compile_job({"execution_enabled": "yes"})

    def test_wrong_int(self):
        """Test a string where an int belongs."""
        with pytest.raises(CompileError, match="job.max_thread_count: expected an integer"):
            compile_job({"max_thread_count": "four"})

    def test_block_must_be_mapping(self):
        """Test a scalar where a block belongs."""
        with pytest.raises(CompileError, match=r"job.command\[0\]: expected a mapping"):
            compile_job({"command": ["echo hi"]})

    def test_nested_value_in_string(self):
        """Test a mapping where a string belongs."""
        with pytest.raises(CompileError, match="job.name: expected a string"):
            compile_job({"name": {"a": "b"}})

    def test_two_blocks_kept_for_converter(self):
        """Test capped blocks keep every element so the converter can report the cap."""
        job = compile_job({"orchestrator": [{"type": "rankTiered"}, {"type": "subset", "count": 1}]})
        assert len(job.orchestrator) == 2


class TestLoadJobYaml:
    """Tests for reading definition files."""

    def test_load(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / "job.yaml"
        path.write_text(JOB_YAML)
        assert load_job_yaml(path)["name"] == "nightly-backup"

    def test_missing_file(self, tmp_path):
        """Test a missing file."""
        with pytest.raises(CompileError, match="Job definition not found"):
            load_job_yaml(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list at top level."""
        path = tmp_path / "job.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(CompileError, match="must be a mapping"):
            load_job_yaml(path)

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML."""
        path = tmp_path / "job.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(CompileError, match="Failed to parse YAML"):
            load_job_yaml(path)


class TestJobToDict:
    """Tests for dumping the config tree."""

    def test_omits_unset(self):
        """Test unset attributes and empty blocks are left out."""
        data = job_to_dict(Job(name="x", command=[Command(shell_command="echo")]))
        assert data == {
            "name": "x",
            "execution_enabled": True,
            "node_filter_editable": True,
            "nodes_selected_by_default": True,
            "schedule_enabled": True,
            "command": [{"shell_command": "echo"}],
        }

    def test_yaml_compiles_back(self):
        """Test dumped YAML compiles to the same tree."""
        job = compile_job(yaml.safe_load(JOB_YAML))
        assert compile_job(yaml.safe_load(dump_job_yaml(job))) == job
