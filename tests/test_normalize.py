# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for normalize.py module."""

import pytest

from jobwire.assembler import from_wire_document, to_wire_document
from jobwire.compiler import compile_job
from jobwire.normalize import (
    diff_jobs,
    normalize_job,
    normalize_notifications,
    normalize_tags,
    semantic_equals,
)
from jobwire.schemas import (
    Command,
    ErrorHandler,
    Job,
    JobReference,
    Notification,
    Plugin,
    RunnerSelector,
)


class TestNormalizeNotifications:
    """Tests for notification ordering."""

    def test_sorted_by_type(self):
        """Test notifications sort by trigger type."""
        result = normalize_notifications([
            Notification(type="on_success"),
            Notification(type="on_failure"),
            Notification(type="on_start"),
        ])
        assert [n.type for n in result] == ["on_failure", "on_start", "on_success"]

    def test_missing_and_unknown_last(self):
        """Test missing and unknown types sort last, in input order."""
        first_unknown = Notification(type="bogus", format="a")
        missing = Notification(format="b")
        result = normalize_notifications([first_unknown, Notification(type="on_start"), missing])
        assert result == [Notification(type="on_start"), first_unknown, missing]

    def test_order_insensitive_equality(self):
        """Test two orderings of one set are equal."""
        a = [Notification(type="on_success", webhook_urls=["https://a"]), Notification(type="on_failure")]
        b = [Notification(type="on_failure"), Notification(type="on_success", webhook_urls=["https://a"])]
        assert semantic_equals("notifications", a, b)

    def test_content_difference_detected(self):
        """Test a changed URL is a difference."""
        a = [Notification(type="on_success", webhook_urls=["https://a"])]
        b = [Notification(type="on_success", webhook_urls=["https://b"])]
        assert not semantic_equals("notifications", a, b)


class TestNormalizeTags:
    """Tests for tag string canonicalization."""

    def test_case_and_order(self):
        """Test case and order do not matter."""
        assert semantic_equals("tags", "Test,Terraform", "terraform,test")

    def test_canonical_form(self):
        """Test whitespace, empties and duplicates are dropped."""
        assert normalize_tags(" Web, ,db,WEB ") == "db,web"

    def test_empty(self):
        """Test empty and None tags."""
        assert normalize_tags(None) == ""
        assert normalize_tags("") == ""
        assert semantic_equals("tags", None, "")

    def test_different_tags(self):
        """Test different tag sets are not equal."""
        assert not semantic_equals("tags", "web", "web,db")


class TestNormalizeJob:
    """Tests for whole-job comparison."""

    def test_does_not_mutate_input(self):
        """Test the input job is left untouched."""
        job = Job(notification=[Notification(type="on_success"), Notification(type="on_failure")])
        normalize_job(job)
        assert [n.type for n in job.notification] == ["on_success", "on_failure"]

    def test_empty_equals_absent(self):
        """Test None, empty strings and empty lists compare equal."""
        assert semantic_equals("job", Job(name="a", description=""), Job(name="a"))

    def test_tag_runner_filter_normalized(self):
        """Test a tag runner filter is compared case-insensitively."""
        a = Job(runner_selector=[RunnerSelector(filter="Linux,Prod", filter_type="TAG_FILTER_AND")])
        b = Job(runner_selector=[RunnerSelector(filter="prod,linux", filter_type="TAG_FILTER_AND")])
        assert semantic_equals("job", a, b)

    def test_non_tag_runner_filter_kept(self):
        """Test a runner filter of another type is compared verbatim."""
        a = Job(runner_selector=[RunnerSelector(filter="Runner-A", filter_type="LOC_RUNNER")])
        b = Job(runner_selector=[RunnerSelector(filter="runner-a", filter_type="LOC_RUNNER")])
        assert not semantic_equals("job", a, b)

    def test_inferred_handler_node_step(self):
        """Test a handler job reference matches its inferred node_step."""
        def job(node_step):
            return Job(command=[Command(
                node_step_plugin=[Plugin(type="copyfile")],
                error_handler=[ErrorHandler(job=[JobReference(name="x", node_step=node_step)])],
            )])

        assert semantic_equals("job", job(None), job(True))
        assert not semantic_equals("job", job(None), job(False))

    def test_diff_jobs(self):
        """Test the differing attributes are listed."""
        a = Job(name="a", timeout="1h", schedule="0 0 1 ? * * *")
        b = Job(name="a", timeout="2h", schedule="0  0 1 ? * * *")
        assert diff_jobs(a, b) == ["timeout"]

    def test_unknown_kind(self):
        """Test an unknown comparison kind."""
        with pytest.raises(ValueError, match="Unknown comparison kind"):
            semantic_equals("options", [], [])


class TestServiceReadBack:
    """Tests for comparing a definition with the job the service returns."""

    def _desired(self):
        return Job(name="j", project_name="p", description="d", command=[Command(shell_command="echo hi")])

    def test_service_defaults_are_not_drift(self):
        """Test an id and service-filled defaults on the read-back job."""
        desired = self._desired()
        doc = to_wire_document(desired).value
        doc.update({
            "id": "6b3c9a1e",
            "loglevel": "INFO",
            "defaultTab": "nodes",
            "multipleExecutions": False,
            "preserveOrder": False,
        })
        doc["dispatch"] = {"threadcount": "1", "keepgoing": False, "rankOrder": "ascending",
                           "excludePrecedence": True, "successOnEmptyNodeFilter": False}
        doc["sequence"].update({"keepgoing": False, "strategy": "node-first"})
        actual = from_wire_document(doc).value
        assert actual.id == "6b3c9a1e"
        assert diff_jobs(desired, actual) == []
        assert semantic_equals("job", desired, actual)

    def test_non_default_value_is_drift(self):
        """Test a value other than the service default is still reported."""
        actual = self._desired()
        actual.log_level = "DEBUG"
        actual.node_filter_exclude_precedence = False
        assert diff_jobs(self._desired(), actual) == ["log_level", "node_filter_exclude_precedence"]

    def test_defaults_fill_unset_only(self):
        """Test explicit values survive normalization."""
        job = normalize_job(Job(log_level="WARN"))
        assert job.log_level == "WARN"
        assert job.default_tab == "nodes"
        assert job.max_thread_count == 1


class TestEmptyBlocks:
    """Tests for blocks that hold no values."""

    @pytest.mark.parametrize("definition", [
        {"name": "x", "log_limit": {}},
        {"name": "x", "runner_selector": {}},
        {"name": "x", "command": [{"shell_command": "echo", "plugins": {}}]},
    ])
    def test_round_trip(self, definition):
        """Test an empty block compares equal after a round trip."""
        job = compile_job(definition)
        back = from_wire_document(to_wire_document(job).value).value
        assert diff_jobs(job, back) == []
        assert semantic_equals("job", back, job)
