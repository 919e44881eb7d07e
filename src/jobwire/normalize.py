# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Normalization layer - canonical forms for equality checks.

The remote service reorders notification blocks, case-folds tag filters and
fills in defaults. Comparing normalized values makes a reconciliation pass
report no drift when nothing meaningful changed. Normalized values are used
for comparison only, never written back.
"""

import copy
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from jobwire.converters.notifications import NOTIFICATION_TYPES
from jobwire.schemas import Job, Notification


logger = logging.getLogger(__name__)

# Sorts after every valid trigger type
_UNKNOWN_TYPE_KEY = "\uffff"

# Values the service fills in for attributes a job leaves unset
SERVICE_DEFAULTS: Dict[str, Any] = {
    "log_level": "INFO",
    "default_tab": "nodes",
    "allow_concurrent_executions": False,
    "max_thread_count": 1,
    "continue_on_error": False,
    "continue_next_node_on_error": False,
    "rank_order": "ascending",
    "success_on_empty_node_filter": False,
    "command_ordering_strategy": "node-first",
    "node_filter_exclude_precedence": True,
    "preserve_options_order": False,
}

# Assigned by the service, never part of a definition
_SERVER_ASSIGNED = ("id",)


def normalize_notifications(notifications: List[Notification]) -> List[Notification]:
    """Stable sort by trigger type; missing or unknown types go last."""
    def sort_key(notification: Notification) -> str:
        if notification.type in NOTIFICATION_TYPES:
            return notification.type
        return _UNKNOWN_TYPE_KEY

    return sorted(notifications, key=sort_key)


def normalize_tags(tags: Optional[str]) -> str:
    """Canonical comma-separated tag string.

    "Test, Terraform,test" → "terraform,test"
    """
    if not tags:
        return ""
    parts = {part.strip().lower() for part in tags.split(",")}
    return ",".join(sorted(part for part in parts if part))


def _is_tag_filter(filter_type: Optional[str]) -> bool:
    return bool(filter_type) and "tag" in filter_type.lower()


def normalize_job(job: Job) -> Job:
    """Return a canonical copy of a job for comparison.

    - notifications sorted by trigger type
    - tag-typed runner selector filters normalized
    - error handler job references carry their inferred node_step
    - schedule whitespace collapsed, lifecycle plugins ordered by type
    - unset attributes filled with SERVICE_DEFAULTS
    """
    job = copy.deepcopy(job)
    for name, default in SERVICE_DEFAULTS.items():
        if getattr(job, name) in (None, ""):
            setattr(job, name, default)
    job.notification = normalize_notifications(job.notification)
    job.execution_lifecycle_plugin = sorted(
        job.execution_lifecycle_plugin, key=lambda plugin: plugin.type or _UNKNOWN_TYPE_KEY
    )
    if job.schedule:
        job.schedule = " ".join(job.schedule.split())

    for selector in job.runner_selector:
        if _is_tag_filter(selector.filter_type):
            selector.filter = normalize_tags(selector.filter)

    for command in job.command:
        inherited = bool(command.node_step_plugin)
        for handler in command.error_handler:
            for ref in handler.job:
                if ref.node_step is None:
                    ref.node_step = inherited
    return job


def _canonical(value: Any) -> Any:
    """Map "", [] and {} to None all the way down."""
    if isinstance(value, dict):
        result = {k: _canonical(v) for k, v in value.items()}
        return result if any(v is not None for v in result.values()) else None
    if isinstance(value, list):
        items = [item for item in (_canonical(v) for v in value) if item is not None]
        return items or None
    if value == "":
        return None
    return value


def job_fingerprint(job: Job) -> Dict[str, Any]:
    """Canonical plain-data form of a normalized job, without server-assigned ids."""
    data = asdict(normalize_job(job))
    for name in _SERVER_ASSIGNED:
        data.pop(name, None)
    return _canonical(data) or {}


def diff_jobs(desired: Job, actual: Job) -> List[str]:
    """List the top-level job attributes whose normalized values differ."""
    left = job_fingerprint(desired)
    right = job_fingerprint(actual)
    return sorted(key for key in set(left) | set(right) if left.get(key) != right.get(key))


def _notifications_equal(a: List[Notification], b: List[Notification]) -> bool:
    return _canonical([asdict(n) for n in normalize_notifications(a)]) == \
        _canonical([asdict(n) for n in normalize_notifications(b)])


def _tags_equal(a: Optional[str], b: Optional[str]) -> bool:
    return normalize_tags(a) == normalize_tags(b)


def _jobs_equal(a: Job, b: Job) -> bool:
    return job_fingerprint(a) == job_fingerprint(b)


_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "notifications": _notifications_equal,
    "tags": _tags_equal,
    "job": _jobs_equal,
}


def semantic_equals(kind: str, a: Any, b: Any) -> bool:
    """Compare two values of one kind after normalization.

    Args:
        kind: "notifications", "tags" or "job"
        a: First value
        b: Second value

    Raises:
        ValueError: If kind is not one of the supported kinds
    """
    comparator = _COMPARATORS.get(kind)
    if comparator is None:
        raise ValueError(f"Unknown comparison kind: {kind!r} (expected one of {sorted(_COMPARATORS)})")
    equal = comparator(a, b)
    if not equal:
        logger.debug(f"Semantic difference in {kind}")
    return equal
