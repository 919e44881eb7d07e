# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Config tree schemas."""

from jobwire.schemas.job_def import (
    Command,
    CommandPlugins,
    ConversionResult,
    Diagnostic,
    Dispatch,
    EmailNotification,
    ErrorHandler,
    Job,
    JobReference,
    LogLimit,
    NodeFilter,
    Notification,
    Option,
    Orchestrator,
    Plugin,
    ProjectSchedule,
    RunnerSelector,
    ScriptInterpreter,
)

__all__ = [
    "Command",
    "CommandPlugins",
    "ConversionResult",
    "Diagnostic",
    "Dispatch",
    "EmailNotification",
    "ErrorHandler",
    "Job",
    "JobReference",
    "LogLimit",
    "NodeFilter",
    "Notification",
    "Option",
    "Orchestrator",
    "Plugin",
    "ProjectSchedule",
    "RunnerSelector",
    "ScriptInterpreter",
]
