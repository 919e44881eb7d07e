# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Config tree schemas for jobwire.

Follows the job document pattern:
- JobDef (YAML) → compile → Job (config tree) → assemble → wire document (JSON)
- wire document → disassemble → Job → normalize → compare with desired state

Scalars the user may leave unset are Optional and default to None, which means
"let the remote service pick its default". Nested blocks are lists because
the user declares them as repeatable blocks; blocks the wire schema allows only
once hold at most one element in a valid tree.
"""

from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, TypeVar


@dataclass
class ScriptInterpreter:
    """Interpreter used to run an inline script or script file."""
    invocation_string: Optional[str] = None
    args_quoted: Optional[bool] = None


@dataclass
class Dispatch:
    """Node dispatch settings of a job reference."""
    thread_count: Optional[int] = None
    keep_going: Optional[bool] = None
    rank_attribute: Optional[str] = None
    rank_order: Optional[str] = None


@dataclass
class NodeFilter:
    """Node filter of a job reference, with its dispatch one level inside."""
    filter: Optional[str] = None
    exclude_filter: Optional[str] = None
    exclude_precedence: Optional[bool] = None
    dispatch: List[Dispatch] = field(default_factory=list)


@dataclass
class JobReference:
    """Another job invoked as a step, by uuid or by name/group/project."""
    uuid: Optional[str] = None
    name: Optional[str] = None
    group_name: Optional[str] = None
    project_name: Optional[str] = None
    run_for_each_node: Optional[bool] = None
    node_step: Optional[bool] = None
    args: Optional[str] = None
    import_options: Optional[bool] = None
    child_nodes: Optional[bool] = None
    fail_on_disable: Optional[bool] = None
    ignore_notifications: Optional[bool] = None
    node_filters: List[NodeFilter] = field(default_factory=list)


@dataclass
class Plugin:
    """A typed plugin with an untyped string configuration map."""
    type: Optional[str] = None
    config: Dict[str, str] = field(default_factory=dict)


@dataclass
class CommandPlugins:
    """Command-level plugin groups."""
    log_filter_plugin: List[Plugin] = field(default_factory=list)


@dataclass
class ErrorHandler:
    """Step run when its parent command fails.

    Same script fields as Command, but handlers never nest further.
    """
    description: Optional[str] = None
    shell_command: Optional[str] = None
    inline_script: Optional[str] = None
    script_url: Optional[str] = None
    script_file: Optional[str] = None
    script_file_args: Optional[str] = None
    file_extension: Optional[str] = None
    expand_token_in_script_file: Optional[bool] = None
    keep_going_on_success: Optional[bool] = None
    script_interpreter: List[ScriptInterpreter] = field(default_factory=list)
    job: List[JobReference] = field(default_factory=list)
    step_plugin: List[Plugin] = field(default_factory=list)
    node_step_plugin: List[Plugin] = field(default_factory=list)


@dataclass
class Command(ErrorHandler):
    """An ordered step in the command sequence."""
    error_handler: List[ErrorHandler] = field(default_factory=list)
    plugins: List[CommandPlugins] = field(default_factory=list)


@dataclass
class Option:
    """A named job input parameter.

    default_value is the option's default, not the value chosen at run time.
    """
    name: Optional[str] = None
    label: Optional[str] = None
    default_value: Optional[str] = None
    description: Optional[str] = None
    validation_regex: Optional[str] = None
    value_choices: List[str] = field(default_factory=list)
    value_choices_url: Optional[str] = None
    multi_value_delimiter: Optional[str] = None
    storage_path: Optional[str] = None
    type: Optional[str] = None
    date_format: Optional[str] = None
    required: Optional[bool] = None
    sort_values: Optional[bool] = None
    require_predefined_choice: Optional[bool] = None
    allow_multiple_values: Optional[bool] = None
    obscure_input: Optional[bool] = None
    exposed_to_scripts: Optional[bool] = None
    hidden: Optional[bool] = None
    is_date: Optional[bool] = None


@dataclass
class EmailNotification:
    recipients: List[str] = field(default_factory=list)
    subject: Optional[str] = None
    attach_log: Optional[bool] = None


@dataclass
class Notification:
    """Notification targets for one trigger (on_success, on_failure, ...).

    Webhook fields sit directly on the notification because the wire format
    keeps them at the top level of the trigger object.
    """
    type: Optional[str] = None
    webhook_urls: List[str] = field(default_factory=list)
    format: Optional[str] = None
    http_method: Optional[str] = None
    email: List[EmailNotification] = field(default_factory=list)
    plugin: List[Plugin] = field(default_factory=list)


@dataclass
class Orchestrator:
    """Node orchestration policy; only the parameters of `type` are set."""
    type: Optional[str] = None
    count: Optional[int] = None
    percent: Optional[int] = None
    attribute: Optional[str] = None
    sort: Optional[str] = None


@dataclass
class LogLimit:
    output: Optional[str] = None
    action: Optional[str] = None
    status: Optional[str] = None


@dataclass
class ProjectSchedule:
    name: Optional[str] = None
    job_options: Optional[str] = None


@dataclass
class RunnerSelector:
    filter: Optional[str] = None
    filter_mode: Optional[str] = None
    filter_type: Optional[str] = None


@dataclass
class Job:
    """The root of the config tree."""
    name: Optional[str] = None
    project_name: Optional[str] = None
    id: Optional[str] = None
    group_name: Optional[str] = None
    description: Optional[str] = None
    execution_enabled: bool = True
    default_tab: Optional[str] = None
    log_level: Optional[str] = None
    allow_concurrent_executions: Optional[bool] = None
    node_filter_editable: bool = True
    nodes_selected_by_default: bool = True
    schedule_enabled: bool = True
    retry: Optional[str] = None
    retry_delay: Optional[str] = None
    timeout: Optional[str] = None
    time_zone: Optional[str] = None
    max_thread_count: Optional[int] = None
    continue_on_error: Optional[bool] = None
    continue_next_node_on_error: Optional[bool] = None
    rank_attribute: Optional[str] = None
    rank_order: Optional[str] = None
    success_on_empty_node_filter: Optional[bool] = None
    command_ordering_strategy: Optional[str] = None
    node_filter_query: Optional[str] = None
    node_filter_exclude_query: Optional[str] = None
    node_filter_exclude_precedence: Optional[bool] = None
    preserve_options_order: Optional[bool] = None
    schedule: Optional[str] = None
    runner_selector: List[RunnerSelector] = field(default_factory=list)
    command: List[Command] = field(default_factory=list)
    option: List[Option] = field(default_factory=list)
    notification: List[Notification] = field(default_factory=list)
    orchestrator: List[Orchestrator] = field(default_factory=list)
    log_limit: List[LogLimit] = field(default_factory=list)
    global_log_filter: List[Plugin] = field(default_factory=list)
    execution_lifecycle_plugin: List[Plugin] = field(default_factory=list)
    project_schedule: List[ProjectSchedule] = field(default_factory=list)


# =============================================================================
# Conversion results
# =============================================================================

T = TypeVar("T")


@dataclass
class Diagnostic:
    """A skipped element, reported instead of aborting the conversion."""
    path: str
    message: str
    severity: str = "warning"

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class ConversionResult(Generic[T]):
    """Value produced by a conversion entry point plus its diagnostics."""
    value: T
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no element was dropped."""
        return not self.diagnostics
