# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Notification set converter.

The wire notification object is keyed by trigger, with the underscore of the
config type removed (on_avg_duration → onavgduration). Each trigger object
holds its email target, the webhook fields and the plugin targets:

    "notification": {
      "onfailure": {
        "email": {"recipients": "a@x,b@x", "subject": "...", "attachLog": true},
        "urls": "https://hook/1,https://hook/2",
        "format": "json",
        "httpMethod": "post",
        "plugin": [{"type": "SlackNotification", "configuration": {...}}]
      }
    }

Exported documents may instead carry a list of targets per trigger, or nest
the webhook fields under "webhook"; both are read.
"""

import logging
from typing import Any, Dict, List

from jobwire.converters.context import ConversionContext
from jobwire.converters.plugins import plugin_from_wire, plugin_to_wire
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, FieldType, Presence, fields_from_wire, fields_to_wire
from jobwire.schemas import EmailNotification, Notification


logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = (
    "on_success",
    "on_failure",
    "on_start",
    "on_avg_duration",
    "on_retryable_failure",
)

EMAIL_FIELDS = (
    FieldSpec("recipients", "recipients", FieldType.CSV_LIST),
    FieldSpec("subject", "subject"),
    FieldSpec("attach_log", "attachLog", FieldType.BOOL, Presence.NON_NULL),
)

WEBHOOK_FIELDS = (
    FieldSpec("webhook_urls", "urls", FieldType.CSV_LIST),
    FieldSpec("format", "format"),
    FieldSpec("http_method", "httpMethod"),
)


def wire_trigger_key(notification_type: str) -> str:
    """on_failure → onfailure"""
    return notification_type.replace("_", "")


_TYPE_BY_KEY = {wire_trigger_key(t): t for t in NOTIFICATION_TYPES}


# =============================================================================
# Config → wire
# =============================================================================

def notifications_to_wire(
    notifications: List[Notification],
    ctx: ConversionContext,
) -> Dict[str, Dict[str, Any]]:
    """Convert the notification set to a map of trigger key → targets.

    Raises:
        InvariantViolation: If a type is unknown or given twice
        TooManyNestedBlocksError: If a notification has more than one email
            or plugin target
    """
    result: Dict[str, Dict[str, Any]] = {}
    for i, notification in enumerate(notifications):
        n_ctx = ctx.at("notification", i)
        if not notification.type:
            n_ctx.skip("notification has no type")
            continue
        if notification.type not in NOTIFICATION_TYPES:
            raise InvariantViolation(
                f"unknown notification type '{notification.type}'", path=n_ctx.at("type").path
            )
        key = wire_trigger_key(notification.type)
        if key in result:
            raise InvariantViolation(
                f"duplicate notification block for '{notification.type}'", path=n_ctx.path
            )
        result[key] = _trigger_to_wire(notification, n_ctx)
    return result


def _trigger_to_wire(notification: Notification, ctx: ConversionContext) -> Dict[str, Any]:
    trigger = fields_to_wire(notification, WEBHOOK_FIELDS)

    email = ctx.single(notification.email, "email", "notification")
    if email is not None:
        trigger["email"] = fields_to_wire(email, EMAIL_FIELDS)

    plugin = ctx.single(notification.plugin, "plugin", "notification")
    if plugin is not None:
        wire = plugin_to_wire(plugin, ctx.at("plugin"))
        if wire is not None:
            trigger["plugin"] = [wire]
    return trigger


# =============================================================================
# Wire → config
# =============================================================================

def notifications_from_wire(raw: Any, ctx: ConversionContext) -> List[Notification]:
    """Read the trigger map; unknown trigger keys are skipped."""
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise MalformedWireInput("notification must be an object", path=ctx.path)

    result = []
    for key in sorted(raw):
        key_ctx = ctx.at(key)
        notification_type = _TYPE_BY_KEY.get(key)
        if notification_type is None:
            key_ctx.skip(f"unknown notification trigger '{key}'")
            continue
        result.append(_trigger_from_wire(notification_type, raw[key], key_ctx))
    return result


def _trigger_from_wire(notification_type: str, raw: Any, ctx: ConversionContext) -> Notification:
    if isinstance(raw, dict):
        targets = [raw]
    elif isinstance(raw, list):
        targets = raw
    else:
        raise MalformedWireInput("notification trigger must be an object or a list", path=ctx.path)

    notification = Notification(type=notification_type)
    for i, target in enumerate(targets):
        target_ctx = ctx.at(i) if len(targets) > 1 else ctx
        if not isinstance(target, dict):
            raise MalformedWireInput("notification target must be an object", path=target_ctx.path)

        email = target.get("email")
        if email is not None:
            if not isinstance(email, dict):
                raise MalformedWireInput("email must be an object", path=target_ctx.at("email").path)
            notification.email.append(
                EmailNotification(**fields_from_wire(email, EMAIL_FIELDS, target_ctx.at("email").path))
            )

        webhook = fields_from_wire(target, WEBHOOK_FIELDS, target_ctx.path)
        nested = target.get("webhook")
        if isinstance(nested, dict):
            webhook = dict(fields_from_wire(nested, WEBHOOK_FIELDS, target_ctx.at("webhook").path), **webhook)
        for name, value in webhook.items():
            if not getattr(notification, name):
                setattr(notification, name, value)

        plugins = target.get("plugin")
        if isinstance(plugins, dict):
            plugins = [plugins]
        for j, item in enumerate(plugins or []):
            plugin = plugin_from_wire(item, target_ctx.at("plugin", j))
            if plugin is not None:
                notification.plugin.append(plugin)
    return notification
