# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Schedule converter.

Config form: one seven-field cron string
    "seconds minute hour day-of-month month day-of-week year"

Wire form:
    {"time": {"seconds": ..., "minute": ..., "hour": ...},
     "month": {"month": ..., "day": <day-of-month>},
     "weekday": {"day": <day-of-week>},
     "year": {"year": ...}}

Exactly one of day-of-month and day-of-week is "?", or both are "*". Both
are written literally so the sentinel survives a round trip.
"""

import logging
from typing import Any, Dict, Optional

from jobwire.converters.context import ConversionContext
from jobwire.errors import InvariantViolation, MalformedWireInput
from jobwire.fields import FieldSpec, fields_from_wire


logger = logging.getLogger(__name__)

NO_SPECIFIC_VALUE = "?"
ANY_VALUE = "*"
CRON_FIELD_COUNT = 7

TIME_FIELDS = (
    FieldSpec("seconds", "seconds"),
    FieldSpec("minute", "minute"),
    FieldSpec("hour", "hour"),
)


def schedule_to_wire(schedule: Optional[str], ctx: ConversionContext) -> Optional[Dict[str, Any]]:
    """Split a cron string into the wire schedule object.

    Raises:
        InvariantViolation: If the string does not have seven fields or the
            day-of-month / day-of-week sentinel rule is broken
    """
    if not schedule or not schedule.strip():
        return None
    parts = schedule.split()
    if len(parts) != CRON_FIELD_COUNT:
        raise InvariantViolation(
            f"schedule must have {CRON_FIELD_COUNT} fields, got {len(parts)}: '{schedule}'",
            path=ctx.path,
        )
    seconds, minute, hour, day_of_month, month, day_of_week, year = parts
    if day_of_month == day_of_week:
        valid = day_of_month == ANY_VALUE
    else:
        valid = NO_SPECIFIC_VALUE in (day_of_month, day_of_week)
    if not valid:
        raise InvariantViolation(
            "exactly one of day-of-month and day-of-week must be '?' unless both are '*'",
            path=ctx.path,
        )
    return {
        "time": {"seconds": seconds, "minute": minute, "hour": hour},
        "month": {"month": month, "day": day_of_month},
        "weekday": {"day": day_of_week},
        "year": {"year": year},
    }


def schedule_from_wire(raw: Any, ctx: ConversionContext) -> Optional[str]:
    """Rebuild the cron string from a wire schedule object.

    A missing day field is "?" next to a concrete value in the other one and
    "*" otherwise.
    """
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise MalformedWireInput("schedule must be an object", path=ctx.path)

    crontab = raw.get("crontab")
    if crontab is not None:
        if not isinstance(crontab, str):
            raise MalformedWireInput("crontab must be a string", path=ctx.at("crontab").path)
        return " ".join(crontab.split())

    time = raw.get("time") or {}
    if not isinstance(time, dict):
        raise MalformedWireInput("time must be an object", path=ctx.at("time").path)
    time_values = fields_from_wire(time, TIME_FIELDS, ctx.at("time").path)

    month, day_of_month = _part(raw, "month", "month", ctx)
    _, legacy_day_of_month = _part(raw, "dayofmonth", None, ctx)
    _, day_of_week = _part(raw, "weekday", None, ctx)
    year, _ = _part(raw, "year", "year", ctx)
    day_of_month = day_of_month or legacy_day_of_month

    if day_of_month is None:
        day_of_month = ANY_VALUE if day_of_week in (None, ANY_VALUE, NO_SPECIFIC_VALUE) else NO_SPECIFIC_VALUE
    if day_of_week is None:
        day_of_week = ANY_VALUE if day_of_month in (ANY_VALUE, NO_SPECIFIC_VALUE) else NO_SPECIFIC_VALUE

    parts = [
        time_values.get("seconds", "0"),
        time_values.get("minute", "0"),
        time_values.get("hour", "0"),
        day_of_month,
        month or "*",
        day_of_week,
        year or "*",
    ]
    return " ".join(parts)


def _part(raw: Dict[str, Any], key: str, value_key: Optional[str], ctx: ConversionContext):
    """Return (value, day) of a schedule part given as an object or a plain string."""
    part = raw.get(key)
    if part is None:
        return None, None
    if isinstance(part, (str, int)):
        return (str(part), None) if value_key else (None, str(part))
    if not isinstance(part, dict):
        raise MalformedWireInput(f"{key} must be an object", path=ctx.at(key).path)
    values = fields_from_wire(
        part,
        (FieldSpec("value", value_key or "day"), FieldSpec("day", "day")),
        ctx.at(key).path,
    )
    value = values.get("value") if value_key else None
    return value, values.get("day")
