"""Next-occurrence calculation for recurring tasks.

Rules of the form ``every [N] day|week|month|year`` are computed with plain
calendar arithmetic (``FixedIntervalStrategy``). Everything else is converted
into a ``dateutil.rrule`` and expanded by ``RRuleStrategy``. ``classify`` is
the single place deciding which strategy handles a rule.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol

from dateutil import rrule

from vault_tasks.task_dates import (
    add_days,
    add_months,
    add_years,
    days_between,
    format_task_date,
    parse_task_date,
    shift_task_date,
)
from vault_tasks.task_model import (
    RECURRING_DATE_FIELDS,
    STATUS_INCOMPLETE,
    Task,
)
from vault_tasks.task_serializer import build_line
from vault_tasks.urgency import score

logger = logging.getLogger(__name__)

KIND_SIMPLE = "simple"
KIND_COMPLEX = "complex"

WHEN_DONE_SUFFIX = " when done"

_SIMPLE_RULE = re.compile(
    r"^every (?:(?P<interval>\d+) (?P<unit>day|week|month|year)s?"
    r"|(?P<single>day|week|month|year))$"
)

_WEEKDAYS = {
    "monday": rrule.MO,
    "tuesday": rrule.TU,
    "wednesday": rrule.WE,
    "thursday": rrule.TH,
    "friday": rrule.FR,
    "saturday": rrule.SA,
    "sunday": rrule.SU,
}
_WEEKDAYS.update({name[:3]: weekday for name, weekday in list(_WEEKDAYS.items())})

_MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

_ORDINAL_WORDS = {"first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5}

_FREQUENCIES = {
    "day": rrule.DAILY,
    "week": rrule.WEEKLY,
    "month": rrule.MONTHLY,
    "year": rrule.YEARLY,
}

_INTERVAL_RULE = re.compile(r"^(?:(?P<interval>\d+) )?(?P<unit>day|week|month|year)s?$")
_WEEKS_ON_RULE = re.compile(r"^(?:(?P<interval>\d+) )?weeks? on (?P<days>.+)$")
_MONTHS_ON_RULE = re.compile(r"^(?:(?P<interval>\d+) )?months? on the (?P<spec>.+)$")
_MONTH_WEEKDAY_SPEC = re.compile(
    r"^(?:(?P<ordinal>\d+(?:st|nd|rd|th)?|first|second|third|fourth|fifth) )?"
    r"(?P<last>last )?(?P<weekday>[a-z]+)$"
)
_DAY_OF_MONTH = re.compile(r"^(?:(?P<day>\d+)(?:st|nd|rd|th)?|(?P<last>last))$")
_YEARLY_RULE = re.compile(r"^(?P<months>[a-z ,]+?) on the (?P<days>.+)$")
_LIST_SEPARATOR = re.compile(r"\s*,\s*|\s+and\s+")


@dataclass(frozen=True)
class RecurrenceSpec:
    rule: str
    when_done: bool

    @property
    def kind(self) -> str:
        return classify(self.rule)


class RecurrenceStrategy(Protocol):
    def next_after(self, rule: str, anchor: date) -> date | None:
        ...


def parse_recurrence(text: str) -> RecurrenceSpec:
    trimmed = text.strip()
    when_done = trimmed.lower().endswith(WHEN_DONE_SUFFIX)
    if when_done:
        trimmed = trimmed[: -len(WHEN_DONE_SUFFIX)].strip()
    return RecurrenceSpec(rule=trimmed, when_done=when_done)


def classify(rule: str) -> str:
    if _SIMPLE_RULE.match(rule.strip().lower()):
        return KIND_SIMPLE
    return KIND_COMPLEX


class FixedIntervalStrategy:
    """Adds a fixed number of days, weeks, months or years to the anchor."""

    def next_after(self, rule: str, anchor: date) -> date | None:
        match = _SIMPLE_RULE.match(rule.strip().lower())
        if match is None:
            return None
        interval = int(match.group("interval") or 1)
        if interval < 1:
            return None
        unit = match.group("unit") or match.group("single")
        if unit == "day":
            return add_days(anchor, interval)
        if unit == "week":
            return add_days(anchor, interval * 7)
        if unit == "month":
            return add_months(anchor, interval)
        return add_years(anchor, interval)


class RRuleStrategy:
    """Expands weekday, ordinal and month/day rules with ``dateutil.rrule``."""

    def build(self, rule: str, anchor: date) -> rrule.rrule | None:
        text = " ".join(rule.strip().lower().split())
        if not text.startswith("every "):
            return None
        options = _rule_options(text[len("every "):])
        if options is None:
            return None
        freq = options.pop("freq")
        dtstart = datetime(anchor.year, anchor.month, anchor.day)
        return rrule.rrule(freq, dtstart=dtstart, **options)

    def next_after(self, rule: str, anchor: date) -> date | None:
        try:
            expanded = self.build(rule, anchor)
            if expanded is None:
                return None
            following = expanded.after(
                datetime(anchor.year, anchor.month, anchor.day), inc=False
            )
        except ValueError as exc:
            logger.warning("Recurrence rule %r rejected: %s", rule, exc)
            return None
        return following.date() if following is not None else None


STRATEGIES: dict[str, RecurrenceStrategy] = {
    KIND_SIMPLE: FixedIntervalStrategy(),
    KIND_COMPLEX: RRuleStrategy(),
}


def _interval(raw: str | None) -> int:
    return int(raw) if raw else 1


def _split_list(raw: str) -> list[str]:
    return [item for item in _LIST_SEPARATOR.split(raw.strip()) if item]


def _parse_weekdays(raw: str) -> list[rrule.weekday] | None:
    weekdays = []
    for name in _split_list(raw):
        weekday = _WEEKDAYS.get(name)
        if weekday is None:
            return None
        weekdays.append(weekday)
    return weekdays or None


def _parse_month_days(raw: str) -> list[int] | None:
    days = []
    for item in _split_list(raw):
        match = _DAY_OF_MONTH.match(item)
        if match is None:
            return None
        if match.group("last"):
            days.append(-1)
            continue
        day = int(match.group("day"))
        if not 1 <= day <= 31:
            return None
        days.append(day)
    return days or None


def _parse_ordinal(raw: str | None) -> int:
    if not raw:
        return 1
    if raw in _ORDINAL_WORDS:
        return _ORDINAL_WORDS[raw]
    return int(re.match(r"\d+", raw).group(0))


def _rule_options(pattern: str) -> dict | None:
    """Translate the text after ``every`` into rrule keyword arguments."""
    interval_match = _INTERVAL_RULE.match(pattern)
    if interval_match:
        return {
            "freq": _FREQUENCIES[interval_match.group("unit")],
            "interval": _interval(interval_match.group("interval")),
        }

    if pattern == "weekday":
        return {"freq": rrule.WEEKLY, "byweekday": _weekday_range(rrule.MO, rrule.FR)}
    if pattern == "weekend":
        return {"freq": rrule.WEEKLY, "byweekday": [rrule.SA, rrule.SU]}

    weeks_match = _WEEKS_ON_RULE.match(pattern)
    if weeks_match:
        weekdays = _parse_weekdays(weeks_match.group("days"))
        if weekdays is None:
            return None
        return {
            "freq": rrule.WEEKLY,
            "interval": _interval(weeks_match.group("interval")),
            "byweekday": weekdays,
        }

    weekdays = _parse_weekdays(pattern)
    if weekdays is not None:
        return {"freq": rrule.WEEKLY, "byweekday": weekdays}

    months_match = _MONTHS_ON_RULE.match(pattern)
    if months_match:
        interval = _interval(months_match.group("interval"))
        spec = months_match.group("spec")
        month_days = _parse_month_days(spec)
        if month_days is not None:
            return {"freq": rrule.MONTHLY, "interval": interval, "bymonthday": month_days}
        weekday_match = _MONTH_WEEKDAY_SPEC.match(spec)
        if weekday_match and weekday_match.group("weekday") in _WEEKDAYS:
            ordinal = _parse_ordinal(weekday_match.group("ordinal"))
            if weekday_match.group("last"):
                ordinal = -ordinal
            weekday = _WEEKDAYS[weekday_match.group("weekday")]
            return {"freq": rrule.MONTHLY, "interval": interval, "byweekday": [weekday(ordinal)]}
        return None

    yearly_match = _YEARLY_RULE.match(pattern)
    if yearly_match:
        months = [_MONTHS.get(name) for name in _split_list(yearly_match.group("months"))]
        month_days = _parse_month_days(yearly_match.group("days"))
        if not months or None in months or month_days is None:
            return None
        return {"freq": rrule.YEARLY, "bymonth": months, "bymonthday": month_days}

    return None


def _weekday_range(first: rrule.weekday, last: rrule.weekday) -> list[rrule.weekday]:
    ordered = [rrule.MO, rrule.TU, rrule.WE, rrule.TH, rrule.FR, rrule.SA, rrule.SU]
    return ordered[ordered.index(first) : ordered.index(last) + 1]


def primary_date_field(task: Task) -> str | None:
    for field in RECURRING_DATE_FIELDS:
        if getattr(task, field):
            return field
    return None


def reference_date(task: Task) -> date | None:
    """First parseable date among due, scheduled and start."""
    for field in RECURRING_DATE_FIELDS:
        parsed = parse_task_date(getattr(task, field))
        if parsed is not None:
            return parsed
    return None


def next_occurrence_date(spec: RecurrenceSpec, anchor: date) -> date | None:
    return STRATEGIES[spec.kind].next_after(spec.rule, anchor)


def next_occurrence(
    task: Task,
    today: date,
    completion_date: date | None = None,
) -> Task | None:
    """Build the uncompleted successor of a recurring task.

    Returns ``None`` when the task does not recur, has no date to anchor on,
    or its rule cannot be interpreted.
    """
    if not task.recurrence:
        return None

    spec = parse_recurrence(task.recurrence)
    from_completion = spec.when_done and completion_date is not None
    anchor = completion_date if from_completion else reference_date(task)
    if anchor is None:
        logger.debug("No anchor date for recurring task %s", task.id)
        return None

    next_date = next_occurrence_date(spec, anchor)
    if next_date is None:
        logger.warning(
            "Could not compute next occurrence for %s from rule %r",
            task.id,
            task.recurrence,
        )
        return None

    primary_field = primary_date_field(task)
    primary_date = parse_task_date(getattr(task, primary_field)) if primary_field else None
    updates: dict[str, str | None] = {}

    if from_completion:
        if primary_field is None:
            updates["due_date"] = format_task_date(next_date)
        else:
            updates[primary_field] = format_task_date(next_date)
            for field in RECURRING_DATE_FIELDS:
                if field == primary_field:
                    continue
                other = parse_task_date(getattr(task, field))
                if other is None or primary_date is None:
                    continue
                offset = days_between(primary_date, other)
                updates[field] = format_task_date(add_days(next_date, offset))
    elif primary_date is not None:
        delta = days_between(primary_date, next_date)
        for field in RECURRING_DATE_FIELDS:
            if getattr(task, field):
                updates[field] = shift_task_date(getattr(task, field), delta)
    else:
        updates["due_date"] = format_task_date(next_date)

    successor = replace(
        task,
        line_number=task.line_number + 1,
        status=STATUS_INCOMPLETE,
        status_symbol=" ",
        done_date=None,
        created_date=None,
        **updates,
    )
    successor = replace(successor, urgency=score(successor, today))
    return replace(successor, original_markdown=build_line(successor))
