"""Line-based filter and sort language for task collections.

A query is a block of lines. Lines starting with ``sort by`` are sort
directives, every other non-comment line is a filter and all filters must
pass. A filter line may combine sub-filters with ``AND``, ``OR`` or a leading
``NOT`` (upper case only); otherwise it is matched against the recognizer
table below and, failing that, used as a description substring search.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable

from vault_tasks.task_dates import format_task_date
from vault_tasks.task_model import (
    PRIORITY_LEVELS,
    STATUS_CANCELLED,
    STATUS_COMPLETE,
    STATUS_IN_PROGRESS,
    STATUS_INCOMPLETE,
    STATUS_NON_TASK,
    Task,
)

SORT_PREFIX = "sort by"
COMMENT_PREFIX = "#"
URGENCY_TOLERANCE = 0.001

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")
_DATE_LITERAL = r"\d{4}-\d{2}-\d{2}"

Evaluator = Callable[[Task, "re.Match[str]", date], bool]


@dataclass(frozen=True)
class ParsedQuery:
    filters: list[str]
    sort_commands: list[str]


@dataclass(frozen=True)
class Recognizer:
    """A filter form: a matcher over the lowercased line and its evaluator."""

    name: str
    pattern: re.Pattern[str]
    evaluate: Evaluator


def parse_query(query_text: str) -> ParsedQuery:
    filters: list[str] = []
    sort_commands: list[str] = []
    for raw_line in query_text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        if line.lower().startswith(SORT_PREFIX):
            sort_commands.append(line)
        else:
            filters.append(line)
    return ParsedQuery(filters=filters, sort_commands=sort_commands)


def apply_filter(task: Task, filter_text: str, today: date) -> bool:
    """Return whether ``task`` passes a single filter line."""
    original = filter_text.strip()

    if " AND " in original:
        return all(apply_filter(task, part, today) for part in original.split(" AND "))
    if " OR " in original:
        return any(apply_filter(task, part, today) for part in original.split(" OR "))
    # A leading "NOT " lowers into the recognizer table: "NOT done" is the
    # "not done" status filter, anything else reaches the generic negation.
    lowered = original.lower()
    for recognizer in RECOGNIZERS:
        match = recognizer.pattern.fullmatch(lowered)
        if match is not None:
            return recognizer.evaluate(task, match, today)

    return lowered in task.description.lower()


def apply_sorting(tasks: list[Task], sort_commands: list[str]) -> list[Task]:
    if not sort_commands:
        return sorted(tasks, key=lambda task: task.urgency, reverse=True)

    ordered = list(tasks)
    # Applied last to first so the first directive has final precedence.
    for command in reversed(sort_commands):
        normalized = command.strip().lower()
        if normalized in {"sort by urgency", "sort by urgency reverse"}:
            reverse_order = "reverse" not in normalized
            ordered.sort(key=lambda task: task.urgency, reverse=reverse_order)
    return ordered


def evaluate(
    tasks: list[Task],
    query_text: str,
    today: date,
    *,
    include_non_tasks: bool = False,
) -> list[Task]:
    """Filter ``tasks`` with every filter line, then sort the survivors."""
    query = parse_query(query_text)
    matched = [
        task
        for task in tasks
        if (include_non_tasks or task.status != STATUS_NON_TASK)
        and all(apply_filter(task, line, today) for line in query.filters)
    ]
    return apply_sorting(matched, query.sort_commands)


def _status_in(*statuses: str) -> Evaluator:
    def evaluate_status(task: Task, _match: re.Match[str], _today: date) -> bool:
        return task.status in statuses

    return evaluate_status


def _negate(task: Task, match: re.Match[str], today: date) -> bool:
    return not apply_filter(task, match.group("rest"), today)


def _has_date(field: str, expected: bool) -> Evaluator:
    def evaluate_presence(task: Task, _match: re.Match[str], _today: date) -> bool:
        return (getattr(task, field) is not None) is expected

    return evaluate_presence


def _compare_date(field: str) -> Evaluator:
    def evaluate_comparison(task: Task, match: re.Match[str], today: date) -> bool:
        value = getattr(task, field)
        if value is None:
            return False
        target = match.group("date")
        if target == "today":
            target = format_task_date(today)
        relation = match.groupdict().get("relation")
        if relation == "before":
            return value < target
        if relation == "after":
            return value > target
        return value == target

    return evaluate_comparison


def _date_recognizers(field: str, noun: str, keywords: tuple[str, ...]) -> list[Recognizer]:
    keyword = "(?:" + "|".join(keywords) + ")"
    return [
        Recognizer(f"has {noun} date", re.compile(f"has {noun} date"), _has_date(field, True)),
        Recognizer(f"no {noun} date", re.compile(f"no {noun} date"), _has_date(field, False)),
        Recognizer(
            f"{noun} relative",
            re.compile(
                keyword
                + r"\s+(?P<relation>before|after)\s+(?P<date>today|"
                + _DATE_LITERAL
                + ")"
            ),
            _compare_date(field),
        ),
        Recognizer(
            f"{noun} on",
            re.compile(keyword + r"\s+(?:on\s+)?(?P<date>today|" + _DATE_LITERAL + ")"),
            _compare_date(field),
        ),
    ]


def _normalize_tag(tag: str) -> str:
    return tag.strip().lstrip("#").lower()


def _has_tags(expected: bool) -> Evaluator:
    def evaluate_tags(task: Task, _match: re.Match[str], _today: date) -> bool:
        return bool(task.tags) is expected

    return evaluate_tags


def _tag_includes(task: Task, match: re.Match[str], _today: date) -> bool:
    needle = _normalize_tag(match.group("text"))
    return any(needle in _normalize_tag(tag) for tag in task.tags)


def _has_tag(task: Task, match: re.Match[str], _today: date) -> bool:
    needle = _normalize_tag(match.group("text"))
    return any(_normalize_tag(tag) == needle for tag in task.tags)


def _text_contains(attribute: str, expected: bool) -> Evaluator:
    def evaluate_text(task: Task, match: re.Match[str], _today: date) -> bool:
        haystack = getattr(task, attribute).lower()
        return (match.group("text").strip() in haystack) is expected

    return evaluate_text


def _priority_is(task: Task, match: re.Match[str], _today: date) -> bool:
    level = match.group("level")
    if level == "none":
        return task.priority is None
    return task.priority == level


def _urgency_threshold(match: re.Match[str]) -> float | None:
    number = _LEADING_NUMBER.match(match.group("value").strip())
    if number is None:
        return None
    return float(number.group(0))


def _urgency_compare(relation: str) -> Evaluator:
    def evaluate_urgency(task: Task, match: re.Match[str], _today: date) -> bool:
        threshold = _urgency_threshold(match)
        if threshold is None:
            return False
        if relation == "above":
            return task.urgency > threshold
        if relation == "below":
            return task.urgency < threshold
        return abs(task.urgency - threshold) < URGENCY_TOLERANCE

    return evaluate_urgency


RECOGNIZERS: list[Recognizer] = [
    Recognizer("not done", re.compile("not done"), _status_in(STATUS_INCOMPLETE, STATUS_IN_PROGRESS)),
    Recognizer("done", re.compile("done"), _status_in(STATUS_COMPLETE)),
    Recognizer("not", re.compile(r"not (?P<rest>.+)"), _negate),
    Recognizer("cancelled", re.compile("cancelled"), _status_in(STATUS_CANCELLED)),
    Recognizer("in progress", re.compile("in progress"), _status_in(STATUS_IN_PROGRESS)),
    *_date_recognizers("due_date", "due", ("due",)),
    *_date_recognizers("scheduled_date", "scheduled", ("scheduled",)),
    *_date_recognizers("start_date", "start", ("starts", "start")),
    *_date_recognizers("done_date", "done", ("done",)),
    Recognizer("no tags", re.compile("no tags"), _has_tags(False)),
    Recognizer("has tags", re.compile("has tags"), _has_tags(True)),
    Recognizer("tag includes", re.compile(r"tag includes (?P<text>.+)"), _tag_includes),
    Recognizer("has tag", re.compile(r"has tag (?P<text>.+)"), _has_tag),
    Recognizer(
        "path does not include",
        re.compile(r"path does not include\s*(?P<text>.*)"),
        _text_contains("file_path", False),
    ),
    Recognizer(
        "path includes",
        re.compile(r"path includes\s*(?P<text>.*)"),
        _text_contains("file_path", True),
    ),
    Recognizer(
        "description does not include",
        re.compile(r"description does not include\s*(?P<text>.*)"),
        _text_contains("description", False),
    ),
    Recognizer(
        "description includes",
        re.compile(r"description includes\s*(?P<text>.*)"),
        _text_contains("description", True),
    ),
    Recognizer(
        "priority is",
        re.compile(r"priority is\s*(?P<level>" + "|".join(PRIORITY_LEVELS) + "|none)"),
        _priority_is,
    ),
    Recognizer("urgency above", re.compile(r"urgency above(?P<value>.*)"), _urgency_compare("above")),
    Recognizer("urgency below", re.compile(r"urgency below(?P<value>.*)"), _urgency_compare("below")),
    Recognizer("urgency is", re.compile(r"urgency is(?P<value>.*)"), _urgency_compare("is")),
]
