"""Urgency scoring for tasks.

The score is the sum of four independent components (due date, priority,
scheduled date, start date). It depends on the current day, so ``today`` is
always passed in by the caller.
"""

from __future__ import annotations

from datetime import date

from vault_tasks.task_dates import days_between, parse_task_date
from vault_tasks.task_model import Task

DUE_SCORE_MAX = 12.0
DUE_SCORE_MIN = 2.4
DUE_SCORE_TODAY = 8.8
DUE_SCORE_STEP = (DUE_SCORE_MAX - DUE_SCORE_MIN) / 21
DUE_OVERDUE_CAP_DAYS = -7
DUE_FAR_FUTURE_DAYS = 14

PRIORITY_SCORES = {
    "highest": 9.0,
    "high": 6.0,
    "medium": 3.9,
    "low": 0.0,
    "lowest": -1.8,
}
NO_PRIORITY_SCORE = 1.95

SCHEDULED_SCORE = 5.0
FUTURE_START_SCORE = -3.0


def due_component(due_date: str | None, today: date) -> float:
    due = parse_task_date(due_date)
    if due is None:
        return 0.0

    days_until_due = days_between(today, due)
    if days_until_due <= DUE_OVERDUE_CAP_DAYS:
        return DUE_SCORE_MAX
    if days_until_due >= DUE_FAR_FUTURE_DAYS:
        return DUE_SCORE_MIN
    return round(DUE_SCORE_TODAY - days_until_due * DUE_SCORE_STEP, 5)


def priority_component(priority: str | None) -> float:
    if priority is None:
        return NO_PRIORITY_SCORE
    return PRIORITY_SCORES.get(priority, NO_PRIORITY_SCORE)


def scheduled_component(scheduled_date: str | None, today: date) -> float:
    scheduled = parse_task_date(scheduled_date)
    if scheduled is not None and scheduled <= today:
        return SCHEDULED_SCORE
    return 0.0


def start_component(start_date: str | None, today: date) -> float:
    start = parse_task_date(start_date)
    if start is not None and start > today:
        return FUTURE_START_SCORE
    return 0.0


def score(task: Task, today: date) -> float:
    """Return the urgency of ``task`` as of ``today``."""
    return (
        due_component(task.due_date, today)
        + priority_component(task.priority)
        + scheduled_component(task.scheduled_date, today)
        + start_component(task.start_date, today)
    )
