"""Shared marker grammar for the task microformat.

The parser looks for these tokens anywhere in a task body, the serializer
strips them from the end of a description. Both sides build their regexes from
the same atoms so anything one accepts the other can remove.
"""

from __future__ import annotations

import re

VARIATION_SELECTOR = "\ufe0f"

DUE_MARKERS = "📅📆🗓"
SCHEDULED_MARKERS = "⏳⌛"
START_MARKERS = "🛫"
CREATED_MARKERS = "➕"
DONE_MARKERS = "✅"
RECURRENCE_MARKER = "🔁"

# Longest first so the doubled marker wins over its prefix.
PRIORITY_MARKERS: tuple[tuple[str, str], ...] = (
    ("🔺", "highest"),
    ("⏫⏫", "highest"),
    ("⏫", "high"),
    ("🔼", "medium"),
    ("🔽", "low"),
    ("⏬", "lowest"),
)

PRIORITY_SYMBOLS = {
    "highest": "🔺",
    "high": "⏫",
    "medium": "🔼",
    "low": "🔽",
    "lowest": "⏬",
}

DATE_FIELD_MARKERS = {
    "due_date": DUE_MARKERS,
    "scheduled_date": SCHEDULED_MARKERS,
    "start_date": START_MARKERS,
    "created_date": CREATED_MARKERS,
    "done_date": DONE_MARKERS,
}

# Canonical marker used when a field is written back out.
DATE_FIELD_SYMBOLS = {
    "due_date": "📅",
    "scheduled_date": "⏳",
    "start_date": "🛫",
    "created_date": "➕",
    "done_date": "✅",
}

ALL_MARKER_CHARS = "".join(
    sorted(
        set(
            DUE_MARKERS
            + SCHEDULED_MARKERS
            + START_MARKERS
            + CREATED_MARKERS
            + DONE_MARKERS
            + RECURRENCE_MARKER
            + "".join(symbol for symbol, _ in PRIORITY_MARKERS)
        )
    )
)

_MARKER_CLASS = re.escape(ALL_MARKER_CHARS)
_DATE = r"(\d{4}-\d{2}-\d{2})"
_TAG_BODY = r"#[^\s!@#$%^&*(),.?\":{}|<>" + _MARKER_CLASS + r"]+"
_PRIORITY_ALTERNATION = "|".join(re.escape(symbol) for symbol, _ in PRIORITY_MARKERS)

TASK_LINE_REGEX = re.compile(
    r"^(?P<indent>[\s>]*)"
    r"(?P<marker>[-*+]|\d+[.)])"
    r" +\[(?P<status>.)\]"
    r" *(?P<body>.*)"
)
INDENTATION_REGEX = re.compile(r"^[\s>]*")

TAG_REGEX = re.compile(r"(?<!\S)" + _TAG_BODY)
PRIORITY_REGEX = re.compile(_PRIORITY_ALTERNATION)
RECURRENCE_REGEX = re.compile(
    re.escape(RECURRENCE_MARKER)
    + VARIATION_SELECTOR
    + r"?\s*(?P<rule>[^"
    + _MARKER_CLASS
    + r"#]+?)(?=\s*["
    + _MARKER_CLASS
    + r"#]|$)"
)

DATE_FIELD_REGEXES = {
    field: re.compile("[" + re.escape(markers) + "]" + VARIATION_SELECTOR + r"?\s*" + _DATE)
    for field, markers in DATE_FIELD_MARKERS.items()
}

TRAILING_TAG_REGEX = re.compile(r"(?<!\S)" + _TAG_BODY + r"$")
TRAILING_PRIORITY_REGEX = re.compile(
    "(?:" + _PRIORITY_ALTERNATION + ")" + VARIATION_SELECTOR + "?$"
)
TRAILING_RECURRENCE_REGEX = re.compile(
    re.escape(RECURRENCE_MARKER)
    + VARIATION_SELECTOR
    + r"?\s*[^"
    + _MARKER_CLASS
    + r"#]+$"
)
TRAILING_DATE_FIELD_REGEXES = {
    field: re.compile(pattern.pattern + "$")
    for field, pattern in DATE_FIELD_REGEXES.items()
}


def priority_for_symbol(symbol: str) -> str | None:
    for marker, level in PRIORITY_MARKERS:
        if marker == symbol:
            return level
    return None
