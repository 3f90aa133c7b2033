"""Parsing of issue references found in LLM duplicate verdicts."""

import re
from typing import Any

_REFERENCE_PATTERN = re.compile(r"#?\s*(\d+)")
_OBJECT_KEYS = ("number", "issueNumber", "issue_number", "id", "originalIssueNumber")


def parse_issue_reference(value: Any) -> int | None:
    """Turn a single reference into a positive issue number.

    Accepts integers, integral floats, strings such as "42", "#42" or
    "see issue #42", and objects carrying the number under a known key.
    Anything else, including zero and negative numbers, yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if value.is_integer() and value > 0:
            return int(value)
        return None
    if isinstance(value, str):
        text = value.replace("#", " ").strip()
        if not text:
            return None
        if re.fullmatch(r"-?\d+", text):
            number = int(text)
            return number if number > 0 else None
        match = _REFERENCE_PATTERN.search(value)
        if match:
            number = int(match.group(1))
            return number if number > 0 else None
        return None
    if isinstance(value, dict):
        for key in _OBJECT_KEYS:
            if key in value:
                number = parse_issue_reference(value[key])
                if number is not None:
                    return number
        return None
    return None


def iter_reference_candidates(value: Any) -> list[Any]:
    """Flatten a reference field into the raw candidates it contains."""
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


def first_valid_duplicate(candidates: list[Any], current_issue_number: int) -> int | None:
    """Return the first parsed candidate that is not the current issue."""
    for candidate in candidates:
        number = parse_issue_reference(candidate)
        if number is not None and number != current_issue_number:
            return number
    return None
