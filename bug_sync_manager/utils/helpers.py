"""General utility functions and helper classes."""

import re
from typing import Iterable

_WHITESPACE_PATTERN = re.compile(r"\s")


def parse_label_list(labels: str) -> list[str]:
    """Split a comma-separated label string, dropping blanks and duplicates."""
    return dedupe_preserving_order(label.strip() for label in labels.split(",") if label.strip())


def dedupe_preserving_order(values: Iterable[str]) -> list[str]:
    """Return the values with duplicates removed, keeping first occurrences in order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def is_valid_instance_key(key: str) -> bool:
    """Instance keys must be non-empty and must not contain whitespace."""
    return bool(key) and _WHITESPACE_PATTERN.search(key) is None


def truncate_preview(content: str, max_length: int) -> str:
    """Cut content down to max_length characters, marking the cut with an ellipsis."""
    if len(content) <= max_length:
        return content
    return content[:max_length] + "..."


def is_blank(value: str) -> bool:
    return not value.strip()
