"""General-purpose helper utilities shared across the application."""

from __future__ import annotations

import numbers
import re
from datetime import datetime, timezone
from typing import Any, Mapping


__all__ = [
    "_clean_optional_text",
    "_coerce_optional_int",
    "_normalize_lookup_name",
    "_parse_iterable",
    "icon_filename_for_title",
    "release_year_from_date",
    "utc_timestamp",
]


def utc_timestamp() -> str:
    """Return the current UTC time formatted like the database timestamps."""

    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")


def _clean_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


def _coerce_optional_int(value: Any) -> int | None:
    """Return ``value`` as an ``int`` or ``None`` when it is blank or invalid."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if float(value).is_integer():
            return int(value)
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    try:
        return int(text)
    except ValueError:
        return None


def _normalize_lookup_name(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _parse_iterable(value: Any) -> list[str]:
    """Return names from a comma separated string or a list of ``{"name": ...}``."""

    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(',') if v.strip()]
    if isinstance(value, numbers.Number):
        return [str(value)]
    try:
        iterator = iter(value)
    except TypeError:
        return [str(value)]
    items: list[str] = []
    for element in iterator:
        if isinstance(element, Mapping):
            name = element.get("name")
            if isinstance(name, str) and name.strip():
                items.append(name.strip())
        else:
            items.append(_normalize_lookup_name(element))
    return [item for item in items if item]


def release_year_from_date(value: Any) -> int | None:
    """Return the year of an ISO ``YYYY-MM-DD`` date string."""

    text = _clean_optional_text(value)
    if not text:
        return None
    head = text.split("-", 1)[0]
    if len(head) != 4 or not head.isdigit():
        return None
    return int(head)


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def icon_filename_for_title(title: str, extension: str = ".ico") -> str:
    """Return the icon filename derived from ``title``.

    Spaces, path separators and characters Windows rejects in filenames all
    become ``_`` so the result always names a file directly inside the icons
    directory.
    """

    stem = _UNSAFE_FILENAME_CHARS.sub("_", title.replace(" ", "_"))
    return f"{stem}{extension}"
