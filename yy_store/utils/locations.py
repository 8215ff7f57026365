"""Dotted locations used to address values inside a descriptor tree.

A location looks like ``eventList[0].parent.name``. The root value is the
empty string. Keys that are not plain identifiers are written in bracket form
(``properties["my key"]``) so the location stays unambiguous.
"""

from __future__ import annotations

import json
import re
from typing import Optional

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def join_key(base: str, key: str) -> str:
    key = key if isinstance(key, str) else str(key)
    if _IDENTIFIER_RE.match(key):
        return f"{base}.{key}" if base else key
    return f"{base}[{json.dumps(key, ensure_ascii=False)}]"


def join_index(base: str, index: int) -> str:
    return f"{base}[{index}]"


def top_level_key(location: str) -> str:
    """Return the first path component of a location (``eventList[0].x`` -> ``eventList``)."""
    if not location:
        return ""
    if location.startswith("["):
        end = location.find("]")
        return location[: end + 1] if end >= 0 else location
    match = re.match(r"[^.\[]+", location)
    return match.group(0) if match else location


def is_top_level(location: str) -> bool:
    return bool(location) and top_level_key(location) == location


_LAST_COMPONENT_RE = re.compile(r'(\[\d+\]|\["(?:[^"\\]|\\.)*"\]|\.?[A-Za-z_][A-Za-z0-9_]*)$')


def parent_location(location: str) -> Optional[str]:
    """Location of the enclosing value, or None for the root."""
    if not location:
        return None
    match = _LAST_COMPONENT_RE.search(location)
    if match is None:
        return ""
    return location[: match.start()]
