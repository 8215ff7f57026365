from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.locations import parent_location


@dataclass(frozen=True)
class SourceLocation:
    file_path: Optional[Path] = None
    location: Optional[str] = None
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based


def lookup_source(source_map: Optional[Dict[str, Dict[str, int]]], location: Optional[str]) -> SourceLocation:
    """Find the line/column of a location, falling back to its nearest recorded ancestor.

    Missing fields are not in the source map, so ``eventList[0].eventNum`` is
    reported at ``eventList[0]`` when the key itself does not exist.
    """
    if not source_map or location is None:
        return SourceLocation(location=location)

    probe: Optional[str] = location
    while probe is not None:
        entry = source_map.get(probe)
        if entry:
            return SourceLocation(location=location, line=entry.get("line"), column=entry.get("column"))
        probe = parent_location(probe)

    return SourceLocation(location=location)


def source_from_descriptor(descriptor: Any, location: Optional[str], root: Optional[Path] = None) -> SourceLocation:
    """Create a SourceLocation using a Descriptor-like object (path + optional source_map)."""
    path = getattr(descriptor, "path", None)
    source_map = getattr(descriptor, "source_map", None)

    loc = lookup_source(source_map, location)
    file_path = None
    if path is not None:
        file_path = Path(root) / path if root is not None else Path(path)
    return SourceLocation(
        file_path=file_path,
        location=loc.location,
        line=loc.line,
        column=loc.column,
    )


def format_source(loc: Optional[SourceLocation]) -> str:
    if not loc:
        return ""

    parts = []
    if loc.file_path is not None:
        if loc.line is not None and loc.column is not None:
            parts.append(f"source= {loc.file_path}:{loc.line}:{loc.column}")
        elif loc.line is not None:
            parts.append(f"source= {loc.file_path}:{loc.line}")
        else:
            parts.append(f"source= {loc.file_path}")

    if loc.location:
        parts.append(f"location= {loc.location}")

    if not parts:
        return ""

    return " (" + " ".join(parts) + ")"
