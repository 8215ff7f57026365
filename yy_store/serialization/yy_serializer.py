# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Serializer that writes value trees back in descriptor formatting.

Output of :func:`serialize` is a fixed point: parsing it and serializing again
with the same style yields identical text.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any, List

from ..exceptions import SerializationError

_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")


@dataclass(frozen=True)
class FormatStyle:
    """Formatting conventions for descriptor text.

    Attributes:
        indent: Spaces per nesting level
        trailing_commas: Emit a comma after every element, including the last
        inline_array_objects: Write objects that are array members on one line
        newline: Line separator
        final_newline: Terminate the document with a newline
    """
    indent: int = 2
    trailing_commas: bool = True
    inline_array_objects: bool = False
    newline: str = "\n"
    final_newline: bool = False

    @classmethod
    def gamemaker(cls, indent: int = 2) -> "FormatStyle":
        """Style written by the GameMaker IDE: event lists and other object arrays are compact."""
        return cls(indent=indent, inline_array_objects=True)

    @classmethod
    def strict_json(cls, indent: int = 2) -> "FormatStyle":
        return cls(indent=indent, trailing_commas=False)


def format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise SerializationError(f"Cannot write non-finite number {value!r}")
        return repr(value)
    if isinstance(value, str):
        # Lone surrogates cannot be encoded as UTF-8; keep them as escapes.
        return _LONE_SURROGATE_RE.sub(lambda m: f"\\u{ord(m.group(0)):04x}", json.dumps(value, ensure_ascii=False))
    raise SerializationError(f"Unsupported value type: {type(value).__name__}")


class _Writer:
    def __init__(self, style: FormatStyle):
        self.style = style
        self.parts: List[str] = []
        self._active: List[int] = []

    def _enter(self, value: Any) -> None:
        marker = id(value)
        if marker in self._active:
            raise SerializationError("Cannot write a value tree that contains itself")
        self._active.append(marker)

    def _leave(self) -> None:
        self._active.pop()

    def _pad(self, level: int) -> str:
        return " " * (self.style.indent * level)

    def _close_items(self, items: List[str], level: int, closing: str) -> str:
        style = self.style
        inner = self._pad(level + 1)
        lines = []
        for idx, item in enumerate(items):
            last = idx == len(items) - 1
            comma = "," if (style.trailing_commas or not last) else ""
            lines.append(f"{inner}{item}{comma}")
        return style.newline.join([closing[0]] + lines + [self._pad(level) + closing[1]])

    def expanded(self, value: Any, level: int) -> str:
        if isinstance(value, dict):
            if not value:
                return "{}"
            self._enter(value)
            items = []
            for key, child in value.items():
                if not isinstance(key, str):
                    raise SerializationError(f"Object keys must be strings, got {type(key).__name__}")
                items.append(f"{format_scalar(key)}: {self.expanded(child, level + 1)}")
            self._leave()
            return self._close_items(items, level, "{}")

        if isinstance(value, list):
            if not value:
                return "[]"
            self._enter(value)
            items = []
            for child in value:
                if isinstance(child, dict) and child and self.style.inline_array_objects:
                    items.append(self.compact(child))
                else:
                    items.append(self.expanded(child, level + 1))
            self._leave()
            return self._close_items(items, level, "[]")

        return format_scalar(value)

    def compact(self, value: Any) -> str:
        trailing = "," if self.style.trailing_commas else ""

        if isinstance(value, dict):
            if not value:
                return "{}"
            self._enter(value)
            items = []
            for key, child in value.items():
                if not isinstance(key, str):
                    raise SerializationError(f"Object keys must be strings, got {type(key).__name__}")
                items.append(f"{format_scalar(key)}:{self.compact(child)}")
            self._leave()
            return "{" + ",".join(items) + trailing + "}"

        if isinstance(value, list):
            if not value:
                return "[]"
            self._enter(value)
            items = [self.compact(child) for child in value]
            self._leave()
            return "[" + ",".join(items) + trailing + "]"

        return format_scalar(value)


def serialize(tree: Any, style: FormatStyle = FormatStyle()) -> str:
    """Convert a value tree to descriptor text.

    Args:
        tree: Value tree (dicts, lists, strings, numbers, booleans, None)
        style: Formatting conventions to apply

    Returns:
        Descriptor text

    Raises:
        SerializationError: If the tree holds values the format cannot express
    """
    text = _Writer(style).expanded(tree, 0)
    if style.final_newline:
        text += style.newline
    return text
