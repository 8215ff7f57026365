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

"""Parser for the relaxed JSON used by ``.yy`` resource descriptors.

The grammar is JSON plus an optional trailing comma before ``}`` or ``]``.
Objects come back as ordinary dicts, which keep key order, and integers stay
distinct from floats so that ``1`` and ``1.0`` are written back unchanged.
"""

import bisect
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import store_config
from ..exceptions import DescriptorIOError, ParseError
from ..utils.locations import join_index, join_key

logger = logging.getLogger(__name__)

SourceMap = Dict[str, Dict[str, int]]

_WHITESPACE = " \t\n\r"
_NUMBER_START = "-0123456789"
_NUMBER_TOKEN_RE = re.compile(r"[-+0-9.eE]+")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(\.[0-9]+)?([eE][-+]?[0-9]+)?")
_STRING_CHUNK_RE = re.compile(r'[^"\\\x00-\x1f]*')
_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


@dataclass(frozen=True)
class DuplicateKeyWarning:
    """A key that appeared more than once in the same object."""
    location: str
    key: str
    line: int
    column: int


@dataclass
class ParsedDocument:
    value: Any
    source_map: SourceMap = field(default_factory=dict)
    duplicate_keys: List[DuplicateKeyWarning] = field(default_factory=list)


class _Scanner:
    """Single-use recursive descent scanner over one descriptor text."""

    def __init__(self, text: str, max_depth: int, track_source: bool):
        self.text = text
        self.length = len(text)
        self.pos = 1 if text.startswith("\ufeff") else 0
        self.max_depth = max_depth
        self.track_source = track_source
        self.source_map: SourceMap = {}
        self.duplicates: List[DuplicateKeyWarning] = []
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    # -- positions and errors -------------------------------------------------

    def line_column(self, pos: int) -> Tuple[int, int]:
        line_idx = bisect.bisect_right(self._line_starts, pos) - 1
        return line_idx + 1, pos - self._line_starts[line_idx] + 1

    def _describe(self, pos: int) -> str:
        if pos >= self.length:
            return "end of input"
        return repr(self.text[pos])

    def error(self, expected: str, pos: Optional[int] = None, found: Optional[str] = None) -> ParseError:
        at = self.pos if pos is None else pos
        line, column = self.line_column(at)
        return ParseError(line, column, expected, found if found is not None else self._describe(at))

    def _record(self, location: str, pos: int) -> None:
        if self.track_source:
            line, column = self.line_column(pos)
            self.source_map[location] = {"line": line, "column": column}

    def skip_whitespace(self) -> None:
        text, pos, length = self.text, self.pos, self.length
        while pos < length and text[pos] in _WHITESPACE:
            pos += 1
        self.pos = pos

    # -- grammar --------------------------------------------------------------

    def parse_document(self) -> Any:
        self.skip_whitespace()
        value = self.parse_value("", 0)
        self.skip_whitespace()
        if self.pos < self.length:
            raise self.error("end of input")
        return value

    def parse_value(self, location: str, depth: int) -> Any:
        self.skip_whitespace()
        if self.pos >= self.length:
            raise self.error("a value")

        start = self.pos
        char = self.text[start]
        self._record(location, start)

        if char == "{":
            return self.parse_object(location, depth + 1)
        if char == "[":
            return self.parse_array(location, depth + 1)
        if char == '"':
            return self.parse_string()
        if char in _NUMBER_START:
            return self.parse_number()
        for literal, value in (("true", True), ("false", False), ("null", None)):
            if self.text.startswith(literal, start):
                self.pos = start + len(literal)
                return value
        raise self.error("a value")

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise self.error(f"nesting depth of at most {self.max_depth}")

    def parse_object(self, location: str, depth: int) -> Dict[str, Any]:
        self._check_depth(depth)
        self.pos += 1  # '{'
        result: Dict[str, Any] = {}
        self.skip_whitespace()
        if self.pos < self.length and self.text[self.pos] == "}":
            self.pos += 1
            return result

        while True:
            self.skip_whitespace()
            if self.pos >= self.length or self.text[self.pos] != '"':
                raise self.error("a string key or '}'" if not result else "a string key")
            key_pos = self.pos
            key = self.parse_string()
            self.skip_whitespace()
            if self.pos >= self.length or self.text[self.pos] != ":":
                raise self.error("':'")
            self.pos += 1

            child_location = join_key(location, key)
            if key in result:
                line, column = self.line_column(key_pos)
                self.duplicates.append(DuplicateKeyWarning(child_location, key, line, column))
                logger.debug(f"Duplicate key '{key}' at {line}:{column}")
            result[key] = self.parse_value(child_location, depth)

            self.skip_whitespace()
            if self.pos >= self.length:
                raise self.error("',' or '}'")
            char = self.text[self.pos]
            if char == "}":
                self.pos += 1
                return result
            if char != ",":
                raise self.error("',' or '}'")
            self.pos += 1
            self.skip_whitespace()
            if self.pos < self.length and self.text[self.pos] == "}":
                self.pos += 1
                return result

    def parse_array(self, location: str, depth: int) -> List[Any]:
        self._check_depth(depth)
        self.pos += 1  # '['
        result: List[Any] = []
        self.skip_whitespace()
        if self.pos < self.length and self.text[self.pos] == "]":
            self.pos += 1
            return result

        while True:
            result.append(self.parse_value(join_index(location, len(result)), depth))
            self.skip_whitespace()
            if self.pos >= self.length:
                raise self.error("',' or ']'")
            char = self.text[self.pos]
            if char == "]":
                self.pos += 1
                return result
            if char != ",":
                raise self.error("',' or ']'")
            self.pos += 1
            self.skip_whitespace()
            if self.pos < self.length and self.text[self.pos] == "]":
                self.pos += 1
                return result

    def parse_string(self) -> str:
        start = self.pos
        self.pos += 1  # opening quote
        text = self.text
        chunks: List[str] = []

        while True:
            match = _STRING_CHUNK_RE.match(text, self.pos)
            chunks.append(match.group(0))
            self.pos = match.end()
            if self.pos >= self.length:
                line, column = self.line_column(start)
                raise self.error(f"closing '\"' for string opened at {line}:{column}")

            char = text[self.pos]
            if char == '"':
                self.pos += 1
                return "".join(chunks)
            if char != "\\":
                raise self.error("an escaped control character")

            self.pos += 1
            if self.pos >= self.length:
                raise self.error("an escape sequence")
            escape = text[self.pos]
            if escape in _ESCAPES:
                chunks.append(_ESCAPES[escape])
                self.pos += 1
            elif escape == "u":
                chunks.append(self._parse_unicode_escape())
            else:
                raise self.error("a valid escape sequence", found=repr("\\" + escape))

    def _read_hex4(self) -> int:
        digits = self.text[self.pos + 1:self.pos + 5]
        if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
            raise self.error("four hex digits after '\\u'", pos=self.pos + 1)
        self.pos += 5
        return int(digits, 16)

    def _parse_unicode_escape(self) -> str:
        code = self._read_hex4()
        if 0xD800 <= code <= 0xDBFF and self.text.startswith("\\u", self.pos):
            saved = self.pos
            self.pos += 1
            low = self._read_hex4()
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            self.pos = saved
        return chr(code)

    def parse_number(self) -> Union[int, float]:
        start = self.pos
        token = _NUMBER_TOKEN_RE.match(self.text, start).group(0)
        match = _NUMBER_RE.fullmatch(token)
        if match is None:
            raise self.error("a number literal", pos=start, found=repr(token))
        self.pos = start + len(token)
        if match.group(1) or match.group(2):
            return float(token)
        return int(token)


class DescriptorParser:
    """Relaxed JSON parser with source tracking and file loading."""

    def __init__(self, max_depth: Optional[int] = None):
        """Initialize the parser.

        Args:
            max_depth: Maximum container nesting. If None, uses global config.
        """
        self.max_depth = max_depth if max_depth is not None else store_config.max_nesting_depth

    def parse(self, text: str) -> Any:
        """Parse descriptor text into a value tree.

        Raises:
            ParseError: On the first syntax error.
        """
        return _Scanner(text, self.max_depth, track_source=False).parse_document()

    def parse_with_source(self, text: str) -> ParsedDocument:
        """Parse descriptor text, also returning locations and duplicate keys.

        source_map keys are dotted locations (e.g. "eventList[0].eventType").
        Values contain 1-based line/column.
        """
        scanner = _Scanner(text, self.max_depth, track_source=True)
        value = scanner.parse_document()
        return ParsedDocument(value=value, source_map=scanner.source_map, duplicate_keys=scanner.duplicates)

    def read_text(self, file_path: Union[str, Path]) -> str:
        path = Path(file_path)
        if not path.is_file():
            raise DescriptorIOError(f"Descriptor file not found: {path}")
        try:
            logger.debug(f"Reading descriptor file: {path}")
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DescriptorIOError(f"Failed to read descriptor file {path}: {exc}") from exc

    def load_file(self, file_path: Union[str, Path]) -> ParsedDocument:
        """Read and parse a descriptor file.

        Raises:
            DescriptorIOError: If the file cannot be read
            ParseError: If the content is malformed
        """
        return self.parse_with_source(self.read_text(file_path))


def parse(text: str) -> Any:
    """Parse descriptor text with the default parser settings."""
    return yy_parser.parse(text)


# Global parser instance
yy_parser = DescriptorParser()
