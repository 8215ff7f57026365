# Copyright 2026 TIER IV, inc.
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

"""Custom exceptions for the yy descriptor store."""

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .validation.violations import Violation


class YyStoreError(Exception):
    """Base exception for descriptor store related errors."""
    pass


class ParseError(YyStoreError):
    """Exception raised when descriptor text is not well-formed.

    Attributes:
        line: 1-based line of the offending character
        column: 1-based column of the offending character
        expected: Human readable description of what the parser wanted
        found: The text actually found at that position
    """

    def __init__(self, line: int, column: int, expected: str, found: str):
        self.line = line
        self.column = column
        self.expected = expected
        self.found = found
        super().__init__(f"{line}:{column}: expected {expected}, found {found}")

    def __reduce__(self):
        return self.__class__, (self.line, self.column, self.expected, self.found)


class SerializationError(YyStoreError):
    """Exception raised when a value tree cannot be written as descriptor text."""
    pass


class ValidationError(YyStoreError):
    """Exception raised for validation errors.

    Carries the violations that caused the failure so callers can report them.
    """

    def __init__(self, message: str, violations: Optional[Sequence["Violation"]] = None):
        super().__init__(message)
        self.violations = list(violations or [])


class MutationRejected(ValidationError):
    """Exception raised when an edit would leave a descriptor invalid."""
    pass


class NotSavableError(ValidationError):
    """Exception raised when saving a descriptor with fatal violations."""
    pass


class DescriptorNotFoundError(YyStoreError, KeyError):
    """Exception raised when a (kind, name) pair is not held by the store."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class DescriptorExistsError(YyStoreError):
    """Exception raised when adding a descriptor whose identity is taken."""
    pass


class ResourceKindError(YyStoreError):
    """Exception raised for unknown or non-manipulable resource kinds."""
    pass


class SchemaDefinitionError(YyStoreError):
    """Exception raised when a shape definition file is malformed."""
    pass


class DescriptorIOError(YyStoreError):
    """Exception raised when descriptor text cannot be read or written."""
    pass
