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

"""Violation records produced by validation and reference resolution."""

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

_INDEX_RE = re.compile(r"\[\d+\]")


class Severity(str, Enum):
    FATAL = "fatal"
    WARNING = "warning"


class ViolationKind(str, Enum):
    MISSING_FIELD = "MissingField"
    TYPE_MISMATCH = "TypeMismatch"
    ENUM_VIOLATION = "EnumViolation"
    UNKNOWN_FIELD = "UnknownField"
    BROKEN_REFERENCE = "BrokenReference"
    DUPLICATE_KEY = "DuplicateKey"
    UNKNOWN_KIND = "UnknownKind"
    SELF_REFERENCE = "SelfReference"
    NAME_MISMATCH = "NameMismatch"
    UNPARSEABLE = "Unparseable"

    @property
    def severity(self) -> Severity:
        if self in _WARNING_KINDS:
            return Severity.WARNING
        return Severity.FATAL


_WARNING_KINDS = frozenset({
    ViolationKind.UNKNOWN_FIELD,
    ViolationKind.DUPLICATE_KEY,
    ViolationKind.UNKNOWN_KIND,
    ViolationKind.SELF_REFERENCE,
})


@dataclass(frozen=True)
class Violation:
    """One finding about a descriptor.

    ``location`` is a dotted path into the tree such as ``eventList[0].eventType``;
    the root is the empty string.
    """
    kind: ViolationKind
    location: str
    message: str
    severity: Optional[Severity] = None

    def __post_init__(self):
        if self.severity is None:
            object.__setattr__(self, "severity", self.kind.severity)

    @property
    def is_fatal(self) -> bool:
        return self.severity == Severity.FATAL

    @property
    def pattern(self):
        """Identity with array indices dropped, stable when elements shift."""
        return self.kind, _INDEX_RE.sub("[]", self.location)

    def __str__(self) -> str:
        where = self.location or "<root>"
        return f"{self.kind.value} at {where}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "location": self.location,
            "message": self.message,
            "severity": self.severity.value,
        }


def fatal(violations: Iterable[Violation]) -> List[Violation]:
    return [v for v in violations if v.is_fatal]


def warnings(violations: Iterable[Violation]) -> List[Violation]:
    return [v for v in violations if not v.is_fatal]


def introduced(before: Iterable[Violation], after: Iterable[Violation]) -> List[Violation]:
    """Violations of ``after`` beyond what ``before`` already had.

    Compared by count per kind and index-free location, so removing or
    reordering array elements does not make an existing violation look new.
    """
    remaining = Counter(v.pattern for v in before)
    new = []
    for violation in after:
        if remaining[violation.pattern] > 0:
            remaining[violation.pattern] -= 1
        else:
            new.append(violation)
    return new
