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

"""Error reporting for the linter."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from ..file_io.source_location import SourceLocation
from ..validation.violations import Violation


class LintResult:
    """Container for linting results for a single descriptor file."""

    def __init__(self, file_path: Path):
        """Initialize lint result.

        Args:
            file_path: Path to the file being linted
        """
        self.file_path = file_path
        self.errors: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []
        self.repaired_references = 0

    @staticmethod
    def _entry(
        message: str,
        line: Optional[int],
        column: Optional[int],
        location: Optional[str],
        kind: Optional[str],
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {'message': message}
        if line is not None:
            entry['line'] = line
        if column is not None:
            entry['column'] = column
        if location:
            entry['location'] = location
        if kind is not None:
            entry['kind'] = kind
        return entry

    def add_error(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        location: Optional[str] = None,
        kind: Optional[str] = None,
    ):
        """Add an error message.

        Args:
            message: Error message
            line: Optional line number where error occurred
        """
        self.errors.append(self._entry(message, line, column, location, kind))

    def add_warning(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        location: Optional[str] = None,
        kind: Optional[str] = None,
    ):
        """Add a warning message."""
        self.warnings.append(self._entry(message, line, column, location, kind))

    def add_violation(self, violation: Violation, source: Optional[SourceLocation] = None):
        """Record a violation as an error (fatal) or warning, with its source position."""
        line = source.line if source else None
        column = source.column if source else None
        add = self.add_error if violation.is_fatal else self.add_warning
        add(violation.message, line=line, column=column, location=violation.location, kind=violation.kind.value)

    @property
    def has_findings(self) -> bool:
        return bool(self.errors or self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file': str(self.file_path),
            'errors': self.errors,
            'warnings': self.warnings,
            'repaired_references': self.repaired_references,
        }
