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

"""Linter package for ``.yy`` resource descriptors."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import NotSavableError, YyStoreError
from ..file_io.project_scanner import scan_project
from ..file_io.source_location import source_from_descriptor
from ..file_io.writer import FileSystemWriter
from ..schema.registry import SchemaRegistry
from ..serialization.yy_serializer import FormatStyle, serialize
from ..store.descriptor_store import DescriptorStore
from .report import LintResult

__all__ = ['lint_files', 'lint_project', 'LintResult']

logger = logging.getLogger(__name__)


def _lint_one(
    store: DescriptorStore,
    file_path: Path,
    check_format: bool,
    fix_references: bool,
) -> LintResult:
    result = LintResult(file_path)

    loaded = store.load(file_path)
    if not loaded.is_parsed:
        error = loaded.parse_error
        result.add_error(
            f"Unparseable descriptor: expected {error.expected}, found {error.found}",
            line=error.line,
            column=error.column,
            kind="Unparseable",
        )
        return result

    kind, name = loaded.key
    if fix_references:
        repairs = store.repair(kind, name)
        if repairs:
            try:
                store.save(kind, name)
                result.repaired_references = len(repairs)
            except NotSavableError as e:
                result.add_error(f"References repaired but file not saved: {e}")

    current = store.get(kind, name)
    for violation in current.violations:
        source = source_from_descriptor(loaded, violation.location)
        result.add_violation(violation, source)

    if check_format and not current.dirty:
        try:
            formatted = serialize(current.tree, store.style)
        except YyStoreError as e:
            result.add_error(f"Descriptor cannot be re-serialized: {e}")
        else:
            if formatted != current.raw_text:
                result.add_error("File is not in canonical descriptor format", kind="Format")
    return result


def lint_files(
    file_paths: List[Path],
    project_root: Union[str, Path],
    *,
    registry: Optional[SchemaRegistry] = None,
    style: Optional[FormatStyle] = None,
    check_format: bool = False,
    fix_references: bool = False,
) -> List[LintResult]:
    """Lint descriptor files that belong to one project.

    Args:
        file_paths: Descriptor files to lint
        project_root: Directory holding the project file (or resource directories)
        registry: Shape registry; defaults to the bundled shapes
        style: Formatting style used for ``check_format`` and saving repairs
        check_format: Report files whose text is not in canonical format
        fix_references: Repair drifted reference paths and save changed files

    Returns:
        List of LintResult objects, one per file
    """
    root = Path(project_root).resolve()
    registry = registry if registry is not None else SchemaRegistry.default()
    scan = scan_project(root, registry)
    store = DescriptorStore(
        registry=registry,
        index=scan.index,
        root=root,
        writer=FileSystemWriter(root) if fix_references else None,
        style=style,
    )

    results = []
    for file_path in file_paths:
        path = Path(file_path).resolve()
        try:
            result = _lint_one(store, path, check_format, fix_references)
        except YyStoreError as e:
            result = LintResult(path)
            result.add_error(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while linting {path}")
            result = LintResult(path)
            result.add_error(f"Unexpected error during linting: {str(e)}")
        results.append(result)

    return results


def lint_project(project_root: Union[str, Path], **kwargs) -> List[LintResult]:
    """Lint every descriptor listed by the project."""
    root = Path(project_root).resolve()
    registry = kwargs.pop('registry', None) or SchemaRegistry.default()
    scan = scan_project(root, registry)
    paths = [root / p for p in scan.descriptor_paths]
    return lint_files(paths, root, registry=registry, **kwargs)
