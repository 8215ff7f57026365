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

"""Project scanning: builds the project index fed to the descriptor store."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..exceptions import DescriptorIOError, ParseError
from ..parsing.yy_parser import yy_parser
from ..resolvers.reference_resolver import ProjectIndex
from ..schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)

FOLDER_KIND = "GMFolder"


@dataclass
class ProjectScan:
    root: Path
    index: ProjectIndex
    descriptor_paths: List[str] = field(default_factory=list)
    project_file: Optional[Path] = None


def find_project_file(root: Union[str, Path]) -> Optional[Path]:
    candidates = sorted(Path(root).glob("*.yyp"))
    if len(candidates) > 1:
        logger.warning(f"Multiple project files in {root}; using {candidates[0].name}")
    return candidates[0] if candidates else None


def _entries_from_project_file(project_file: Path, registry: SchemaRegistry) -> List[Tuple[str, str, str]]:
    document = yy_parser.parse(yy_parser.read_text(project_file))
    if not isinstance(document, dict):
        raise DescriptorIOError(f"Project file {project_file} does not contain an object")

    entries = []
    for resource in document.get("resources") or []:
        ref = resource.get("id") if isinstance(resource, dict) else None
        if not isinstance(ref, dict):
            continue
        name, path = ref.get("name"), ref.get("path")
        if not isinstance(name, str) or not isinstance(path, str):
            continue
        kind = registry.kind_for_path(path)
        if kind is None:
            logger.debug(f"Skipping resource '{name}' with unregistered location '{path}'")
            continue
        entries.append((kind, name, path))

    for folder in document.get("Folders") or []:
        if not isinstance(folder, dict):
            continue
        name, path = folder.get("name"), folder.get("folderPath")
        if isinstance(name, str) and isinstance(path, str):
            entries.append((FOLDER_KIND, name, path))
    return entries


def _entries_from_layout(root: Path, registry: SchemaRegistry) -> List[Tuple[str, str, str]]:
    entries = []
    for kind in registry.kinds():
        if kind == FOLDER_KIND:
            continue
        subpath = registry.subpath_for(kind)
        kind_dir = root / subpath
        if not kind_dir.is_dir():
            continue
        for resource_dir in sorted(p for p in kind_dir.iterdir() if p.is_dir()):
            descriptor = resource_dir / f"{resource_dir.name}.yy"
            if descriptor.is_file():
                entries.append((kind, resource_dir.name, descriptor.relative_to(root).as_posix()))
    return entries


def scan_project(root: Union[str, Path], registry: SchemaRegistry) -> ProjectScan:
    """Build a ProjectIndex for a project directory.

    The ``.yyp`` project file is authoritative when present; otherwise the
    ``<subpath>/<name>/<name>.yy`` directory layout is used.

    Raises:
        DescriptorIOError: If the project file cannot be read
        ParseError: If the project file is malformed
    """
    root = Path(root)
    project_file = find_project_file(root)
    if project_file is not None:
        logger.debug(f"Scanning project file: {project_file}")
        try:
            entries = _entries_from_project_file(project_file, registry)
        except ParseError as e:
            logger.error(f"Malformed project file {project_file}: {e}")
            raise
    else:
        logger.debug(f"No project file in {root}; scanning directory layout")
        entries = _entries_from_layout(root, registry)

    index = ProjectIndex.from_entries(entries)
    descriptor_paths = [
        path for kind, _, path in entries
        if kind != FOLDER_KIND and (root / path).is_file()
    ]
    logger.debug(f"Indexed {len(index)} resources, {len(descriptor_paths)} descriptor files")
    return ProjectScan(root=root, index=index, descriptor_paths=descriptor_paths, project_file=project_file)
