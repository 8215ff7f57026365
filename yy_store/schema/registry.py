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

"""Registry of resource shapes loaded from YAML definition files."""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import jsonschema
import yaml

from ..config import store_config
from ..exceptions import ResourceKindError, SchemaDefinitionError
from .meta_schema import SHAPE_FILE_SCHEMA
from .shapes import Shape, nested_shape_names, shape_from_data

logger = logging.getLogger(__name__)

BASE_SHAPE_NAME = "GMResource"
BUNDLED_SHAPES_DIR = Path(__file__).parent / "shapes"

# Shape file cache to avoid reloading files
_SHAPE_FILE_CACHE: Dict[str, List[Shape]] = {}

_META_VALIDATOR = jsonschema.Draft7Validator(SHAPE_FILE_SCHEMA)


def _format_schema_error(error: jsonschema.ValidationError) -> str:
    path = "/".join(str(p) for p in error.absolute_path)
    return f"at '/{path}': {error.message}" if path else error.message


def load_shape_file(file_path: Union[str, Path]) -> List[Shape]:
    """Load and check one shape definition file.

    Args:
        file_path: Path to a YAML file with a top-level ``shapes`` list

    Returns:
        Shapes defined by the file, in file order

    Raises:
        SchemaDefinitionError: If the file is unreadable, not YAML, or does
            not conform to the shape file schema
    """
    path = Path(file_path)
    cache_key = str(path.resolve())
    if cache_key in _SHAPE_FILE_CACHE:
        return _SHAPE_FILE_CACHE[cache_key]

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise SchemaDefinitionError(f"Failed to read shape file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SchemaDefinitionError(f"Invalid YAML in shape file {path}: {e}") from e

    shapes = shapes_from_document(data, source=str(path))
    _SHAPE_FILE_CACHE[cache_key] = shapes
    return shapes


def shapes_from_document(data: Any, source: str = "<data>") -> List[Shape]:
    """Build shapes from an already-loaded shape document."""
    errors = sorted(_META_VALIDATOR.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        details = "\n".join(f"  - {_format_schema_error(e)}" for e in errors)
        raise SchemaDefinitionError(f"Shape file {source} does not match the shape file schema:\n{details}")
    return [shape_from_data(entry) for entry in data["shapes"]]


def clear_cache() -> None:
    """Clear the shape file cache. Useful for testing."""
    _SHAPE_FILE_CACHE.clear()


class SchemaRegistry:
    """Declarative per-kind shapes keyed by the ``resourceType`` discriminator.

    Shapes are registered as data; resolving ``extends`` chains happens lazily
    and the result is cached until the next registration.
    """

    def __init__(self, shapes: Iterable[Shape] = ()):
        self._shapes: Dict[str, Shape] = {}
        self._resolved: Dict[str, Shape] = {}
        self._lock = threading.Lock()
        for shape in shapes:
            self.register(shape)

    @classmethod
    def default(cls, extra_dirs: Optional[Iterable[Union[str, Path]]] = None) -> "SchemaRegistry":
        """Registry with the bundled GameMaker shapes plus configured directories."""
        registry = cls()
        registry.load_directory(BUNDLED_SHAPES_DIR)
        dirs = store_config.schema_dirs if extra_dirs is None else extra_dirs
        for directory in dirs:
            registry.load_directory(directory)
        registry.verify()
        return registry

    def register(self, shape: Shape) -> None:
        with self._lock:
            if shape.name in self._shapes:
                logger.debug(f"Replacing shape definition '{shape.name}'")
            self._shapes[shape.name] = shape
            self._resolved.clear()

    def load_directory(self, directory: Union[str, Path]) -> int:
        """Register every ``*.yaml``/``*.yml`` shape file in a directory.

        Returns:
            Number of shapes registered
        """
        path = Path(directory)
        if not path.is_dir():
            raise SchemaDefinitionError(f"Shape directory not found: {path}")

        count = 0
        for file_path in sorted(list(path.glob("*.yaml")) + list(path.glob("*.yml"))):
            logger.debug(f"Loading shapes from: {file_path}")
            for shape in load_shape_file(file_path):
                self.register(shape)
                count += 1
        return count

    def verify(self) -> None:
        """Check that every ``extends``, nested shape and variant target exists.

        Raises:
            SchemaDefinitionError: Listing every dangling shape name
        """
        problems = []
        for shape in self._shapes.values():
            if shape.extends and shape.extends not in self._shapes:
                problems.append(f"'{shape.name}' extends unknown shape '{shape.extends}'")
            for field_name, spec in shape.fields.items():
                for target in nested_shape_names(spec.type):
                    if target not in self._shapes:
                        problems.append(f"'{shape.name}.{field_name}' uses unknown shape '{target}'")
            for value, target in shape.variants.items():
                if target not in self._shapes:
                    problems.append(f"'{shape.name}' variant {value!r} uses unknown shape '{target}'")
            if shape.discriminator and shape.discriminator not in self._raw_fields(shape):
                problems.append(f"'{shape.name}' discriminator '{shape.discriminator}' is not a field")
            try:
                self._resolve(shape.name, ())
            except SchemaDefinitionError as e:
                problems.append(str(e))
        if problems:
            raise SchemaDefinitionError("Inconsistent shape registry:\n" + "\n".join(f"  - {p}" for p in problems))

    def _raw_fields(self, shape: Shape) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        seen = set()
        current: Optional[Shape] = shape
        while current is not None and current.name not in seen:
            seen.add(current.name)
            for name, spec in current.fields.items():
                fields.setdefault(name, spec)
            current = self._shapes.get(current.extends) if current.extends else None
        return fields

    def shape_for(self, resource_type: Any) -> Optional[Shape]:
        """Return the fully merged shape for a kind or sub-record, or None if unknown."""
        if not isinstance(resource_type, str):
            return None
        with self._lock:
            cached = self._resolved.get(resource_type)
            if cached is not None:
                return cached
            resolved = self._resolve(resource_type, ())
            if resolved is not None:
                self._resolved[resource_type] = resolved
            return resolved

    def _resolve(self, name: str, chain: tuple) -> Optional[Shape]:
        shape = self._shapes.get(name)
        if shape is None:
            return None
        if name in chain:
            raise SchemaDefinitionError(f"Cyclic 'extends' chain: {' -> '.join(chain + (name,))}")
        if not shape.extends:
            return shape
        base = self._resolve(shape.extends, chain + (name,))
        if base is None:
            return shape
        return shape.merged_with(base)

    def base_shape(self) -> Optional[Shape]:
        return self.shape_for(BASE_SHAPE_NAME)

    def names(self) -> List[str]:
        return list(self._shapes.keys())

    # -- resource kinds ------------------------------------------------------

    def kinds(self) -> List[str]:
        """Names of shapes that describe top-level resources (those with a subpath)."""
        return [name for name, shape in self._shapes.items() if shape.subpath is not None]

    def kind_for_subpath(self, subpath: str) -> Optional[str]:
        for name, shape in self._shapes.items():
            if shape.subpath is not None and shape.subpath == subpath:
                return name
        return None

    def kind_for_path(self, path: Any) -> Optional[str]:
        """Infer a resource kind from the first segment of a project-relative path."""
        if not isinstance(path, str) or not path:
            return None
        first = path.replace("\\", "/").split("/", 1)[0]
        return self.kind_for_subpath(first)

    def subpath_for(self, kind: str) -> str:
        shape = self._shapes.get(kind)
        if shape is None or shape.subpath is None:
            raise ResourceKindError(f"Unknown resource kind: '{kind}'. Known kinds: {self.kinds()}")
        return shape.subpath

    def canonical_path(self, kind: str, name: str) -> str:
        """Project-relative path a descriptor of this kind and name is stored at."""
        subpath = self.subpath_for(kind)
        return self._shapes[kind].path_template.format(subpath=subpath, name=name)

    def is_manipulable(self, kind: str) -> bool:
        shape = self._shapes.get(kind)
        return bool(shape and shape.manipulable)
