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

"""Structural validation of descriptor trees against registered shapes."""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..config import store_config
from ..parsing.yy_parser import DuplicateKeyWarning
from ..schema.registry import SchemaRegistry
from ..schema.shapes import (
    AnyType,
    ArrayOf,
    FieldSpec,
    FieldType,
    NestedShape,
    ReferenceType,
    ScalarType,
    Shape,
    enum_key,
    is_well_formed_reference,
    value_tag,
)
from ..utils.locations import join_index, join_key
from .violations import Violation, ViolationKind

logger = logging.getLogger(__name__)


def _matches_scalar(value: Any, scalar: str) -> bool:
    if scalar == "bool":
        return isinstance(value, bool)
    if scalar == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if scalar == "string":
        return isinstance(value, str)
    return False


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return repr(value)


class _ShapeValidator:
    """Collects violations for one tree; never raises and never mutates."""

    def __init__(self, registry: Optional[SchemaRegistry], max_depth: int):
        self.registry = registry
        self.max_depth = max_depth
        self.violations: List[Violation] = []

    def add(self, kind: ViolationKind, location: str, message: str) -> None:
        self.violations.append(Violation(kind, location, message))

    def effective_shape(self, shape: Shape, record: Dict[str, Any]) -> Shape:
        if self.registry is None:
            return shape
        variant = shape.variant_for(record)
        if variant is None:
            return shape
        return self.registry.shape_for(variant) or shape

    def check_record(self, record: Dict[str, Any], shape: Shape, location: str, depth: int) -> None:
        shape = self.effective_shape(shape, record)

        for field_name, spec in shape.fields.items():
            field_location = join_key(location, field_name)
            if field_name not in record:
                if spec.required:
                    self.add(
                        ViolationKind.MISSING_FIELD,
                        field_location,
                        f"Required field '{field_name}' is missing from {shape.name}",
                    )
                continue
            self.check_field(record[field_name], spec, field_location, depth)

        if not shape.open:
            for key in record:
                if key not in shape.fields:
                    self.add(
                        ViolationKind.UNKNOWN_FIELD,
                        join_key(location, key),
                        f"Field '{key}' is not declared by {shape.name}",
                    )

    def check_field(self, value: Any, spec: FieldSpec, location: str, depth: int) -> None:
        if value is None:
            if not spec.allows_null():
                self.add(ViolationKind.TYPE_MISMATCH, location, f"Expected {spec.type.describe()}, found null")
            return

        if not self.check_type(value, spec.type, location, depth):
            return

        enum_keys = spec.enum_keys
        if enum_keys is not None and (isinstance(value, (list, dict)) or enum_key(value) not in enum_keys):
            allowed = ", ".join(_format_value(v) for v in spec.enum_values)
            self.add(
                ViolationKind.ENUM_VIOLATION,
                location,
                f"Value {_format_value(value)} is not one of [{allowed}]",
            )

    def check_type(self, value: Any, field_type: FieldType, location: str, depth: int) -> bool:
        """Check ``value`` against ``field_type``; returns False after recording a mismatch."""
        if isinstance(field_type, AnyType):
            return True

        if isinstance(field_type, ScalarType):
            if _matches_scalar(value, field_type.scalar):
                return True
            self._mismatch(value, field_type, location)
            return False

        if isinstance(field_type, ReferenceType):
            if is_well_formed_reference(value):
                return True
            self._mismatch(value, field_type, location)
            return False

        if isinstance(field_type, ArrayOf):
            if not isinstance(value, list):
                self._mismatch(value, field_type, location)
                return False
            if not self._enter(location, depth):
                return False
            item_nullable = isinstance(field_type.item, (AnyType, ReferenceType))
            for idx, item in enumerate(value):
                item_location = join_index(location, idx)
                if item is None:
                    if not item_nullable:
                        self.add(
                            ViolationKind.TYPE_MISMATCH,
                            item_location,
                            f"Expected {field_type.item.describe()}, found null",
                        )
                    continue
                self.check_type(item, field_type.item, item_location, depth + 1)
            return True

        if isinstance(field_type, NestedShape):
            if not isinstance(value, dict):
                self._mismatch(value, field_type, location)
                return False
            if not self._enter(location, depth):
                return False
            nested = self.registry.shape_for(field_type.shape_name) if self.registry else None
            if nested is None:
                logger.debug(f"No shape '{field_type.shape_name}' registered; skipping {location}")
                return True
            self.check_record(value, nested, location, depth + 1)
            return True

        return True

    def _enter(self, location: str, depth: int) -> bool:
        if depth >= self.max_depth:
            self.add(
                ViolationKind.TYPE_MISMATCH,
                location,
                f"Value nests deeper than the maximum of {self.max_depth} levels",
            )
            return False
        return True

    def _mismatch(self, value: Any, field_type: FieldType, location: str) -> None:
        self.add(
            ViolationKind.TYPE_MISMATCH,
            location,
            f"Expected {field_type.describe()}, found {value_tag(value)}",
        )


def validate(
    tree: Any,
    shape: Optional[Shape],
    *,
    registry: Optional[SchemaRegistry] = None,
    file_name: Optional[str] = None,
    duplicate_keys: Iterable[DuplicateKeyWarning] = (),
    max_depth: Optional[int] = None,
) -> List[Violation]:
    """Validate a descriptor tree against a shape.

    Args:
        tree: Parsed descriptor value tree
        shape: Shape for the descriptor's kind, or None when the kind is unknown
        registry: Registry used to look up nested shapes, variants and the base shape
        file_name: Base name of the backing file; ``name`` must equal it
        duplicate_keys: Duplicate keys reported by the parser
        max_depth: Nesting limit for the walk. If None, uses global config.

    Returns:
        Violations in document order; empty when the tree is valid
    """
    checker = _ShapeValidator(registry, max_depth if max_depth is not None else store_config.max_nesting_depth)

    for dup in duplicate_keys:
        checker.add(
            ViolationKind.DUPLICATE_KEY,
            dup.location,
            f"Key '{dup.key}' appears more than once (line {dup.line}, column {dup.column}); last value wins",
        )

    if not isinstance(tree, dict):
        checker.add(ViolationKind.TYPE_MISMATCH, "", f"Expected a descriptor object, found {value_tag(tree)}")
        return checker.violations

    if shape is None:
        resource_type = tree.get("resourceType")
        if isinstance(resource_type, str):
            checker.add(
                ViolationKind.UNKNOWN_KIND,
                "resourceType",
                f"Resource kind '{resource_type}' is not registered; only base fields were checked",
            )
        base = registry.base_shape() if registry is not None else None
        shape = replace(base, open=True) if base is not None else None

    if shape is not None:
        checker.check_record(tree, shape, "", 0)

    if file_name is not None:
        name = tree.get("name")
        if isinstance(name, str) and name != file_name:
            checker.add(
                ViolationKind.NAME_MISMATCH,
                "name",
                f"Descriptor name '{name}' does not match its file name '{file_name}'",
            )

    return checker.violations
