from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from ..exceptions import SchemaDefinitionError


@dataclass(frozen=True)
class ScalarType:
    scalar: str  # "bool" | "number" | "string"

    def describe(self) -> str:
        return self.scalar


@dataclass(frozen=True)
class ReferenceType:
    target_kind: Optional[str] = None

    def describe(self) -> str:
        return f"reference<{self.target_kind}>" if self.target_kind else "reference"


@dataclass(frozen=True)
class ArrayOf:
    item: "FieldType"

    def describe(self) -> str:
        return f"array<{self.item.describe()}>"


@dataclass(frozen=True)
class NestedShape:
    shape_name: str

    def describe(self) -> str:
        return f"shape<{self.shape_name}>"


@dataclass(frozen=True)
class AnyType:
    def describe(self) -> str:
        return "any"


FieldType = Union[ScalarType, ReferenceType, ArrayOf, NestedShape, AnyType]

SCALAR_NAMES = ("bool", "number", "string")


def value_tag(value: Any) -> str:
    """Name the runtime type of a parsed value the way shapes spell it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def enum_key(value: Any) -> Tuple[str, Any]:
    """Type-aware key so that ``true`` never matches ``1`` and ``1`` matches ``1.0``."""
    return value_tag(value), value


@dataclass(frozen=True)
class FieldSpec:
    type: FieldType
    required: bool = False
    nullable: bool = False
    enum_values: Optional[Tuple[Any, ...]] = None
    resolve: bool = True

    @property
    def enum_keys(self) -> Optional[FrozenSet[Tuple[str, Any]]]:
        if self.enum_values is None:
            return None
        return frozenset(enum_key(v) for v in self.enum_values)

    def allows_null(self) -> bool:
        return self.nullable or isinstance(self.type, AnyType)


@dataclass(frozen=True)
class Shape:
    """Declarative description of one resource kind or sub-record.

    Fields are kept in declaration order. ``extends`` names a shape whose fields
    are merged first; ``discriminator``/``variants`` select a more specific
    shape for a record based on one of its values.
    """
    name: str
    fields: Dict[str, FieldSpec] = field(default_factory=dict)
    extends: Optional[str] = None
    subpath: Optional[str] = None
    path_template: str = "{subpath}/{name}/{name}.yy"
    manipulable: bool = False
    open: bool = False
    discriminator: Optional[str] = None
    variants: Dict[Any, str] = field(default_factory=dict)
    description: str = ""

    @property
    def is_resource_kind(self) -> bool:
        return self.subpath is not None

    def required_fields(self) -> Tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.required)

    def variant_for(self, record: Dict[str, Any]) -> Optional[str]:
        if not self.discriminator or self.discriminator not in record:
            return None
        wanted = enum_key(record[self.discriminator])
        for value, shape_name in self.variants.items():
            if enum_key(value) == wanted:
                return shape_name
        return None

    def merged_with(self, base: "Shape") -> "Shape":
        """Return this shape with ``base`` fields merged underneath its own."""
        merged = dict(base.fields)
        merged.update(self.fields)
        return replace(
            self,
            fields=merged,
            subpath=self.subpath if self.subpath is not None else base.subpath,
            open=self.open or base.open,
        )


# -------------------------
# Type expressions
# -------------------------

_GENERIC_RE = re.compile(r"^(array|reference|shape)<(.+)>$")
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


def parse_type_expression(expression: str) -> Tuple[FieldType, bool]:
    """Parse a type expression such as ``array<shape<GMEvent>>`` or ``string?``.

    Returns:
        Tuple of (field type, nullable flag from a trailing '?')

    Raises:
        SchemaDefinitionError: If the expression is malformed
    """
    if not isinstance(expression, str) or not expression.strip():
        raise SchemaDefinitionError(f"Invalid type expression: {expression!r}")

    text = expression.strip()
    nullable = text.endswith("?")
    if nullable:
        text = text[:-1].strip()
    return _parse_type(text, expression), nullable


def _parse_type(text: str, original: str) -> FieldType:
    if text in SCALAR_NAMES:
        return ScalarType(text)
    if text == "any":
        return AnyType()
    if text == "reference":
        return ReferenceType()

    match = _GENERIC_RE.match(text)
    if match is None:
        raise SchemaDefinitionError(f"Unknown type '{text}' in type expression {original!r}")

    head, inner = match.group(1), match.group(2).strip()
    if head == "array":
        return ArrayOf(_parse_type(inner, original))
    if not _NAME_RE.match(inner):
        raise SchemaDefinitionError(f"Invalid {head} target '{inner}' in type expression {original!r}")
    if head == "reference":
        return ReferenceType(inner)
    return NestedShape(inner)


def nested_shape_names(field_type: FieldType):
    """Yield every shape name mentioned by a field type."""
    if isinstance(field_type, NestedShape):
        yield field_type.shape_name
    elif isinstance(field_type, ArrayOf):
        yield from nested_shape_names(field_type.item)


# -------------------------
# Construction from data
# -------------------------

def field_spec_from_data(shape_name: str, field_name: str, data: Any) -> FieldSpec:
    if isinstance(data, str):
        data = {"type": data}
    if not isinstance(data, dict):
        raise SchemaDefinitionError(f"Field '{field_name}' of shape '{shape_name}' must be a mapping or a type string")

    field_type, nullable = parse_type_expression(data.get("type", "any"))
    if "nullable" in data:
        nullable = bool(data["nullable"])
    elif isinstance(field_type, ReferenceType) and not nullable:
        # References accept null ("no reference") unless told otherwise.
        nullable = True

    enum_values = data.get("enum")
    if enum_values is not None:
        if not isinstance(field_type, (ScalarType, AnyType)):
            raise SchemaDefinitionError(
                f"Field '{field_name}' of shape '{shape_name}' declares an enum on non-scalar type {field_type.describe()}"
            )
        enum_values = tuple(enum_values)

    return FieldSpec(
        type=field_type,
        required=bool(data.get("required", False)),
        nullable=nullable,
        enum_values=enum_values,
        resolve=bool(data.get("resolve", True)),
    )


def shape_from_data(data: Dict[str, Any]) -> Shape:
    name = data["name"]
    fields = {
        field_name: field_spec_from_data(name, field_name, field_data)
        for field_name, field_data in (data.get("fields") or {}).items()
    }
    return Shape(
        name=name,
        fields=fields,
        extends=data.get("extends"),
        subpath=data.get("subpath"),
        path_template=data.get("path_template", "{subpath}/{name}/{name}.yy"),
        manipulable=bool(data.get("manipulable", False)),
        open=bool(data.get("open", False)),
        discriminator=data.get("discriminator"),
        variants=dict(data.get("variants") or {}),
        description=data.get("description", ""),
    )


# -------------------------
# Reference values
# -------------------------

REFERENCE_KEYS = frozenset({"name", "path"})


def is_reference_candidate(value: Any) -> bool:
    """True for an object with exactly the keys ``name`` and ``path``."""
    return isinstance(value, dict) and len(value) == 2 and REFERENCE_KEYS.issuperset(value)


def is_well_formed_reference(value: Any) -> bool:
    """A null, a ``{name: null, ...}`` pair, or a pair of two strings."""
    if value is None:
        return True
    if not is_reference_candidate(value):
        return False
    if value["name"] is None:
        return value["path"] is None or isinstance(value["path"], str)
    return isinstance(value["name"], str) and isinstance(value["path"], str)
