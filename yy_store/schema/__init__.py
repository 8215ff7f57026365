"""Declarative resource shapes.

Shapes are data loaded from YAML files; the parser, validator and serializer
never need to change when a new resource kind is registered.
"""

from .registry import SchemaRegistry, load_shape_file, shapes_from_document
from .shapes import (
    AnyType,
    ArrayOf,
    FieldSpec,
    NestedShape,
    ReferenceType,
    ScalarType,
    Shape,
    parse_type_expression,
)

__all__ = [
    "SchemaRegistry",
    "load_shape_file",
    "shapes_from_document",
    "AnyType",
    "ArrayOf",
    "FieldSpec",
    "NestedShape",
    "ReferenceType",
    "ScalarType",
    "Shape",
    "parse_type_expression",
]
