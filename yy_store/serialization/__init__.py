"""Descriptor text output."""

from .yy_serializer import FormatStyle, serialize

__all__ = ["FormatStyle", "serialize"]
