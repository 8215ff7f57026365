"""Relaxed JSON parsing for ``.yy`` descriptors."""

from .yy_parser import DescriptorParser, DuplicateKeyWarning, ParsedDocument, parse, yy_parser

__all__ = ["DescriptorParser", "DuplicateKeyWarning", "ParsedDocument", "parse", "yy_parser"]
