"""File I/O related utilities.

This package groups small modules that primarily deal with reading/writing files and
formatting file-backed diagnostics.
"""

from .project_scanner import ProjectScan, find_project_file, scan_project
from .source_location import SourceLocation, format_source, lookup_source, source_from_descriptor
from .template_renderer import TemplateRenderer
from .writer import FileSystemWriter, MemoryWriter

__all__ = [
    "ProjectScan",
    "find_project_file",
    "scan_project",
    "SourceLocation",
    "format_source",
    "lookup_source",
    "source_from_descriptor",
    "TemplateRenderer",
    "FileSystemWriter",
    "MemoryWriter",
]
