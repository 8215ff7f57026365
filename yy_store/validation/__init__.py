"""Validation of descriptor trees."""

from .validator import validate
from .violations import Severity, Violation, ViolationKind

__all__ = ["validate", "Severity", "Violation", "ViolationKind"]
