"""Descriptor store orchestration."""

from .descriptor_store import Descriptor, DescriptorStatus, DescriptorStore, LoadReport, SaveReport

__all__ = ["Descriptor", "DescriptorStatus", "DescriptorStore", "LoadReport", "SaveReport"]
