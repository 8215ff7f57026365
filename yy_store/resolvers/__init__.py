from .reference_resolver import (
    BrokenReference,
    ProjectIndex,
    ResolvedReference,
    ResolvedTree,
    repair_references,
    resolve,
    retarget_references,
)

__all__ = [
    "BrokenReference",
    "ProjectIndex",
    "ResolvedReference",
    "ResolvedTree",
    "repair_references",
    "resolve",
    "retarget_references",
]
