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

"""Resolution of ``{name, path}`` references against a project index snapshot."""

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..config import store_config
from ..schema.registry import SchemaRegistry
from ..schema.shapes import ArrayOf, NestedShape, ReferenceType, Shape, is_reference_candidate
from ..utils.locations import is_top_level, join_index, join_key
from ..validation.violations import Violation, ViolationKind

logger = logging.getLogger(__name__)


class ProjectIndex:
    """Immutable snapshot of ``kind -> name -> path`` for every known descriptor.

    Two kinds may use the same name. Every "modifying" method returns a new
    snapshot and leaves this one untouched, so a resolution that holds a
    snapshot never observes a half-applied change.
    """

    __slots__ = ("_kinds",)

    def __init__(self, entries: Optional[Mapping[str, Mapping[str, str]]] = None):
        kinds = {kind: MappingProxyType(dict(names)) for kind, names in (entries or {}).items() if names}
        object.__setattr__(self, "_kinds", MappingProxyType(kinds))

    def __setattr__(self, name, value):
        raise AttributeError("ProjectIndex is immutable")

    @classmethod
    def from_entries(cls, entries: Iterable[Tuple[str, str, str]]) -> "ProjectIndex":
        """Build an index from ``(kind, name, path)`` triples; later triples win."""
        data: Dict[str, Dict[str, str]] = {}
        for kind, name, path in entries:
            data.setdefault(kind, {})[name] = path
        return cls(data)

    def path_for(self, kind: str, name: str) -> Optional[str]:
        names = self._kinds.get(kind)
        return names.get(name) if names is not None else None

    def contains(self, kind: str, name: str) -> bool:
        return self.path_for(kind, name) is not None

    def kinds_for_name(self, name: str) -> List[str]:
        return [kind for kind, names in self._kinds.items() if name in names]

    def names(self, kind: str) -> Mapping[str, str]:
        return self._kinds.get(kind, MappingProxyType({}))

    def kinds(self) -> List[str]:
        return list(self._kinds.keys())

    def entries(self) -> Iterator[Tuple[str, str, str]]:
        for kind, names in self._kinds.items():
            for name, path in names.items():
                yield kind, name, path

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {kind: dict(names) for kind, names in self._kinds.items()}

    def with_entry(self, kind: str, name: str, path: str) -> "ProjectIndex":
        data = self.to_dict()
        data.setdefault(kind, {})[name] = path
        return ProjectIndex(data)

    def without_entry(self, kind: str, name: str) -> "ProjectIndex":
        data = self.to_dict()
        data.get(kind, {}).pop(name, None)
        return ProjectIndex(data)

    def with_rename(self, kind: str, old_name: str, new_name: str, new_path: str) -> "ProjectIndex":
        data = self.to_dict()
        names = data.setdefault(kind, {})
        names.pop(old_name, None)
        names[new_name] = new_path
        return ProjectIndex(data)

    def __len__(self) -> int:
        return sum(len(names) for names in self._kinds.values())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProjectIndex):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(sorted(self.entries())))

    def __repr__(self) -> str:
        return f"ProjectIndex({self.to_dict()!r})"


@dataclass(frozen=True)
class ResolvedReference:
    location: str
    target_kind: Optional[str]
    name: str
    path: str


@dataclass(frozen=True)
class BrokenReference:
    """A reference whose path does not match the index.

    ``expected_path`` is None when the name is not indexed at all.
    """
    location: str
    expected_path: Optional[str]
    actual_path: Optional[str]
    target_kind: Optional[str] = None
    name: Optional[str] = None

    @property
    def message(self) -> str:
        target = f"{self.target_kind} '{self.name}'" if self.target_kind else f"'{self.name}'"
        if self.expected_path is None:
            return f"Reference to {target} does not name a known resource (path '{self.actual_path}')"
        return f"Reference to {target} has path '{self.actual_path}' but the resource is at '{self.expected_path}'"

    def to_violation(self) -> Violation:
        return Violation(ViolationKind.BROKEN_REFERENCE, self.location, self.message)


@dataclass
class ResolvedTree:
    tree: Any
    references: List[ResolvedReference] = field(default_factory=list)
    broken: List[BrokenReference] = field(default_factory=list)
    warnings: List[Violation] = field(default_factory=list)

    @property
    def violations(self) -> List[Violation]:
        return [b.to_violation() for b in self.broken] + list(self.warnings)

    @property
    def ok(self) -> bool:
        return not self.broken


@dataclass
class _Candidate:
    location: str
    node: Dict[str, Any]
    declared_kind: Optional[str]


class _ReferenceCollector:
    """Walks a tree and collects reference-shaped objects.

    With a registry, the walk follows the descriptor's shape so that declared
    ``reference<Kind>`` targets are known and ``resolve: false`` fields are
    skipped. Without one, every ``{name, path}`` object is collected.
    """

    def __init__(self, registry: Optional[SchemaRegistry], max_depth: int):
        self.registry = registry
        self.max_depth = max_depth
        self.candidates: List[_Candidate] = []

    def collect(self, tree: Any, shape: Optional[Shape]) -> List[_Candidate]:
        if isinstance(tree, dict) and not is_reference_candidate(tree):
            self._walk_record(tree, shape, "", 0)
        return self.candidates

    def _shape(self, name: str) -> Optional[Shape]:
        return self.registry.shape_for(name) if self.registry is not None else None

    def _walk_record(self, record: Dict[str, Any], shape: Optional[Shape], location: str, depth: int) -> None:
        if shape is not None:
            variant = shape.variant_for(record)
            if variant is not None:
                shape = self._shape(variant) or shape

        for key, child in record.items():
            spec = shape.fields.get(key) if shape is not None else None
            if spec is not None and not spec.resolve:
                continue
            self._walk_value(child, spec.type if spec is not None else None, join_key(location, key), depth + 1)

    def _walk_value(self, value: Any, field_type, location: str, depth: int) -> None:
        if depth > self.max_depth:
            logger.debug(f"Reference walk stopped at {location}: nesting limit reached")
            return

        if isinstance(value, dict):
            if is_reference_candidate(value):
                declared = field_type.target_kind if isinstance(field_type, ReferenceType) else None
                self.candidates.append(_Candidate(location, value, declared))
                return
            nested = self._shape(field_type.shape_name) if isinstance(field_type, NestedShape) else None
            self._walk_record(value, nested, location, depth)
        elif isinstance(value, list):
            item_type = field_type.item if isinstance(field_type, ArrayOf) else None
            for idx, item in enumerate(value):
                self._walk_value(item, item_type, join_index(location, idx), depth + 1)


def _collect(tree: Any, shape: Optional[Shape], registry: Optional[SchemaRegistry]) -> List[_Candidate]:
    if shape is None and registry is not None and isinstance(tree, dict):
        shape = registry.shape_for(tree.get("resourceType"))
    return _ReferenceCollector(registry, store_config.max_nesting_depth).collect(tree, shape)


def _target_kind(
    candidate: _Candidate,
    index: ProjectIndex,
    registry: Optional[SchemaRegistry],
) -> Optional[str]:
    if candidate.declared_kind:
        return candidate.declared_kind
    path = candidate.node.get("path")
    if registry is not None:
        kind = registry.kind_for_path(path)
        if kind is not None:
            return kind
    kinds = index.kinds_for_name(candidate.node.get("name"))
    for kind in kinds:
        if index.path_for(kind, candidate.node["name"]) == path:
            return kind
    return kinds[0] if kinds else None


def resolve(
    tree: Any,
    index: ProjectIndex,
    *,
    kind: Optional[str] = None,
    name: Optional[str] = None,
    shape: Optional[Shape] = None,
    registry: Optional[SchemaRegistry] = None,
) -> ResolvedTree:
    """Resolve every reference in a descriptor tree against one index snapshot.

    A reference resolves when ``index[kind][name] == path``. Anything else is
    reported as exactly one BrokenReference and left untouched; a null
    reference (or a null ``name``) is always valid.

    Args:
        tree: Descriptor value tree; not modified
        index: Project index snapshot
        kind: Kind of the descriptor itself, for self-reference detection.
            Defaults to the tree's ``resourceType``.
        name: Name of the descriptor itself. Defaults to the tree's ``name``.
        shape: Shape of the descriptor. Looked up from ``registry`` when omitted.
        registry: Registry supplying shapes and the subpath to kind mapping
    """
    if isinstance(tree, dict):
        kind = kind if kind is not None else tree.get("resourceType")
        name = name if name is not None else tree.get("name")

    result = ResolvedTree(tree=tree)
    for candidate in _collect(tree, shape, registry):
        ref_name = candidate.node.get("name")
        ref_path = candidate.node.get("path")
        if ref_name is None:
            continue
        if not isinstance(ref_name, str):
            logger.debug(f"Skipping malformed reference at {candidate.location}")
            continue

        target_kind = _target_kind(candidate, index, registry)
        expected = index.path_for(target_kind, ref_name) if target_kind else None
        if expected is not None and expected == ref_path:
            result.references.append(ResolvedReference(candidate.location, target_kind, ref_name, ref_path))
        else:
            result.broken.append(
                BrokenReference(candidate.location, expected, ref_path, target_kind, ref_name)
            )

        if is_top_level(candidate.location) and target_kind == kind and ref_name == name:
            result.warnings.append(
                Violation(
                    ViolationKind.SELF_REFERENCE,
                    candidate.location,
                    f"Field '{candidate.location}' refers to the descriptor itself",
                )
            )
    return result


def repair_references(
    tree: Any,
    index: ProjectIndex,
    *,
    shape: Optional[Shape] = None,
    registry: Optional[SchemaRegistry] = None,
) -> Tuple[Any, List[BrokenReference]]:
    """Return a copy of ``tree`` with drifted reference paths set to the indexed path.

    Only references whose name is indexed are repaired; references to unknown
    names are left for the caller to report.

    Returns:
        Tuple of (repaired copy, the broken references that were repaired)
    """
    repaired = copy.deepcopy(tree)
    repairs: List[BrokenReference] = []
    for candidate in _collect(repaired, shape, registry):
        ref_name = candidate.node.get("name")
        if not isinstance(ref_name, str):
            continue
        target_kind = _target_kind(candidate, index, registry)
        expected = index.path_for(target_kind, ref_name) if target_kind else None
        actual = candidate.node.get("path")
        if expected is not None and expected != actual:
            repairs.append(BrokenReference(candidate.location, expected, actual, target_kind, ref_name))
            candidate.node["path"] = expected
    if repairs:
        logger.debug(f"Repaired {len(repairs)} reference(s)")
    return repaired, repairs


def retarget_references(
    tree: Any,
    target_kind: str,
    old_name: str,
    new_name: str,
    new_path: str,
    *,
    index: Optional[ProjectIndex] = None,
    shape: Optional[Shape] = None,
    registry: Optional[SchemaRegistry] = None,
) -> Tuple[Any, List[str]]:
    """Return a copy of ``tree`` with references to a renamed resource rewritten.

    Returns:
        Tuple of (updated copy, locations that were rewritten)
    """
    updated = copy.deepcopy(tree)
    index = index if index is not None else ProjectIndex()
    changed: List[str] = []
    for candidate in _collect(updated, shape, registry):
        if candidate.node.get("name") != old_name:
            continue
        if _target_kind(candidate, index, registry) != target_kind:
            continue
        candidate.node["name"] = new_name
        candidate.node["path"] = new_path
        changed.append(candidate.location)
    return updated, changed

