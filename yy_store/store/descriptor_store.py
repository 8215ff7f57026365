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

"""Descriptor store: load, mutate, check and save descriptors by identity."""

import copy
import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config import store_config
from ..exceptions import (
    DescriptorExistsError,
    DescriptorNotFoundError,
    MutationRejected,
    NotSavableError,
    ParseError,
    ResourceKindError,
    SerializationError,
    ValidationError,
    YyStoreError,
)
from ..parsing.yy_parser import DescriptorParser, DuplicateKeyWarning, SourceMap, yy_parser
from ..resolvers.reference_resolver import (
    BrokenReference,
    ProjectIndex,
    repair_references,
    resolve,
    retarget_references,
)
from ..schema.registry import SchemaRegistry
from ..serialization.yy_serializer import FormatStyle, serialize
from ..validation.validator import validate
from ..validation.violations import Violation, ViolationKind, fatal, introduced

logger = logging.getLogger(__name__)

DescriptorKey = Tuple[Optional[str], str]
EditFn = Callable[[Any], Any]


class DescriptorStatus(str, Enum):
    LOADED = "loaded"
    UNPARSEABLE = "unparseable"


@dataclass
class Descriptor:
    """One resource descriptor held by the store.

    ``raw_text`` is the text the descriptor was loaded from (or last saved
    as). For an unparseable descriptor it is kept exactly as read and
    ``tree`` is None.
    """
    kind: Optional[str]
    name: str
    path: str
    tree: Any
    raw_text: Optional[str] = None
    status: DescriptorStatus = DescriptorStatus.LOADED
    parse_error: Optional[ParseError] = None
    violations: List[Violation] = field(default_factory=list)
    duplicate_keys: List[DuplicateKeyWarning] = field(default_factory=list)
    source_map: SourceMap = field(default_factory=dict)
    dirty: bool = False
    renamed_from: Optional[str] = None

    @property
    def key(self) -> DescriptorKey:
        return self.kind, self.name

    @property
    def is_parsed(self) -> bool:
        return self.status == DescriptorStatus.LOADED

    @property
    def fatal_violations(self) -> List[Violation]:
        return fatal(self.violations)

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if not v.is_fatal]

    @property
    def is_savable(self) -> bool:
        return self.is_parsed and not self.fatal_violations

    def copy(self) -> "Descriptor":
        return replace(
            self,
            tree=copy.deepcopy(self.tree),
            violations=list(self.violations),
            duplicate_keys=list(self.duplicate_keys),
            source_map=dict(self.source_map),
        )


@dataclass
class LoadReport:
    loaded: List[Descriptor] = field(default_factory=list)
    failed: Dict[str, YyStoreError] = field(default_factory=dict)

    @property
    def unparseable(self) -> List[Descriptor]:
        return [d for d in self.loaded if not d.is_parsed]


@dataclass
class SaveReport:
    saved: Dict[DescriptorKey, str] = field(default_factory=dict)
    failed: Dict[DescriptorKey, YyStoreError] = field(default_factory=dict)
    removed: List[str] = field(default_factory=list)
    failed_removals: Dict[str, YyStoreError] = field(default_factory=dict)


def _base_name(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).stem


class DescriptorStore:
    """Holds descriptors keyed by ``(kind, name)`` and guards every change.

    Mutations and saves on one key are serialized by a per-key lock; distinct
    keys proceed in parallel. Add, remove and rename change the resource set,
    so they also hold a structure lock and publish a new index snapshot.
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        index: Optional[ProjectIndex] = None,
        root: Optional[Union[str, Path]] = None,
        writer: Any = None,
        style: Optional[FormatStyle] = None,
        parser: Optional[DescriptorParser] = None,
    ):
        self.registry = registry if registry is not None else SchemaRegistry.default()
        self.root = Path(root) if root is not None else None
        self.writer = writer
        self.style = style if style is not None else store_config.format_style()
        self.parser = parser if parser is not None else yy_parser

        self._index = index if index is not None else ProjectIndex()
        self._index_lock = threading.Lock()
        self._descriptors: Dict[DescriptorKey, Descriptor] = {}
        self._table_lock = threading.Lock()
        self._key_locks: Dict[DescriptorKey, threading.RLock] = {}
        self._key_locks_guard = threading.Lock()
        self._structure_lock = threading.RLock()
        self._pending_removals: Dict[str, DescriptorKey] = {}

    # -- index ---------------------------------------------------------------

    @property
    def index(self) -> ProjectIndex:
        with self._index_lock:
            return self._index

    def set_index(self, index: ProjectIndex) -> None:
        """Publish a new index snapshot; resolutions already running keep the old one."""
        with self._index_lock:
            self._index = index
        logger.debug(f"Project index replaced ({len(index)} entries)")

    # -- bookkeeping ---------------------------------------------------------

    def _lock_for(self, key: DescriptorKey) -> threading.RLock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._key_locks[key] = lock
            return lock

    def _lookup(self, kind: Optional[str], name: str) -> Optional[Descriptor]:
        with self._table_lock:
            return self._descriptors.get((kind, name))

    def _require(self, kind: Optional[str], name: str) -> Descriptor:
        descriptor = self._lookup(kind, name)
        if descriptor is None:
            raise DescriptorNotFoundError(f"No descriptor loaded for {kind} '{name}'")
        return descriptor

    def _put(self, descriptor: Descriptor) -> None:
        with self._table_lock:
            self._descriptors[descriptor.key] = descriptor

    def _pop(self, key: DescriptorKey) -> Optional[Descriptor]:
        with self._table_lock:
            return self._descriptors.pop(key, None)

    def _require_manipulable(self, kind: Any, operation: str) -> str:
        if not isinstance(kind, str) or kind not in self.registry.kinds():
            raise ResourceKindError(f"Cannot {operation} resource of unknown kind '{kind}'")
        if not self.registry.is_manipulable(kind):
            raise ResourceKindError(f"The store cannot {operation} resources of kind '{kind}'")
        return kind

    # -- evaluation ----------------------------------------------------------

    def _infer_kind(self, tree: Any, path: str) -> Optional[str]:
        resource_type = tree.get("resourceType") if isinstance(tree, dict) else None
        if isinstance(resource_type, str):
            return resource_type
        return self.registry.kind_for_path(path)

    def _evaluate(
        self,
        tree: Any,
        kind: Optional[str],
        name: str,
        index: ProjectIndex,
        duplicate_keys: Iterable[DuplicateKeyWarning] = (),
    ) -> List[Violation]:
        """Validate and resolve one tree against one index snapshot."""
        shape = None
        if isinstance(tree, dict):
            shape = self.registry.shape_for(tree.get("resourceType"))
            if shape is None and "resourceType" not in tree:
                shape = self.registry.shape_for(kind)

        violations = validate(
            tree,
            shape,
            registry=self.registry,
            file_name=name,
            duplicate_keys=duplicate_keys,
        )
        resolved = resolve(tree, index, kind=kind, name=name, shape=shape, registry=self.registry)
        violations.extend(resolved.violations)
        return violations

    @staticmethod
    def _unparseable_violation(descriptor: Descriptor) -> Violation:
        return Violation(ViolationKind.UNPARSEABLE, "", str(descriptor.parse_error))

    # -- loading -------------------------------------------------------------

    def _resolve_path(self, path: Union[str, Path]) -> Tuple[Path, str]:
        file_path = Path(path)
        if not file_path.is_absolute() and self.root is not None:
            file_path = self.root / file_path
        if self.root is not None:
            try:
                return file_path, file_path.resolve().relative_to(self.root.resolve()).as_posix()
            except ValueError:
                pass
        return file_path, Path(path).as_posix()

    def load(self, path: Union[str, Path]) -> Descriptor:
        """Read a descriptor file and hold it in the store.

        Args:
            path: Path relative to the store root (or absolute)

        Returns:
            A copy of the stored descriptor; unparseable text yields a
            descriptor with status UNPARSEABLE instead of an exception

        Raises:
            DescriptorIOError: If the file cannot be read
        """
        file_path, relative = self._resolve_path(path)
        text = self.parser.read_text(file_path)
        return self.load_text(text, relative)

    def load_text(self, text: str, path: str) -> Descriptor:
        """Hold descriptor text supplied by a collaborator under a project-relative path."""
        name = _base_name(path)
        try:
            document = self.parser.parse_with_source(text)
        except ParseError as e:
            kind = self.registry.kind_for_path(path)
            descriptor = Descriptor(
                kind=kind,
                name=name,
                path=path,
                tree=None,
                raw_text=text,
                status=DescriptorStatus.UNPARSEABLE,
                parse_error=e,
            )
            descriptor.violations = [self._unparseable_violation(descriptor)]
            logger.warning(f"Unparseable descriptor {path}: {e}")
        else:
            kind = self._infer_kind(document.value, path)
            descriptor = Descriptor(
                kind=kind,
                name=name,
                path=path,
                tree=document.value,
                raw_text=text,
                duplicate_keys=list(document.duplicate_keys),
                source_map=document.source_map,
            )
            descriptor.violations = self._evaluate(
                descriptor.tree, kind, name, self.index, descriptor.duplicate_keys
            )
            if descriptor.fatal_violations:
                logger.info(f"Loaded {path} with {len(descriptor.fatal_violations)} fatal violation(s)")
            else:
                logger.debug(f"Loaded {path}")

        with self._structure_lock:
            self._claim_path(path)
        with self._lock_for(descriptor.key):
            self._put(descriptor)
        return descriptor.copy()

    def load_many(self, paths: Iterable[Union[str, Path]]) -> LoadReport:
        """Load several descriptors; a failure on one never stops the others."""
        report = LoadReport()
        for path in paths:
            try:
                report.loaded.append(self.load(path))
            except YyStoreError as e:
                logger.error(f"Failed to load {path}: {e}")
                report.failed[str(path)] = e
        return report

    # -- queries -------------------------------------------------------------

    def get(self, kind: Optional[str], name: str) -> Optional[Descriptor]:
        descriptor = self._lookup(kind, name)
        if descriptor is None:
            return None
        with self._lock_for(descriptor.key):
            return descriptor.copy()

    def exists(self, kind: Optional[str], name: str) -> bool:
        return self._lookup(kind, name) is not None

    def descriptors(self) -> List[Descriptor]:
        with self._table_lock:
            held = list(self._descriptors.values())
        return [d.copy() for d in held]

    def keys(self) -> List[DescriptorKey]:
        with self._table_lock:
            return list(self._descriptors.keys())

    def dirty_keys(self) -> List[DescriptorKey]:
        with self._table_lock:
            return [key for key, d in self._descriptors.items() if d.dirty]

    # -- checking ------------------------------------------------------------

    def check(self, kind: Optional[str], name: str) -> List[Violation]:
        """Re-run validation and resolution against the current index snapshot."""
        with self._lock_for((kind, name)):
            descriptor = self._require(kind, name)
            if not descriptor.is_parsed:
                return list(descriptor.violations)
            descriptor.violations = self._evaluate(
                descriptor.tree, descriptor.kind, descriptor.name, self.index, descriptor.duplicate_keys
            )
            return list(descriptor.violations)

    def check_all(self) -> Dict[DescriptorKey, List[Violation]]:
        results = {}
        for key in self.keys():
            try:
                results[key] = self.check(*key)
            except DescriptorNotFoundError:
                continue
        return results

    # -- mutation ------------------------------------------------------------

    def _check_serializable(self, tree: Any, what: str) -> None:
        try:
            serialize(tree, self.style)
        except SerializationError as e:
            raise MutationRejected(f"{what} cannot be written as a descriptor: {e}") from e

    def mutate(self, kind: Optional[str], name: str, edit_fn: EditFn) -> Descriptor:
        """Apply ``edit_fn`` to a copy of the tree and keep it only if it stays valid.

        ``edit_fn`` receives the tree and may change it in place or return a
        replacement. The edit is rejected, leaving the descriptor exactly as
        it was, when it introduces a fatal violation, changes ``resourceType``
        or ``name``, or produces values that cannot be serialized.

        Raises:
            DescriptorNotFoundError: If the descriptor is not loaded
            MutationRejected: If the edit is rejected
        """
        with self._lock_for((kind, name)):
            descriptor = self._require(kind, name)
            if not descriptor.is_parsed:
                raise MutationRejected(
                    f"{descriptor.path} is unparseable and cannot be mutated",
                    [self._unparseable_violation(descriptor)],
                )

            working = copy.deepcopy(descriptor.tree)
            returned = edit_fn(working)
            new_tree = working if returned is None else returned

            if not isinstance(new_tree, dict):
                raise MutationRejected(f"Edit of {kind} '{name}' did not produce an object")
            old_type = descriptor.tree.get("resourceType")
            new_type = new_tree.get("resourceType")
            if new_type != old_type and not (old_type is None and new_type == descriptor.kind):
                raise MutationRejected(f"resourceType of {kind} '{name}' cannot change ({old_type!r} -> {new_type!r})")
            old_name, new_name = descriptor.tree.get("name"), new_tree.get("name")
            if new_name != old_name and not (old_name is None and new_name == descriptor.name):
                raise MutationRejected(f"name of {kind} '{name}' cannot change through mutate; use rename")
            self._check_serializable(new_tree, f"Edited {kind} '{name}'")

            index = self.index
            before = fatal(self._evaluate(descriptor.tree, descriptor.kind, name, index))
            after = self._evaluate(new_tree, descriptor.kind, name, index)
            new_fatal = introduced(before, fatal(after))
            if new_fatal:
                details = "; ".join(str(v) for v in new_fatal)
                logger.info(f"Rejected edit of {kind} '{name}': {details}")
                raise MutationRejected(f"Edit of {kind} '{name}' introduces fatal violations: {details}", new_fatal)

            if new_tree != descriptor.tree:
                descriptor.dirty = True
            descriptor.tree = new_tree
            descriptor.violations = after
            descriptor.duplicate_keys = []
            descriptor.source_map = {}
            return descriptor.copy()

    def repair(self, kind: Optional[str], name: str) -> List[BrokenReference]:
        """Rewrite drifted reference paths from the index; returns the repairs made."""
        with self._lock_for((kind, name)):
            descriptor = self._require(kind, name)
            if not descriptor.is_parsed:
                raise MutationRejected(f"{descriptor.path} is unparseable and cannot be repaired")
            index = self.index
            shape = self.registry.shape_for(descriptor.kind)
            repaired, repairs = repair_references(descriptor.tree, index, shape=shape, registry=self.registry)
            if repairs:
                descriptor.tree = repaired
                descriptor.dirty = True
                descriptor.source_map = {}
                logger.info(f"Repaired {len(repairs)} reference(s) in {descriptor.path}")
            descriptor.violations = self._evaluate(
                descriptor.tree, descriptor.kind, descriptor.name, index, descriptor.duplicate_keys
            )
            return repairs

    # -- saving --------------------------------------------------------------

    def save(self, kind: Optional[str], name: str) -> str:
        """Serialize a descriptor and hand it to the writer.

        Returns:
            The serialized text

        Raises:
            NotSavableError: If the descriptor is unparseable or has fatal violations
            DescriptorIOError: If the writer fails
        """
        with self._lock_for((kind, name)):
            descriptor = self._require(kind, name)
            if not descriptor.is_parsed:
                violation = self._unparseable_violation(descriptor)
                raise NotSavableError(f"{descriptor.path} is unparseable: {violation.message}", [violation])

            descriptor.violations = self._evaluate(
                descriptor.tree, descriptor.kind, descriptor.name, self.index, descriptor.duplicate_keys
            )
            blocking = descriptor.fatal_violations
            if blocking:
                details = "; ".join(str(v) for v in blocking)
                raise NotSavableError(f"{descriptor.path} has fatal violations: {details}", blocking)

            try:
                text = serialize(descriptor.tree, self.style)
            except SerializationError as e:
                raise NotSavableError(f"{descriptor.path} cannot be serialized: {e}") from e

            if self.writer is not None:
                self.writer.write(descriptor.path, text)
                if descriptor.renamed_from not in (None, descriptor.path) and hasattr(self.writer, "remove"):
                    self.writer.remove(descriptor.renamed_from)
            descriptor.renamed_from = None
            descriptor.raw_text = text
            descriptor.dirty = False
            logger.debug(f"Saved {descriptor.path}")
            return text

    def save_dirty(self) -> SaveReport:
        """Save every dirty descriptor, then delete the files of removed ones.

        A failure on one descriptor or file is recorded in the report and
        never stops the others.
        """
        report = SaveReport()
        for key in self.dirty_keys():
            try:
                report.saved[key] = self.save(*key)
            except YyStoreError as e:
                logger.error(f"Failed to save {key[0]} '{key[1]}': {e}")
                report.failed[key] = e
        self._flush_removals(report)
        return report

    def pending_removals(self) -> List[str]:
        with self._structure_lock:
            return list(self._pending_removals)

    def _flush_removals(self, report: SaveReport) -> None:
        with self._structure_lock:
            for path, key in list(self._pending_removals.items()):
                if self.writer is not None and hasattr(self.writer, "remove"):
                    try:
                        self.writer.remove(path)
                    except YyStoreError as e:
                        logger.error(f"Failed to remove {path} of {key[0]} '{key[1]}': {e}")
                        report.failed_removals[path] = e
                        continue
                del self._pending_removals[path]
                report.removed.append(path)
                logger.debug(f"Removed file {path}")

    def _claim_path(self, path: str) -> None:
        """Keep a path that is about to hold a descriptor from being deleted."""
        self._pending_removals.pop(path, None)
        for key in self.keys():
            with self._lock_for(key):
                other = self._lookup(*key)
                if other is not None and other.renamed_from == path:
                    other.renamed_from = None

    # -- resource set changes ------------------------------------------------

    def add(self, tree: Dict[str, Any], associated_path: Optional[str] = None) -> Descriptor:
        """Add a new descriptor and register it in the index.

        Raises:
            ResourceKindError: If the kind is unknown or not manipulable
            DescriptorExistsError: If the (kind, name) identity is taken
            ValidationError: If the tree has fatal violations
        """
        if not isinstance(tree, dict):
            raise ValidationError("A descriptor must be an object")
        kind = self._require_manipulable(tree.get("resourceType"), "add")
        name = tree.get("name")
        if not isinstance(name, str) or not name:
            raise ValidationError(f"A {kind} descriptor needs a non-empty string name")

        with self._structure_lock:
            index = self.index
            if self.exists(kind, name) or index.contains(kind, name):
                raise DescriptorExistsError(f"{kind} '{name}' already exists")
            path = associated_path or self.registry.canonical_path(kind, name)
            tree = copy.deepcopy(tree)
            self._check_serializable(tree, f"{kind} '{name}'")

            new_index = index.with_entry(kind, name, path)
            violations = self._evaluate(tree, kind, _base_name(path), new_index)
            blocking = fatal(violations)
            if blocking:
                details = "; ".join(str(v) for v in blocking)
                raise ValidationError(f"Cannot add {kind} '{name}': {details}", blocking)

            self._claim_path(path)
            descriptor = Descriptor(kind=kind, name=name, path=path, tree=tree, violations=violations, dirty=True)
            with self._lock_for(descriptor.key):
                self._put(descriptor)
            self.set_index(new_index)
            logger.info(f"Added {kind} '{name}' at {path}")
            return descriptor.copy()

    def replace(self, tree: Dict[str, Any]) -> Descriptor:
        """Replace the tree of an existing descriptor with the same kind and name."""
        if not isinstance(tree, dict):
            raise ValidationError("A descriptor must be an object")
        kind = self._require_manipulable(tree.get("resourceType"), "replace")
        name = tree.get("name")
        self._require(kind, name)
        replacement = copy.deepcopy(tree)

        def swap(_old):
            return replacement

        return self.mutate(kind, name, swap)

    def set(self, tree: Dict[str, Any], associated_path: Optional[str] = None) -> Descriptor:
        """Add the descriptor, or replace it when it is already held."""
        kind = tree.get("resourceType") if isinstance(tree, dict) else None
        name = tree.get("name") if isinstance(tree, dict) else None
        if isinstance(name, str) and self.exists(kind, name):
            return self.replace(tree)
        return self.add(tree, associated_path)

    def remove(self, kind: str, name: str) -> Descriptor:
        """Drop a descriptor from the store and the index.

        The backing file (and the file it was renamed from, if not yet saved)
        is deleted by the next ``save_dirty``. References held by other
        descriptors become dangling and are reported by the next check; they
        are not rewritten.
        """
        self._require_manipulable(kind, "remove")
        with self._structure_lock:
            with self._lock_for((kind, name)):
                descriptor = self._require(kind, name)
                self._pop(descriptor.key)
            for path in (descriptor.path, descriptor.renamed_from):
                if path:
                    self._pending_removals[path] = descriptor.key
            self.set_index(self.index.without_entry(kind, name))
            logger.info(f"Removed {kind} '{name}'")
            return descriptor

    def _renamed_path(self, kind: str, descriptor: Descriptor, new_name: str) -> str:
        if descriptor.path == self.registry.canonical_path(kind, descriptor.name):
            return self.registry.canonical_path(kind, new_name)
        old = PurePosixPath(descriptor.path)
        parent = old.parent
        if parent.name == descriptor.name:
            parent = parent.with_name(new_name)
        return (parent / f"{new_name}{old.suffix}").as_posix()

    def rename(self, kind: str, old_name: str, new_name: str, update_references: bool = True) -> Descriptor:
        """Rename a descriptor, keeping its name, path and index entry consistent.

        With ``update_references`` every loaded descriptor that refers to the
        old identity is rewritten to the new one and marked dirty.

        Raises:
            DescriptorNotFoundError: If the descriptor is not loaded
            DescriptorExistsError: If the new identity is taken
        """
        self._require_manipulable(kind, "rename")
        if not isinstance(new_name, str) or not new_name:
            raise ValidationError("New name must be a non-empty string")

        with self._structure_lock:
            with self._lock_for((kind, old_name)):
                descriptor = self._require(kind, old_name)
                if not descriptor.is_parsed:
                    raise MutationRejected(f"{descriptor.path} is unparseable and cannot be renamed")
                index = self.index
                if self.exists(kind, new_name) or index.contains(kind, new_name):
                    raise DescriptorExistsError(f"{kind} '{new_name}' already exists")

                new_path = self._renamed_path(kind, descriptor, new_name)
                on_disk = descriptor.renamed_from or descriptor.path
                new_index = index.with_rename(kind, old_name, new_name, new_path)
                shape = self.registry.shape_for(kind)
                tree, _ = retarget_references(
                    descriptor.tree, kind, old_name, new_name, new_path,
                    index=index, shape=shape, registry=self.registry,
                )
                tree["name"] = new_name

                renamed = replace(
                    descriptor,
                    name=new_name,
                    path=new_path,
                    tree=tree,
                    dirty=True,
                    duplicate_keys=[],
                    source_map={},
                    renamed_from=None if new_path == on_disk else on_disk,
                )
                self._pop(descriptor.key)
                with self._lock_for(renamed.key):
                    self._put(renamed)

            self._claim_path(new_path)
            retargeted = []
            if update_references:
                retargeted = self._retarget_others(kind, old_name, new_name, new_path, index, skip=renamed.key)
            self.set_index(new_index)
            for key in [renamed.key] + retargeted:
                self.check(*key)
            logger.info(f"Renamed {kind} '{old_name}' to '{new_name}' ({new_path})")
            return self.get(*renamed.key)

    def _retarget_others(
        self,
        kind: str,
        old_name: str,
        new_name: str,
        new_path: str,
        index: ProjectIndex,
        skip: DescriptorKey,
    ) -> List[DescriptorKey]:
        updated = []
        for key in self.keys():
            if key == skip:
                continue
            with self._lock_for(key):
                other = self._lookup(*key)
                if other is None or not other.is_parsed:
                    continue
                shape = self.registry.shape_for(other.kind)
                tree, changed = retarget_references(
                    other.tree, kind, old_name, new_name, new_path,
                    index=index, shape=shape, registry=self.registry,
                )
                if changed:
                    other.tree = tree
                    other.dirty = True
                    other.source_map = {}
                    logger.debug(f"Updated {len(changed)} reference(s) in {other.path}")
                    updated.append(key)
        return updated
