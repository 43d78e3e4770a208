"""
Tree model for the matching engine.

A tree is produced once by an external parser and then treated as having a
fixed shape: compute_metrics() stamps every node with its size, height,
depth, pre-order position and structural hashes, and from then on only
labels, metadata and scope ids may change.

Type tags are interned through TypeSet so the matcher can compare them by
identity and ask capability questions (is_function, is_name) instead of
comparing type names.
"""

import re
import weakref
import zlib
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ast_diff.exceptions import MetricsError, ScopeError

NO_LABEL = ""
NO_SCOPE = -1

FUNCTION_TYPE_NAME = "function"
NAME_TYPE_NAME = "name"

# architecture names that get folded to a wildcard in normalized labels
ISA_KEYWORDS = (
    # LoongArch
    "loongarch64", "loongarch32", "loongarch", "loong64", "loong32", "loong",
    # RISC-V
    "riscv64", "riscv32", "riscv",
    # ARM64
    "arm64", "aarch64",
    # ARM
    "aarch32", "aarch", "arm",
    # X86
    "x86_64", "x64", "x86", "ia32", "i386",
    # S390
    "s390x", "s390", "systemz",
    # PowerPC
    "powerpc64", "powerpc32", "powerpc", "ppc64", "ppc32", "ppc",
    # MIPS
    "mips64", "mips32", "mips",
)
ISA_WILDCARD = "@"

_HASH_BASE = 1000003
_HASH_MASK = (1 << 64) - 1


class Type:
    """
    An interned node type tag. Obtain instances through TypeSet.type() so that
    equal names always give the same object.
    """

    __slots__ = ("name", "is_function", "is_name", "name_hash")

    def __init__(self, name: str):
        self.name = name
        self.is_function = name == FUNCTION_TYPE_NAME
        self.is_name = name == NAME_TYPE_NAME
        self.name_hash = zlib.crc32(name.encode("utf-8"))

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Type({self.name!r})"


class TypeSet:
    """Process-wide registry of type tags."""

    _types: Dict[str, Type] = {}

    @classmethod
    def type(cls, name: Optional[str]) -> Type:
        if name is None:
            name = ""
        found = cls._types.get(name)
        if found is None:
            found = cls._types.setdefault(name, Type(name))
        return found


@lru_cache(maxsize=1)
def _isa_pattern() -> "re.Pattern[str]":
    # longest first, otherwise "riscv" would eat the front of "riscv64"
    keywords = sorted(ISA_KEYWORDS, key=len, reverse=True)
    return re.compile("(" + "|".join(re.escape(k) for k in keywords) + ")", re.IGNORECASE)


def normalize_label(label: Optional[str]) -> str:
    """
    replaces architecture tokens (x86_64, aarch64, riscv, ...) with a wildcard
    so labels that only differ by target architecture group together
    """
    if not label:
        return NO_LABEL
    normalized = _isa_pattern().sub(ISA_WILDCARD, label)
    if normalized == label:
        return label
    return normalized


@dataclass(frozen=True)
class TreeMetrics:
    """Structural metrics of a node, computed once per tree."""

    size: int
    height: int
    depth: int
    hash: int
    structure_hash: int
    position: int


class Node:
    """
    A vertex of a syntax tree.

    Children are owned by their parent; the parent link is a weak reference so
    a subtree never keeps its ancestors alive. Equality is identity.
    """

    __slots__ = (
        "_type",
        "_label",
        "_normalized_label",
        "pos",
        "length",
        "_metadata",
        "_children",
        "_parent",
        "_metrics",
        "_scope_id",
        "__weakref__",
    )

    def __init__(self, type: Union[Type, str], label: Optional[str] = NO_LABEL, pos: int = 0, length: int = 0):
        self._type = type if isinstance(type, Type) else TypeSet.type(type)
        self._label = NO_LABEL
        self._normalized_label = NO_LABEL
        self.label = label
        self.pos = pos
        self.length = length
        self._metadata: Optional[Dict[str, Any]] = None
        self._children: List["Node"] = []
        self._parent: Optional["weakref.ReferenceType[Node]"] = None
        self._metrics: Optional[TreeMetrics] = None
        self._scope_id = NO_SCOPE

    # ---- local attributes ----

    @property
    def type(self) -> Type:
        return self._type

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value: Optional[str]) -> None:
        self._label = NO_LABEL if value is None else value
        self._normalized_label = normalize_label(self._label)

    @property
    def normalized_label(self) -> str:
        return self._normalized_label

    def has_label(self) -> bool:
        return self._label != NO_LABEL

    @property
    def end_pos(self) -> int:
        return self.pos + self.length

    @property
    def scope_id(self) -> int:
        return self._scope_id

    @scope_id.setter
    def scope_id(self, value: int) -> None:
        if self._scope_id != NO_SCOPE and value != self._scope_id:
            raise ScopeError(f"{self!r} is already in scope {self._scope_id}, cannot move it to {value}")
        self._scope_id = value

    def is_scoped(self) -> bool:
        return self._scope_id != NO_SCOPE

    def get_metadata(self, key: str, default: Any = None) -> Any:
        if self._metadata is None:
            return default
        return self._metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> Any:
        """Sets a metadata entry and returns the previous value; None removes the key."""
        if value is None:
            if self._metadata is None:
                return None
            return self._metadata.pop(key, None)
        if self._metadata is None:
            self._metadata = {}
        previous = self._metadata.get(key)
        self._metadata[key] = value
        return previous

    def metadata_items(self) -> Iterator[Tuple[str, Any]]:
        if self._metadata is None:
            return iter(())
        return iter(list(self._metadata.items()))

    # ---- shape ----

    @property
    def children(self) -> List["Node"]:
        return self._children

    @property
    def parent(self) -> Optional["Node"]:
        if self._parent is None:
            return None
        return self._parent()

    def add_child(self, child: "Node", index: Optional[int] = None) -> "Node":
        if self._metrics is not None or child._metrics is not None:
            raise MetricsError("cannot change the shape of a tree whose metrics are computed")
        if child.parent is not None:
            raise ValueError(f"{child!r} already has a parent")
        if index is None:
            self._children.append(child)
        else:
            self._children.insert(index, child)
        child._parent = weakref.ref(self)
        return child

    @property
    def position_in_parent(self) -> int:
        parent = self.parent
        if parent is None:
            return -1
        for i, sibling in enumerate(parent._children):
            if sibling is self:
                return i
        raise MetricsError(f"{self!r} is not among its parent's children")

    @property
    def parents(self) -> List["Node"]:
        """Ancestors from the direct parent up to the root."""
        result = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result

    @property
    def descendants(self) -> List["Node"]:
        nodes = list(self.pre_order())
        return nodes[1:]

    def pre_order(self) -> Iterator["Node"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def post_order(self) -> Iterator["Node"]:
        stack: List[Tuple[Node, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            for child in reversed(node._children):
                stack.append((child, False))

    def breadth_first(self) -> Iterator["Node"]:
        fringe = deque([self])
        while fringe:
            node = fringe.popleft()
            yield node
            fringe.extend(node._children)

    def is_isomorphic_to(self, other: "Node") -> bool:
        """Exact shape check: same types and child counts, visited in pre-order."""
        if self._metrics is not None and other._metrics is not None:
            if self._metrics.size != other._metrics.size:
                return False
        right = other.pre_order()
        for a in self.pre_order():
            b = next(right, None)
            if b is None or a._type is not b._type or len(a._children) != len(b._children):
                return False
        return next(right, None) is None

    def deep_copy(self) -> "Node":
        """Copies local attributes and children. The copy has no parent and no metrics."""
        copy = self._copy_local()
        stack = [(self, copy)]
        while stack:
            original, clone = stack.pop()
            for child in original._children:
                child_clone = child._copy_local()
                clone.add_child(child_clone)
                stack.append((child, child_clone))
        return copy

    def _copy_local(self) -> "Node":
        clone = Node(self._type, self._label, self.pos, self.length)
        if self._metadata:
            clone._metadata = dict(self._metadata)
        return clone

    # ---- metrics ----

    @property
    def metrics(self) -> TreeMetrics:
        if self._metrics is None:
            raise MetricsError(f"metrics of {self!r} were never computed")
        return self._metrics

    def has_metrics(self) -> bool:
        return self._metrics is not None

    def to_tree_string(self) -> str:
        lines = []
        root_depth = len(self.parents)
        for node in self.pre_order():
            indent = "    " * (len(node.parents) - root_depth)
            lines.append(f"{indent}{node}")
        return "\n".join(lines)

    def __str__(self) -> str:
        if self._label:
            return f"{self._type.name}: {self._label} [{self.pos},{self.end_pos}]"
        return f"{self._type.name} [{self.pos},{self.end_pos}]"

    def __repr__(self) -> str:
        return f"Node({self._type.name!r}, {self._label!r}, pos={self.pos})"


def compute_metrics(root: Node) -> None:
    """
    Assigns size, height, depth, pre-order position and hashes to every node
    of the tree rooted at root. Leaves have height 1. Metrics can only be
    computed once; a second call is a contract violation.
    """
    order = list(root.pre_order())
    depths: Dict[int, int] = {id(root): 0}
    for node in order:
        if node._metrics is not None:
            raise MetricsError(f"metrics of {node!r} were already computed")
        depth = depths[id(node)]
        for child in node._children:
            depths[id(child)] = depth + 1

    sizes: Dict[int, int] = {}
    heights: Dict[int, int] = {}
    hashes: Dict[int, int] = {}
    structure_hashes: Dict[int, int] = {}

    # reversed pre-order visits every child before its parent
    for node in reversed(order):
        size = 1
        height = 0
        label_hash = (node._type.name_hash * _HASH_BASE) ^ zlib.crc32(node._label.encode("utf-8"))
        shape_hash = node._type.name_hash
        for child in node._children:
            key = id(child)
            size += sizes[key]
            height = max(height, heights[key])
            label_hash = ((label_hash * _HASH_BASE) ^ hashes[key]) & _HASH_MASK
            shape_hash = ((shape_hash * _HASH_BASE) ^ structure_hashes[key]) & _HASH_MASK
        key = id(node)
        sizes[key] = size
        heights[key] = height + 1
        hashes[key] = ((label_hash * _HASH_BASE) + len(node._children)) & _HASH_MASK
        structure_hashes[key] = ((shape_hash * _HASH_BASE) + len(node._children)) & _HASH_MASK

    for position, node in enumerate(order):
        key = id(node)
        node._metrics = TreeMetrics(
            size=sizes[key],
            height=heights[key],
            depth=depths[key],
            hash=hashes[key],
            structure_hash=structure_hashes[key],
            position=position,
        )


class TreeContext:
    """
    Owns the root of one version of a tree plus the symbol table that maps
    type tags to human readable names.
    """

    def __init__(self):
        self.root: Optional[Node] = None
        self.type_labels: Dict[Type, str] = {}
        self.metadata: Dict[str, Any] = {}

    def create_tree(self, type_name: str, label: Optional[str] = NO_LABEL, type_label: Optional[str] = None,
                    pos: int = 0, length: int = 0) -> Node:
        node_type = TypeSet.type(type_name)
        self.register_type(node_type, type_label)
        return Node(node_type, label, pos, length)

    def register_type(self, node_type: Type, type_label: Optional[str] = None) -> None:
        if type_label is not None:
            self.type_labels[node_type] = type_label
        else:
            self.type_labels.setdefault(node_type, node_type.name)

    def get_type_label(self, node_type: Type) -> str:
        return self.type_labels.get(node_type, node_type.name)

    def set_root(self, root: Node, compute: bool = True) -> Node:
        self.root = root
        if compute:
            compute_metrics(root)
        return root

    def __repr__(self) -> str:
        size = self.root.metrics.size if self.root is not None and self.root.has_metrics() else 0
        return f"TreeContext(root={self.root!r}, size={size})"
