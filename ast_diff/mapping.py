"""
Mapping store: the partial bijection between source and destination nodes.

Nodes are keyed by identity. Every mutation checks that no node ends up
mapped twice on the same side; breaking that rule raises MappingError
instead of silently overwriting an earlier decision.
"""

from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from ast_diff.exceptions import MappingError
from ast_diff.tree import Node


class Mapping(NamedTuple):
    """An ordered (source node, destination node) pair."""

    src: Node
    dst: Node

    def __repr__(self) -> str:
        return f"Mapping({self.src} -> {self.dst})"


class MappingStore:
    """
    A set of mappings in which every node appears at most once as source and
    at most once as destination.
    """

    def __init__(self, src_root: Optional[Node] = None, dst_root: Optional[Node] = None):
        self.src_root = src_root
        self.dst_root = dst_root
        self._src_to_dst: Dict[Node, Node] = {}
        self._dst_to_src: Dict[Node, Node] = {}

    def add_mapping(self, src: Node, dst: Node) -> None:
        self._check_unmapped(src, dst)
        self._src_to_dst[src] = dst
        self._dst_to_src[dst] = src

    def add_mapping_recursively(self, src: Node, dst: Node) -> None:
        """
        Maps two isomorphic subtrees node for node, pairing nodes that sit at
        the same structural position. All pairs are validated before the
        store is touched, so a failing call leaves the store unchanged.
        """
        if not src.is_isomorphic_to(dst):
            raise MappingError(f"subtrees rooted at {src} and {dst} are not isomorphic")
        pairs = list(zip(src.pre_order(), dst.pre_order()))
        for s, d in pairs:
            self._check_unmapped(s, d)
        for s, d in pairs:
            self._src_to_dst[s] = d
            self._dst_to_src[d] = s

    def _check_unmapped(self, src: Node, dst: Node) -> None:
        if src in self._src_to_dst:
            raise MappingError(f"source node {src} is already mapped to {self._src_to_dst[src]}")
        if dst in self._dst_to_src:
            raise MappingError(f"destination node {dst} is already mapped to {self._dst_to_src[dst]}")

    # ---- queries ----

    def are_both_unmapped(self, src: Node, dst: Node) -> bool:
        return src not in self._src_to_dst and dst not in self._dst_to_src

    def are_subtrees_unmapped(self, src: Node, dst: Node) -> bool:
        """True when no node of either subtree takes part in a mapping yet."""
        if any(node in self._src_to_dst for node in src.pre_order()):
            return False
        return not any(node in self._dst_to_src for node in dst.pre_order())

    def is_src_mapped(self, src: Node) -> bool:
        return src in self._src_to_dst

    def is_dst_mapped(self, dst: Node) -> bool:
        return dst in self._dst_to_src

    def is_mapped(self, node: Node) -> bool:
        return node in self._src_to_dst or node in self._dst_to_src

    def get_dst_for_src(self, src: Node) -> Optional[Node]:
        return self._src_to_dst.get(src)

    def get_src_for_dst(self, dst: Node) -> Optional[Node]:
        return self._dst_to_src.get(dst)

    def has(self, src: Node, dst: Node) -> bool:
        return self._src_to_dst.get(src) is dst

    def as_position_pairs(self) -> List[Tuple[int, int]]:
        """(source pre-order index, destination pre-order index) for every mapping"""
        return [(s.metrics.position, d.metrics.position) for s, d in self._src_to_dst.items()]

    def __contains__(self, mapping: object) -> bool:
        if not isinstance(mapping, tuple) or len(mapping) != 2:
            return False
        return self.has(mapping[0], mapping[1])

    def __iter__(self) -> Iterator[Mapping]:
        for src, dst in self._src_to_dst.items():
            yield Mapping(src, dst)

    def __len__(self) -> int:
        return len(self._src_to_dst)

    def __repr__(self) -> str:
        return f"MappingStore(size={len(self)})"
