"""
Candidate bucketing for one priority level.

Source and destination nodes are grouped by structural hash. Each group is
then classified:

- unique: one source node and one destination node
- ambiguous: nodes on both sides, more than one on at least one side
- unmapped: nodes on one side only

Equal structural hash is trusted as isomorphism here; the recursive mapping
operation re-checks shape when a pair is committed.
"""

from typing import Dict, Iterable, Iterator, List, Tuple

from ast_diff.tree import Node

CandidateGroup = Tuple[List[Node], List[Node]]


class HashBasedMapper:
    """
    builds and classifies hash buckets for the source and destination nodes
    of a single priority level
    """

    def __init__(self):
        # insertion ordered, so groups come out in the order hashes were first seen
        self._groups: Dict[int, CandidateGroup] = {}

    def _group(self, node: Node) -> CandidateGroup:
        key = node.metrics.structure_hash
        group = self._groups.get(key)
        if group is None:
            group = ([], [])
            self._groups[key] = group
        return group

    def add_src(self, node: Node) -> None:
        self._group(node)[0].append(node)

    def add_dst(self, node: Node) -> None:
        self._group(node)[1].append(node)

    def add_srcs(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            self.add_src(node)

    def add_dsts(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            self.add_dst(node)

    def unique(self) -> Iterator[Tuple[Node, Node]]:
        for srcs, dsts in self._groups.values():
            if len(srcs) == 1 and len(dsts) == 1:
                yield srcs[0], dsts[0]

    def ambiguous(self) -> Iterator[CandidateGroup]:
        for srcs, dsts in self._groups.values():
            if srcs and dsts and (len(srcs) > 1 or len(dsts) > 1):
                yield srcs, dsts

    def unmapped(self) -> Iterator[CandidateGroup]:
        for srcs, dsts in self._groups.values():
            if not srcs or not dsts:
                yield srcs, dsts

    def __len__(self) -> int:
        return len(self._groups)
