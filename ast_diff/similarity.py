"""
Similarity measures used to rank ambiguous candidate mappings.

FullMappingComparator orders candidates by how well their surroundings agree
under the mappings already committed: sibling overlap, ancestor overlap,
position in parents, label similarity, and finally source positions so the
order is total.
"""

import math
from itertools import zip_longest
from typing import Dict, List, Sequence, Set, Tuple

from rapidfuzz.distance import Levenshtein

from ast_diff.mapping import Mapping, MappingStore
from ast_diff.tree import Node


def label_similarity(a: str, b: str) -> float:
    """
    normalized Levenshtein similarity between two labels, 1.0 when both are empty
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return 1 - (distance / max(len(a), len(b)))


def dice_similarity(common: int, left: int, right: int) -> float:
    if left + right == 0:
        return 0.0
    return 2.0 * common / (left + right)


def jaccard_similarity(common: int, left: int, right: int) -> float:
    union = left + right - common
    if union <= 0:
        return 0.0
    return common / union


def position_vector(node: Node) -> List[int]:
    """positions in parent from the root down to node"""
    vector = []
    current = node
    while current.parent is not None:
        vector.append(current.position_in_parent)
        current = current.parent
    vector.reverse()
    return vector


def position_distance(a: Sequence[int], b: Sequence[int]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip_longest(a, b, fillvalue=0)))


class FullMappingComparator:
    """
    Ranks candidate mappings, best first. Each call to sort() evaluates the
    candidates against the mappings committed at that moment.
    """

    def __init__(self, mappings: MappingStore):
        self.mappings = mappings
        # structural caches, valid for the comparator's lifetime
        self._descendants: Dict[Node, Set[Node]] = {}
        self._positions: Dict[Node, List[int]] = {}
        # mapping-dependent cache, reset on every sort()
        self._common_descendants: Dict[Tuple[Node, Node], int] = {}

    def sort(self, candidates: List[Mapping]) -> List[Mapping]:
        self._common_descendants = {}
        return sorted(candidates, key=self.sort_key)

    def sort_key(self, mapping: Mapping) -> tuple:
        src, dst = mapping
        return (
            -self.siblings_similarity(src, dst),
            -self.parents_similarity(src, dst),
            position_distance(self._position_vector(src), self._position_vector(dst)),
            -label_similarity(src.normalized_label, dst.normalized_label),
            abs(src.pos - dst.pos) + abs(src.end_pos - dst.end_pos),
            src.metrics.position,
            dst.metrics.position,
        )

    def siblings_similarity(self, src: Node, dst: Node) -> float:
        """Dice coefficient of the two parents' descendants under the current mappings."""
        src_parent = src.parent
        dst_parent = dst.parent
        if src_parent is None or dst_parent is None:
            return 0.0
        common = self._common_descendants_count(src_parent, dst_parent)
        return dice_similarity(common, len(self._descendant_set(src_parent)), len(self._descendant_set(dst_parent)))

    def parents_similarity(self, src: Node, dst: Node) -> float:
        """Jaccard similarity of the two ancestor chains under the current mappings."""
        src_parents = src.parents
        dst_parents = set(dst.parents)
        common = 0
        for parent in src_parents:
            if self.mappings.get_dst_for_src(parent) in dst_parents:
                common += 1
        return jaccard_similarity(common, len(src_parents), len(dst_parents))

    def _common_descendants_count(self, src: Node, dst: Node) -> int:
        key = (src, dst)
        count = self._common_descendants.get(key)
        if count is None:
            dst_descendants = self._descendant_set(dst)
            count = 0
            for node in self._descendant_set(src):
                if self.mappings.get_dst_for_src(node) in dst_descendants:
                    count += 1
            self._common_descendants[key] = count
        return count

    def _descendant_set(self, node: Node) -> Set[Node]:
        found = self._descendants.get(node)
        if found is None:
            found = set(node.descendants)
            self._descendants[node] = found
        return found

    def _position_vector(self, node: Node) -> List[int]:
        found = self._positions.get(node)
        if found is None:
            found = position_vector(node)
            self._positions[node] = found
        return found
