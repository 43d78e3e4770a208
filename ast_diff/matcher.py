from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ast_diff.config import MatcherConfig
from ast_diff.exceptions import MetricsError
from ast_diff.hash_mapper import CandidateGroup, HashBasedMapper
from ast_diff.mapping import Mapping, MappingStore
from ast_diff.priority_queue import PriorityTreeQueue, get_priority_calculator, synchronize
from ast_diff.similarity import FullMappingComparator
from ast_diff.tree import NO_SCOPE, Node

logger = logging.getLogger(__name__)

ComparatorFactory = Callable[[MappingStore], FullMappingComparator]


def is_scope_compatible(src: Node, dst: Node) -> bool:
    """Nodes may be paired when they share a scope or either one is unscoped."""
    return src.scope_id == dst.scope_id or src.scope_id == NO_SCOPE or dst.scope_id == NO_SCOPE


class SubtreeMatcher(ABC):
    """
    Top-down matching of isomorphic subtrees.

    Both trees are walked in lock-step from the highest priority down:
    1. Unique hash buckets (one node per side) are mapped right away, whole subtree at once.
    2. Ambiguous buckets are set aside and resolved after the walk, by a subclass.
    3. Nodes with no counterpart at their priority have their children queued,
       so parts of a changed subtree can still be matched lower down.

    A matcher keeps the state of the call in progress on the instance; use one
    instance per concurrent match().
    """

    def __init__(self, config: Optional[MatcherConfig] = None,
                 comparator_factory: ComparatorFactory = FullMappingComparator):
        self.comparator_factory = comparator_factory
        self.min_priority = 0
        self.priority_calculator = None
        self.configure(config or MatcherConfig())

        self.src: Optional[Node] = None
        self.dst: Optional[Node] = None
        self.mappings: Optional[MappingStore] = None

    def configure(self, config: MatcherConfig) -> None:
        self.config = config
        self.min_priority = config.min_priority
        self.priority_calculator = get_priority_calculator(config.priority_metric)

    def match(self, src: Node, dst: Node, mappings: Optional[MappingStore] = None) -> MappingStore:
        if not (src.has_metrics() and dst.has_metrics()):
            raise MetricsError("both trees need their metrics computed before matching")

        self.src = src
        self.dst = dst
        self.mappings = mappings if mappings is not None else MappingStore(src, dst)
        ambiguous_mappings: List[CandidateGroup] = []

        src_trees = PriorityTreeQueue(src, self.min_priority, self.priority_calculator)
        dst_trees = PriorityTreeQueue(dst, self.min_priority, self.priority_calculator)

        levels = 0
        while synchronize(src_trees, dst_trees):
            levels += 1
            priority = src_trees.current_priority()
            local_hash_mappings = HashBasedMapper()
            local_hash_mappings.add_srcs(src_trees.pop())
            local_hash_mappings.add_dsts(dst_trees.pop())

            committed = 0
            for s, d in local_hash_mappings.unique():
                # a subtree shared by two different named functions is never a valid match
                if is_scope_compatible(s, d):
                    self.mappings.add_mapping_recursively(s, d)
                    committed += 1

            deferred = 0
            for group in local_hash_mappings.ambiguous():
                ambiguous_mappings.append(group)
                deferred += 1

            for srcs, dsts in local_hash_mappings.unmapped():
                for node in srcs:
                    src_trees.open(node)
                for node in dsts:
                    dst_trees.open(node)

            logger.debug(
                f"Priority {priority}: {len(local_hash_mappings)} hash buckets, "
                f"{committed} unique mapped, {deferred} ambiguous deferred"
            )

        logger.debug(f"Top-down phase done after {levels} levels, {len(self.mappings)} mappings, "
                     f"{len(ambiguous_mappings)} ambiguous groups")
        self.handle_ambiguous_mappings(ambiguous_mappings)
        logger.debug(f"Subtree matching produced {len(self.mappings)} mappings")
        return self.mappings

    @abstractmethod
    def handle_ambiguous_mappings(self, ambiguous_mappings: List[CandidateGroup]) -> None:
        """Resolves the groups the top-down phase could not decide on."""


class GreedySubtreeMatcher(SubtreeMatcher):
    """
    Resolves ambiguous groups greedily: groups holding the largest source
    subtree go first, and inside a group the candidates the comparator ranks
    best are taken while both of their subtrees are still free.
    """

    def handle_ambiguous_mappings(self, ambiguous_mappings: List[CandidateGroup]) -> None:
        comparator = self.comparator_factory(self.mappings)
        # stable sort: equal sizes keep the order the groups were found in
        ordered = sorted(ambiguous_mappings, key=ambiguous_group_size, reverse=True)

        accepted = 0
        for group in ordered:
            candidates = comparator.sort(self.convert_to_mappings(group))
            for mapping in candidates:
                # a seeded store may already hold nodes below a candidate root
                if self.mappings.are_subtrees_unmapped(mapping.src, mapping.dst):
                    self.mappings.add_mapping_recursively(mapping.src, mapping.dst)
                    accepted += 1
        logger.debug(f"Greedy resolution accepted {accepted} candidates from {len(ordered)} ambiguous groups")

    @staticmethod
    def convert_to_mappings(group: CandidateGroup) -> List[Mapping]:
        """Cross product of a group's sources and destinations, minus scope-incompatible pairs."""
        srcs, dsts = group
        return [Mapping(s, d) for s in srcs for d in dsts if is_scope_compatible(s, d)]


def ambiguous_group_size(group: CandidateGroup) -> int:
    """largest subtree size among the group's source nodes"""
    return max(node.metrics.size for node in group[0])
