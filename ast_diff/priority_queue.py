"""
Priority traversal queue used by the top-down subtree matcher.

Each queue hands out all not-yet-examined nodes of one tree that share the
current highest priority. Tall (or large) subtrees are therefore compared
before small ones, which collide far more often.
"""

import heapq
from typing import Callable, Dict, List, Union

from ast_diff.config import DEFAULT_MIN_PRIORITY, PriorityMetric
from ast_diff.tree import Node

PriorityCalculator = Callable[[Node], int]


def height_priority(node: Node) -> int:
    return node.metrics.height


def size_priority(node: Node) -> int:
    return node.metrics.size


PRIORITY_CALCULATORS: Dict[PriorityMetric, PriorityCalculator] = {
    PriorityMetric.HEIGHT: height_priority,
    PriorityMetric.SIZE: size_priority,
}


def get_priority_calculator(metric: Union[PriorityMetric, str]) -> PriorityCalculator:
    """
    returns the priority function for a metric name \n
    unknown names fall back to height
    """
    return PRIORITY_CALCULATORS[PriorityMetric.parse(metric)]


class PriorityTreeQueue:
    """
    Buckets nodes of one tree by priority. pop() removes the whole bucket with
    the highest priority; nodes inside a bucket keep the order in which they
    were added, which is the encounter order of the traversal.
    """

    def __init__(self, root: Node, min_priority: int = DEFAULT_MIN_PRIORITY,
                 priority_calculator: PriorityCalculator = height_priority):
        self.min_priority = min_priority
        self.priority_calculator = priority_calculator
        self._buckets: Dict[int, List[Node]] = {}
        # max-heap of the priorities that currently have a bucket
        self._priorities: List[int] = []
        self.add(root)

    def add(self, node: Node) -> None:
        priority = self.priority_calculator(node)
        if priority < self.min_priority:
            return
        bucket = self._buckets.get(priority)
        if bucket is None:
            self._buckets[priority] = [node]
            heapq.heappush(self._priorities, -priority)
        else:
            bucket.append(node)

    def open(self, node: Node) -> None:
        """Queues the children of node at their own priorities."""
        for child in node.children:
            self.add(child)

    def current_priority(self) -> int:
        if not self._priorities:
            raise IndexError("current_priority() on an empty queue")
        return -self._priorities[0]

    def pop(self) -> List[Node]:
        if not self._priorities:
            raise IndexError("pop() on an empty queue")
        priority = -heapq.heappop(self._priorities)
        return self._buckets.pop(priority)

    def pop_open(self) -> List[Node]:
        """Pops the top bucket and opens every node in it."""
        popped = self.pop()
        for node in popped:
            self.open(node)
        return popped

    def is_empty(self) -> bool:
        return not self._priorities

    def clear(self) -> None:
        self._buckets.clear()
        self._priorities.clear()

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __repr__(self) -> str:
        top = self.current_priority() if self._priorities else None
        return f"PriorityTreeQueue(top={top}, nodes={len(self)})"


def synchronize(q1: PriorityTreeQueue, q2: PriorityTreeQueue) -> bool:
    """
    Brings both queues to the same top priority. The queue whose top bucket is
    strictly higher drops that bucket, opening its nodes so their children can
    still be matched lower down. Returns False, and empties both queues, once
    either side runs out.
    """
    while not (q1.is_empty() or q2.is_empty()) and q1.current_priority() != q2.current_priority():
        if q1.current_priority() > q2.current_priority():
            q1.pop_open()
        else:
            q2.pop_open()

    if q1.is_empty() or q2.is_empty():
        q1.clear()
        q2.clear()
        return False
    return True
