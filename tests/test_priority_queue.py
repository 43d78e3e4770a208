"""Tests for the priority traversal queue and lock-step synchronization."""

import pytest

from ast_diff.config import PriorityMetric
from ast_diff.priority_queue import (
    PriorityTreeQueue,
    get_priority_calculator,
    height_priority,
    size_priority,
    synchronize,
)

TREE = ("block", "", [
    ("stmt", "a"),
    ("if", "", [("cond", "x"), ("stmt", "b")]),
    ("stmt", "c"),
])


def labels(nodes):
    return [n.type.name + ":" + n.label for n in nodes]


class TestPriorityTreeQueue:

    def test_root_is_the_only_initial_bucket(self, make_tree):
        root = make_tree(TREE).root
        queue = PriorityTreeQueue(root)
        assert queue.current_priority() == 3
        assert queue.pop() == [root]
        assert queue.is_empty()

    def test_open_buckets_children_by_priority(self, make_tree):
        root = make_tree(TREE).root
        queue = PriorityTreeQueue(root)
        queue.pop_open()

        assert queue.current_priority() == 2
        assert labels(queue.pop()) == ["if:"]
        # leaves keep encounter order
        assert queue.current_priority() == 1
        assert labels(queue.pop()) == ["stmt:a", "stmt:c"]

    def test_min_priority_filters_nodes(self, make_tree):
        root = make_tree(TREE).root
        queue = PriorityTreeQueue(root, min_priority=2)
        queue.pop_open()
        assert labels(queue.pop()) == ["if:"]
        assert queue.is_empty()

    def test_root_below_min_priority_is_never_queued(self, make_tree):
        root = make_tree(("stmt", "a")).root
        assert PriorityTreeQueue(root, min_priority=2).is_empty()

    def test_size_priority(self, make_tree):
        root = make_tree(TREE).root
        queue = PriorityTreeQueue(root, priority_calculator=size_priority)
        assert queue.current_priority() == 6
        queue.pop_open()
        assert queue.current_priority() == 3

    def test_empty_queue_errors(self, make_tree):
        queue = PriorityTreeQueue(make_tree(("stmt", "a")).root)
        queue.clear()
        with pytest.raises(IndexError):
            queue.pop()
        with pytest.raises(IndexError):
            queue.current_priority()

    def test_priorities_strictly_decrease(self, make_tree):
        root = make_tree(("unit", "", [TREE, ("stmt", "d"), ("block", "", [TREE])])).root
        queue = PriorityTreeQueue(root)
        seen = []
        while not queue.is_empty():
            seen.append(queue.current_priority())
            queue.pop_open()
        assert seen == sorted(set(seen), reverse=True)
        assert seen[-1] == 1


class TestPriorityCalculators:

    def test_lookup(self):
        assert get_priority_calculator("height") is height_priority
        assert get_priority_calculator(PriorityMetric.SIZE) is size_priority

    def test_unknown_metric_falls_back_to_height(self):
        with pytest.warns(RuntimeWarning):
            assert get_priority_calculator("depth") is height_priority


class TestSynchronize:

    def test_equal_priorities_are_left_alone(self, make_tree):
        q1 = PriorityTreeQueue(make_tree(TREE).root)
        q2 = PriorityTreeQueue(make_tree(TREE).root)
        assert synchronize(q1, q2)
        assert q1.current_priority() == q2.current_priority() == 3

    def test_taller_side_is_opened_down(self, make_tree):
        tall = make_tree(("unit", "", [("block", "", [TREE])])).root
        short = make_tree(TREE).root
        q1 = PriorityTreeQueue(tall)
        q2 = PriorityTreeQueue(short)

        assert synchronize(q1, q2)

        assert q1.current_priority() == q2.current_priority() == 3
        # the dropped ancestors are no longer candidates, their descendants are
        assert labels(q1.pop()) == ["block:"]

    def test_works_in_both_directions(self, make_tree):
        q1 = PriorityTreeQueue(make_tree(TREE).root)
        q2 = PriorityTreeQueue(make_tree(("unit", "", [TREE])).root)
        assert synchronize(q1, q2)
        assert q1.current_priority() == q2.current_priority() == 3

    def test_no_common_priority_empties_both(self, make_tree):
        q1 = PriorityTreeQueue(make_tree(TREE).root, min_priority=2)
        q2 = PriorityTreeQueue(make_tree(("unit", "", [TREE])).root, min_priority=2)
        q1.pop_open()
        q1.pop()
        assert q1.is_empty()

        assert not synchronize(q1, q2)
        assert q2.is_empty()
