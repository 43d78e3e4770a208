"""
Shared helpers for building small trees.

A tree is written as nested tuples: (type, label) for a leaf and
(type, label, [children]) for an inner node. Every node gets pos equal to
its pre-order index and length 1, which keeps textual distances readable.
"""

import pytest

from ast_diff.tree import Node, TreeContext


def build_context(spec) -> TreeContext:
    context = TreeContext()
    counter = [0]

    def build(item) -> Node:
        type_name, label = item[0], item[1]
        node = context.create_tree(type_name, label, pos=counter[0], length=1)
        counter[0] += 1
        for child in item[2] if len(item) > 2 else []:
            node.add_child(build(child))
        return node

    context.set_root(build(spec))
    return context


def function(name, body):
    return ("function", "", [("name", name), body])


@pytest.fixture
def make_tree():
    return build_context


@pytest.fixture
def func():
    return function
