"""
Scope tagging run once per pair of trees before matching.

Function declarations that carry the same name in both versions receive a
shared scope id, and every node inside such a function is stamped with it.
The matcher then refuses to pair nodes from two different named functions.

Steps:
  1) collect every function declaration (nested ones included) depth first
  2) extract each function's name
  3) give every name present in both trees an id from one shared table
  4) stamp subtrees, innermost functions first, never overwriting a stamp
"""

import logging
from typing import Dict, List, Optional

from ast_diff.tree import NO_SCOPE, Node, TreeContext

logger = logging.getLogger(__name__)


def preprocess(src: TreeContext, dst: TreeContext) -> Dict[str, int]:
    """
    Tags both trees with function scope ids and returns the name -> id table.
    Running it again on already tagged trees changes nothing.
    """
    return tag_scopes(src.root, dst.root)


def tag_scopes(src_root: Node, dst_root: Node) -> Dict[str, int]:
    src_funcs = extract_function_decls(src_root)
    dst_funcs = extract_function_decls(dst_root)

    function_ids = assign_function_ids(src_funcs, dst_funcs)
    logger.debug(
        f"Scope tagging: {len(src_funcs)} source and {len(dst_funcs)} destination functions, "
        f"{len(function_ids)} shared names"
    )

    tag_functions(src_funcs, function_ids)
    tag_functions(dst_funcs, function_ids)
    return function_ids


def extract_function_decls(root: Node) -> List[Node]:
    """Every function declaration node in pre-order, nested declarations included."""
    return [node for node in root.pre_order() if node.type.is_function]


def get_function_name(node: Node) -> Optional[str]:
    """
    The label of the first "name" child. A name child without a label is a
    compound name: its children's labels are concatenated. Returns None when
    no name can be found.
    """
    for child in node.children:
        if not child.type.is_name:
            continue
        if child.has_label():
            return child.label
        name = "".join(grandchild.label for grandchild in child.children if grandchild.has_label())
        if not name:
            logger.debug(f"Function {node} has a name node without any label")
            return None
        return name

    logger.debug(f"Function {node} has no name child")
    return None


def assign_function_ids(src_funcs: List[Node], dst_funcs: List[Node]) -> Dict[str, int]:
    """
    Allocates ids 1, 2, ... to the names found in both lists, in the order the
    names first appear in the source tree.
    """
    dst_names = set()
    for func in dst_funcs:
        name = get_function_name(func)
        if name is not None:
            dst_names.add(name)

    function_ids: Dict[str, int] = {}
    for func in src_funcs:
        name = get_function_name(func)
        if name is not None and name in dst_names and name not in function_ids:
            function_ids[name] = len(function_ids) + 1

    for name, function_id in function_ids.items():
        logger.debug(f"Matched function {name!r} -> scope {function_id}")
    return function_ids


def tag_functions(funcs: List[Node], function_ids: Dict[str, int]) -> None:
    # deepest first, so inner functions claim their bodies before the enclosing ones
    ordered = sorted(funcs, key=lambda func: func.metrics.depth, reverse=True)
    for func in ordered:
        function_id = function_ids.get(get_function_name(func))
        if function_id is not None:
            tag_subtree(func, function_id)


def tag_subtree(root: Node, function_id: int) -> None:
    """
    Stamps function_id on root and its descendants. A node that already has a
    scope id stops the walk: neither it nor anything below it is touched.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if node.scope_id != NO_SCOPE:
            continue
        node.scope_id = function_id
        stack.extend(node.children)
