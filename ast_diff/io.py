import json
from typing import Any, Dict, List, Tuple

from ast_diff.exceptions import TreeFormatError
from ast_diff.tree import Node, TreeContext

# keys with a meaning of their own; anything else on a node goes to its metadata
_NODE_KEYS = {"type", "typeLabel", "label", "pos", "length", "children"}


def read_tree(filepath: str) -> TreeContext:
    """
    reads a tree serialized as JSON by an external parser \n
    returns a TreeContext whose metrics are already computed
    """
    with open(filepath, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise TreeFormatError(f"{filepath} is not valid JSON: {e}") from e
    return tree_from_dict(data)


def tree_from_dict(data: Dict[str, Any]) -> TreeContext:
    """
    builds a TreeContext from {"root": node} or a bare node, where a node is
    {"type": str, "label": str, "pos": int, "length": int, "children": [node, ...]}
    """
    if not isinstance(data, dict):
        raise TreeFormatError(f"expected a JSON object, got {type(data).__name__}")
    root_data = data.get("root", data)

    context = TreeContext()
    for key, value in data.items():
        if key != "root" and "root" in data:
            context.metadata[key] = value

    root = _build_node(context, root_data)
    # explicit stack so very deep trees do not hit the recursion limit
    stack: List[Tuple[Node, Any]] = [(root, root_data)]
    while stack:
        parent, parent_data = stack.pop()
        children = parent_data.get("children", [])
        if not isinstance(children, list):
            raise TreeFormatError(f"children of {parent} must be a list")
        for child_data in children:
            child = parent.add_child(_build_node(context, child_data))
            stack.append((child, child_data))

    context.set_root(root)
    return context


def _build_node(context: TreeContext, data: Any) -> Node:
    if not isinstance(data, dict):
        raise TreeFormatError(f"expected a node object, got {data!r}")
    type_name = data.get("type", data.get("typeLabel"))
    if type_name is None:
        raise TreeFormatError(f"node without a type: {data!r}")

    label = data.get("label")
    node = context.create_tree(
        str(type_name),
        None if label is None else str(label),
        pos=_as_int(data, "pos"),
        length=_as_int(data, "length"),
    )
    for key, value in data.items():
        if key not in _NODE_KEYS:
            node.set_metadata(key, value)
    return node


def _as_int(data: Dict[str, Any], key: str) -> int:
    # GumTree writes positions as strings
    value = data.get(key, 0)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise TreeFormatError(f"{key} must be an integer, got {value!r}") from e
