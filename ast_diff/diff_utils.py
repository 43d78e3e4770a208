from typing import Dict

from ast_diff.mapping import MappingStore
from ast_diff.tree import Node


def summarize_mappings(mappings: MappingStore, src_root: Node, dst_root: Node) -> Dict[str, int]:
    """
    counts nodes on both sides and how many of them the mappings cover\n
    unmapped source nodes are reported as deleted, unmapped destination nodes as inserted
    """
    src_nodes = list(src_root.pre_order())
    dst_nodes = list(dst_root.pre_order())
    deleted = sum(1 for node in src_nodes if not mappings.is_src_mapped(node))
    inserted = sum(1 for node in dst_nodes if not mappings.is_dst_mapped(node))

    return {
        "src_nodes": len(src_nodes),
        "dst_nodes": len(dst_nodes),
        "mapped": len(mappings),
        "deleted": deleted,
        "inserted": inserted,
    }


def print_diff_summary(mappings: MappingStore, src_root: Node, dst_root: Node):
    """
    prints summary of the matching between the two tree versions
    """
    summary = summarize_mappings(mappings, src_root, dst_root)

    print("----- Diff Summary -----")
    print(f"Old tree nodes: {summary['src_nodes']}")
    print(f"New tree nodes: {summary['dst_nodes']}")
    print(f"Mapped nodes: {summary['mapped']}")
    print(f"Deleted/Inserted: {summary['deleted']}/{summary['inserted']}")
    print("------------------------")
