"""
Entry point tying the pieces together for one pair of trees.

Diff.compute() tags function scopes, runs the subtree matcher and, unless
only the mappings are wanted, hands the finished store to an edit script
generator supplied by the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ast_diff.config import MatcherConfig
from ast_diff.mapping import MappingStore
from ast_diff.matcher import GreedySubtreeMatcher, SubtreeMatcher
from ast_diff.prematcher import preprocess
from ast_diff.tree import TreeContext

logger = logging.getLogger(__name__)


class EditScriptGenerator(Protocol):
    """Turns a finished mapping store into an ordered list of actions."""

    def compute_actions(self, mappings: MappingStore) -> Any:
        ...


@dataclass
class Diff:
    """The two trees of a diff, their mappings and, when computed, the edit script."""

    src: TreeContext
    dst: TreeContext
    mappings: MappingStore
    edit_script: Any = None
    only_match: bool = False

    @classmethod
    def compute(
        cls,
        src: TreeContext,
        dst: TreeContext,
        config: Optional[MatcherConfig] = None,
        matcher: Optional[SubtreeMatcher] = None,
        only_match: bool = False,
        script_generator: Optional[EditScriptGenerator] = None,
    ) -> "Diff":
        if src.root is None or dst.root is None:
            raise ValueError("both tree contexts need a root before diffing")

        preprocess(src, dst)

        if matcher is None:
            matcher = GreedySubtreeMatcher(config)
        elif config is not None:
            matcher.configure(config)

        mappings = matcher.match(src.root, dst.root)
        logger.debug(
            f"Matched {len(mappings)} node pairs between trees of "
            f"{src.root.metrics.size} and {dst.root.metrics.size} nodes"
        )

        if only_match or script_generator is None:
            return cls(src, dst, mappings, None, True)

        edit_script = script_generator.compute_actions(mappings)
        return cls(src, dst, mappings, edit_script, False)
