"""
GroundTruth – Loader for manually annotated node mappings.

This module reads a single JSON file (`data/ground_truth.json`) that holds
human-verified mappings between the pre-order indices of two tree versions:

    {"<case>": {"v1-v2": [[src_index, dst_index], ...]}}

The ground truth is used to measure precision/recall of the matcher's
mappings with the evaluator.
"""

import json
import os
import warnings
from typing import Any, Dict, List, Tuple

DEFAULT_GROUND_TRUTH_PATH = os.path.join("data", "ground_truth.json")


class GroundTruth:
    """
    Static utility class.
    Loads a ground-truth JSON file once per path and keeps it cached.
    """

    _cache: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def load(path: str = DEFAULT_GROUND_TRUTH_PATH) -> Dict[str, Any]:
        """Whole ground-truth document; empty when the file does not exist."""
        if path in GroundTruth._cache:
            return GroundTruth._cache[path]

        if not os.path.isfile(path):
            data: Dict[str, Any] = {}
        else:
            with open(path, "r", encoding="utf-8") as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    warnings.warn(f"Could not parse ground truth {path}: {e}", RuntimeWarning)
                    data = {}

        GroundTruth._cache[path] = data
        return data

    @staticmethod
    def load_mapping(old_file: str, new_file: str, path: str = DEFAULT_GROUND_TRUTH_PATH) -> List[Tuple[int, int]]:
        """
        Expected (old pre-order index, new pre-order index) pairs for the given
        file pair, or an empty list when the pair is not annotated.

        Example:
            {"calc": {"v1-v2": [[0, 0], [1, 2]]}}  → [(0, 0), (1, 2)]
        """
        test_id, old_ver = GroundTruth._extract_version_info(old_file)
        _, new_ver = GroundTruth._extract_version_info(new_file)

        version_key = f"v{old_ver}-v{new_ver}"
        pairs = GroundTruth.load(path).get(test_id, {}).get(version_key, [])
        return [(int(old), int(new)) for old, new in pairs]

    @staticmethod
    def clear_cache() -> None:
        GroundTruth._cache.clear()

    @staticmethod
    def _extract_version_info(filename: str) -> Tuple[str, str]:
        """
        Parse test case ID and version number from filenames like:
            - calc_v1.json  → ("calc", "1")
            - calc_v2.json  → ("calc", "2")
            - calc.json     → ("calc", "1")  (fallback)
        """
        base = os.path.basename(filename).split(".")[0]

        if "_v" in base:
            test_id, _, version = base.rpartition("_v")
            return test_id, version

        return base, "1"
