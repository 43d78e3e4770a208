import os
import sys
from typing import Dict, List, Optional, Tuple

from ast_diff.config import MatcherConfig
from ast_diff.diff import Diff
from ast_diff.diff_utils import print_diff_summary
from ast_diff.evaluator import average_results, evaluate_mapping, mapping_pairs, print_evaluation, save_results_csv
from ast_diff.ground_truth import DEFAULT_GROUND_TRUTH_PATH, GroundTruth
from ast_diff.io import read_tree
from ast_diff.mapping import MappingStore


def format_mappings_output(mappings: MappingStore) -> str:
    """Format node mappings for text output"""
    lines = []
    # one line per mapping, in old pre-order
    for src, dst in sorted(mappings, key=lambda m: m.src.metrics.position):
        lines.append(f"[{src.metrics.position}] {src} -> [{dst.metrics.position}] {dst}")
    return "\n".join(lines)


def save_results_to_file(case_name: str, diff: Diff, output_dir: str = "results") -> str:
    """Save the mappings and the unmatched nodes of one case to a text file"""
    os.makedirs(output_dir, exist_ok=True)

    filename = f"{case_name}_results.txt"
    filepath = os.path.join(output_dir, filename)

    mappings = diff.mappings
    removed = [n for n in diff.src.root.pre_order() if not mappings.is_src_mapped(n)]
    inserted = [n for n in diff.dst.root.pre_order() if not mappings.is_dst_mapped(n)]

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(f"RESULTS FOR: {case_name}\n")
        f.write("=" * 50 + "\n\n")

        f.write("MAPPINGS:\n")
        f.write("-" * 20 + "\n")
        f.write(format_mappings_output(mappings))
        f.write("\n\n")

        f.write("\nRemoved nodes:\n")
        if removed:
            for node in removed:
                f.write(f"  Old [{node.metrics.position}] {node}\n")
        else:
            f.write("  None\n")

        f.write("\nInserted nodes:\n")
        if inserted:
            for node in inserted:
                f.write(f"  New [{node.metrics.position}] {node}\n")
        else:
            f.write("  None\n")

    print(f"Results saved to: {filepath}")
    return filepath


def infer_file_pairs(data_folder="data") -> Dict[str, List[str]]:
    """Group tree files by test case and sort by version"""
    filesDictionary = {}
    files = os.listdir(data_folder)  # List all entries in the data folder

    for file in files:
        path = os.path.join(data_folder, file)
        if os.path.isfile(path) and file.endswith(".json"):
            base_name, ext = os.path.splitext(file)

            # Extract test case name and version
            if "_v" in base_name:
                test_case, _, version = base_name.rpartition("_v")
                if test_case and version:
                    filesDictionary.setdefault(test_case, {})[version] = path

    # Sort the versions and build final mapping test case
    sorted_files = {}
    for test_case, versions in filesDictionary.items():
        sorted_versions = sorted(versions.keys(), key=lambda x: (0, int(x), x) if x.isdigit() else (1, 0, x))
        sorted_files[test_case] = [versions[v] for v in sorted_versions]

    # test cases need at least two versions to diff
    return {name: files for name, files in sorted_files.items() if len(files) >= 2}


def extract_version_info(filepath: str) -> Tuple[str, str]:
    filename = os.path.basename(filepath)
    base_name, ext = os.path.splitext(filename)

    if "_v" in base_name:
        test_case, _, version = base_name.rpartition("_v")
        return test_case, version
    return base_name, "unknown"


def run_case(old_file: str, new_file: str, config: Optional[MatcherConfig] = None,
             ground_truth_path: str = DEFAULT_GROUND_TRUTH_PATH) -> Tuple[str, float, float, float, Diff]:
    old_case, old_ver = extract_version_info(old_file)
    new_case, new_ver = extract_version_info(new_file)

    case_name = f"{old_case}_v{old_ver}_to_v{new_ver}"

    print(f"\n---- AST-DIFF RUN: {case_name} ----")
    print(f"From: {os.path.basename(old_file)}")
    print(f"To: {os.path.basename(new_file)}")

    src = read_tree(old_file)
    dst = read_tree(new_file)

    diff = Diff.compute(src, dst, config=config, only_match=True)
    print_diff_summary(diff.mappings, src.root, dst.root)

    ground_truth = GroundTruth.load_mapping(old_file, new_file, ground_truth_path)
    precision, recall, f1 = evaluate_mapping(mapping_pairs(diff.mappings), ground_truth)
    print_evaluation(case_name, precision, recall, f1)
    return (case_name, precision, recall, f1, diff)


def main(data_folder: str = "data", result_folder: str = "results") -> List[Tuple[str, float, float, float, int]]:
    config = MatcherConfig.from_env()
    filesDictionary = infer_file_pairs(data_folder)
    if not filesDictionary:
        print(f"No tree file pairs found in '{data_folder}/'")
        return []

    ground_truth_path = os.path.join(data_folder, "ground_truth.json")
    results = []

    for test_case, file_list in filesDictionary.items():
        print(f"\n{'='*60}")
        print(f"Processing Test Case: {test_case}")
        print(f"Versions found: {len(file_list)}")
        print(f"{'='*60}")

        # Loop over adjacent pairs of versions
        for i in range(len(file_list) - 1):
            old_file = file_list[i]
            new_file = file_list[i + 1]

            case_name, precision, recall, f1, diff = run_case(old_file, new_file, config, ground_truth_path)
            results.append((case_name, precision, recall, f1, len(diff.mappings)))
            save_results_to_file(case_name, diff, result_folder)

    if results:
        os.makedirs(result_folder, exist_ok=True)
        save_results_csv(results, os.path.join(result_folder, "evaluation_results.csv"))
        average_results(results)

        print(f"\n{'='*60}")
        print("PROCESSING COMPLETE")
        print(f"{'='*60}")
        print(f"Total version pairs processed: {len(results)}")
        print(f"Results saved to '{result_folder}/' directory")
    return results


if __name__ == "__main__":
    main(*sys.argv[1:3])
