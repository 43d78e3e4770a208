from typing import Iterable, List, Set, Tuple
import pandas as pd

from ast_diff.mapping import MappingStore

PositionPair = Tuple[int, int]
CaseResult = Tuple[str, float, float, float, int]

RESULT_COLUMNS = ["Dataset", "Precision", "Recall", "F1", "Mappings"]


def mapping_pairs(mappings: MappingStore) -> Set[PositionPair]:
    """
    converts a mapping store into flat (old pre-order index, new pre-order index) pairs
    """
    return set(mappings.as_position_pairs())


def _ratio(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


def evaluate_mapping(
    predicted: Iterable[PositionPair],
    ground_truth: Iterable[PositionPair]
) -> Tuple[float, float, float]:
    """
    scores predicted node pairs against annotated ones \n
    returns (precision, recall, f1), all 0.0 when there is nothing to compare
    """
    found = set(predicted)
    expected = set(ground_truth)
    hits = len(found & expected)

    precision = _ratio(hits, len(found))
    recall = _ratio(hits, len(expected))
    f1 = _ratio(2 * precision * recall, precision + recall)
    return precision, recall, f1


def _print_scores(title: str, precision: float, recall: float, f1: float):
    banner = f"---- {title} ----"
    print(f"\n{banner}")
    for name, value in (("Precision", precision), ("Recall", recall), ("F1", f1)):
        print(f"{name + ':':<11}{value:.3f}")
    print("-" * len(banner) + "\n")


def print_evaluation(name: str, precision: float, recall: float, f1: float):
    """scores of one version pair"""
    _print_scores(f"Mapping quality: {name}", precision, recall, f1)


def save_results_csv(results: List[CaseResult], path: str = "evaluation_results.csv"):
    """one CSV row per diffed version pair"""
    pd.DataFrame(results, columns=RESULT_COLUMNS).to_csv(path, index=False)
    print(f"Results saved to {path}")


def average_results(results: List[CaseResult]) -> Tuple[float, float, float]:
    if not results:
        print("No results to average.")
        return 0.0, 0.0, 0.0

    means = pd.DataFrame(results, columns=RESULT_COLUMNS)[["Precision", "Recall", "F1"]].mean()
    avg_precision, avg_recall, avg_f1 = (float(v) for v in means)

    _print_scores("Average over all version pairs", avg_precision, avg_recall, avg_f1)
    return avg_precision, avg_recall, avg_f1
