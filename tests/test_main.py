"""End-to-end runs of the batch driver over a data folder."""

import json

import pytest

from ast_diff.ground_truth import GroundTruth
from main import extract_version_info, format_mappings_output, infer_file_pairs, main, run_case

V1 = {"root": {"type": "unit", "pos": 0, "length": 9, "children": [
    {"type": "decl", "label": "a", "pos": 0, "length": 4},
    {"type": "decl", "label": "b", "pos": 5, "length": 4},
]}}

V2 = {"root": {"type": "unit", "pos": 0, "length": 14, "children": [
    {"type": "decl", "label": "a", "pos": 0, "length": 4},
    {"type": "decl", "label": "b", "pos": 5, "length": 4},
    {"type": "call", "label": "run", "pos": 10, "length": 4},
]}}


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def data_folder(tmp_path, monkeypatch):
    monkeypatch.delenv("AST_DIFF_MIN_PRIORITY", raising=False)
    monkeypatch.delenv("AST_DIFF_PRIORITY_METRIC", raising=False)
    GroundTruth.clear_cache()

    folder = tmp_path / "data"
    folder.mkdir()
    write_json(folder / "calc_v1.json", V1)
    write_json(folder / "calc_v2.json", V2)
    write_json(folder / "ground_truth.json", {"calc": {"v1-v2": [[1, 1], [2, 2]]}})
    yield folder
    GroundTruth.clear_cache()


class TestInferFilePairs:

    def test_groups_versions_in_numeric_order(self, tmp_path):
        for name in ("calc_v10.json", "calc_v2.json", "calc_v1.json", "lonely_v1.json",
                     "ground_truth.json", "notes.txt"):
            write_json(tmp_path / name, V1)

        pairs = infer_file_pairs(str(tmp_path))

        assert list(pairs) == ["calc"]
        assert [p.rsplit("_v", 1)[1] for p in pairs["calc"]] == ["1.json", "2.json", "10.json"]

    def test_version_info(self):
        assert extract_version_info("data/calc_v2.json") == ("calc", "2")
        assert extract_version_info("data/calc.json") == ("calc", "unknown")


class TestRun:

    def test_run_case(self, data_folder):
        case_name, precision, recall, f1, diff = run_case(
            str(data_folder / "calc_v1.json"),
            str(data_folder / "calc_v2.json"),
            ground_truth_path=str(data_folder / "ground_truth.json"),
        )

        assert case_name == "calc_v1_to_v2"
        # the roots differ, so only the two declarations are matched
        assert sorted(diff.mappings.as_position_pairs()) == [(1, 1), (2, 2)]
        assert (precision, recall, f1) == (1.0, 1.0, 1.0)
        assert format_mappings_output(diff.mappings).splitlines() == [
            "[1] decl: a [0,4] -> [1] decl: a [0,4]",
            "[2] decl: b [5,9] -> [2] decl: b [5,9]",
        ]

    def test_main_writes_reports(self, data_folder, tmp_path):
        results_folder = tmp_path / "results"

        results = main(str(data_folder), str(results_folder))

        assert results == [("calc_v1_to_v2", 1.0, 1.0, 1.0, 2)]
        report = (results_folder / "calc_v1_to_v2_results.txt").read_text(encoding="utf-8")
        assert "Inserted nodes:" in report
        assert "New [3] call: run [10,14]" in report
        assert (results_folder / "evaluation_results.csv").is_file()

    def test_main_without_pairs(self, tmp_path, capsys):
        assert main(str(tmp_path), str(tmp_path / "results")) == []
        assert "No tree file pairs found" in capsys.readouterr().out
