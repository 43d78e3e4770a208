"""Tests for reading serialized trees."""

import json

import pytest

from ast_diff.exceptions import TreeFormatError
from ast_diff.io import read_tree, tree_from_dict

DOCUMENT = {
    "file": "calc.c",
    "root": {
        "type": "unit",
        "pos": "0",
        "length": "42",
        "children": [
            {"type": "function", "pos": 0, "length": 20, "line": 1, "children": [
                {"type": "name", "label": "add", "pos": 4, "length": 3},
                {"type": "block", "pos": 10, "length": 10},
            ]},
            {"typeLabel": "decl", "label": 7, "pos": 21, "length": 5},
        ],
    },
}


class TestTreeFromDict:

    def test_builds_tree_with_metrics(self):
        context = tree_from_dict(DOCUMENT)
        root = context.root

        assert root.type.name == "unit"
        assert root.metrics.size == 5
        assert root.end_pos == 42
        function, decl = root.children
        assert [c.label for c in function.children] == ["add", ""]
        assert decl.type.name == "decl"
        assert decl.label == "7"
        assert [n.metrics.position for n in root.pre_order()] == [0, 1, 2, 3, 4]

    def test_extra_keys_become_metadata(self):
        context = tree_from_dict(DOCUMENT)
        assert context.metadata["file"] == "calc.c"
        assert context.root.children[0].get_metadata("line") == 1

    def test_bare_node(self):
        context = tree_from_dict({"type": "block", "children": [{"type": "stmt", "label": "x"}]})
        assert context.root.metrics.size == 2
        assert context.root.pos == 0

    @pytest.mark.parametrize("data", [
        [],
        {"label": "no type"},
        {"type": "block", "children": {"type": "stmt"}},
        {"type": "block", "children": ["stmt"]},
        {"type": "block", "pos": "start"},
    ])
    def test_malformed_input(self, data):
        with pytest.raises(TreeFormatError):
            tree_from_dict(data)

    def test_format_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            tree_from_dict({"label": "no type"})


class TestReadTree:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "calc_v1.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        assert read_tree(str(path)).root.metrics.size == 5

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TreeFormatError):
            read_tree(str(path))
