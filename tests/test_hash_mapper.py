"""Tests for hash bucket classification."""

from ast_diff.hash_mapper import HashBasedMapper


class TestHashBasedMapper:

    def test_classification(self, make_tree):
        src = make_tree(("unit", "", [
            ("call", "f", [("arg", "1")]),       # unique
            ("stmt", "a"),                       # ambiguous
            ("stmt", "b"),
            ("decl", "x"),                       # only in source
        ])).root
        dst = make_tree(("unit", "", [
            ("stmt", "c"),
            ("call", "g", [("arg", "2")]),
            ("expr", "y"),                       # only in destination
        ])).root

        mapper = HashBasedMapper()
        mapper.add_srcs(src.children)
        mapper.add_dsts(dst.children)

        unique = list(mapper.unique())
        ambiguous = list(mapper.ambiguous())
        unmapped = list(mapper.unmapped())

        assert [(s.label, d.label) for s, d in unique] == [("f", "g")]
        assert len(ambiguous) == 1
        srcs, dsts = ambiguous[0]
        assert [n.label for n in srcs] == ["a", "b"]
        assert [n.label for n in dsts] == ["c"]
        assert [([n.label for n in s], [n.label for n in d]) for s, d in unmapped] == [
            (["x"], []),
            ([], ["y"]),
        ]
        # call, stmt, decl, expr
        assert len(mapper) == 4

    def test_one_by_many_on_destination_is_ambiguous(self, make_tree):
        src = make_tree(("stmt", "a")).root
        dst = make_tree(("unit", "", [("stmt", "b"), ("stmt", "c")])).root
        mapper = HashBasedMapper()
        mapper.add_src(src)
        mapper.add_dsts(dst.children)
        assert list(mapper.unique()) == []
        assert len(list(mapper.ambiguous())) == 1
        assert list(mapper.unmapped()) == []

    def test_groups_keep_first_encounter_order(self, make_tree):
        src = make_tree(("unit", "", [("b", ""), ("a", ""), ("b", "")])).root
        mapper = HashBasedMapper()
        mapper.add_srcs(src.children)
        groups = [[n.type.name for n in srcs] for srcs, _ in mapper.unmapped()]
        assert groups == [["b", "b"], ["a"]]
