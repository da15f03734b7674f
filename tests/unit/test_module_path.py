"""
Tests for the module path algebra: push/pop stack discipline, segment-wise
prefix tests, normalization and hashing.
"""

import pytest
from rsbundle.shared.errors import UnsupportedConstructError
from rsbundle.shared.module_path import ModulePath, ModulePathBuf


class TestPush:
    """push() appends, or resets on a crate-rooted suffix"""

    def test_push_crate_rooted_resets(self):
        buf = ModulePathBuf("a::b")
        buf.push("crate::x")
        assert buf == "crate::x"

    def test_push_relative_appends(self):
        buf = ModulePathBuf("a::b")
        buf.push("c")
        assert buf == "a::b::c"

    def test_push_multi_segment_suffix(self):
        buf = ModulePathBuf("crate")
        buf.push(ModulePath("a::b"))
        assert buf.segments == ("crate", "a", "b")

    def test_push_onto_empty_has_no_leading_separator(self):
        buf = ModulePathBuf()
        buf.push("foo")
        assert str(buf) == "foo"

    def test_push_fully_qualified_rejected(self):
        buf = ModulePathBuf("crate")
        with pytest.raises(UnsupportedConstructError):
            buf.push("::std::mem")
        assert buf == "crate"


class TestPop:
    """pop() removes the last segment but never the only one"""

    def test_pop_single_segment_is_noop(self):
        buf = ModulePathBuf("a")
        assert buf.pop() is False
        assert buf == "a"

    def test_pop_two_segments(self):
        buf = ModulePathBuf("a::b")
        assert buf.pop() is True
        assert buf == "a"

    def test_pop_empty(self):
        buf = ModulePathBuf()
        assert buf.pop() is False
        assert buf.is_empty()

    def test_push_pop_restores(self):
        buf = ModulePathBuf("crate::a")
        buf.push("b")
        buf.push("c")
        assert buf.pop() and buf.pop()
        assert buf == "crate::a"


class TestQueries:
    """Non-mutating operations"""

    def test_starts_with_uses_segment_boundaries(self):
        assert ModulePath("crate::a::b").starts_with("crate::a")
        assert not ModulePath("crate::ab").starts_with("crate::a")
        assert ModulePath("crate::a").starts_with("")

    def test_suffix_drops_first_segment(self):
        assert ModulePath("crate::a::b").suffix() == "a::b"
        assert ModulePath("crate").suffix().is_empty()
        assert ModulePath().suffix().is_empty()

    def test_parent_first_last(self):
        path = ModulePath("crate::a::b")
        assert path.parent() == "crate::a"
        assert path.first == "crate"
        assert path.last == "b"
        assert ModulePath().last is None

    def test_iteration_is_restartable(self):
        path = ModulePath("crate::a::b")
        assert list(path) == ["crate", "a", "b"]
        assert list(path) == ["crate", "a", "b"]
        it = iter(path)
        assert list(it) == ["crate", "a", "b"]
        assert list(it) == []

    def test_join_does_not_mutate(self):
        base = ModulePath("crate::a")
        joined = base.join("b")
        assert joined == "crate::a::b"
        assert base == "crate::a"
        assert base.join("crate::z") == "crate::z"

    def test_len_counts_segments(self):
        assert len(ModulePath("crate::a::b")) == 3
        assert len(ModulePath()) == 0

    def test_is_crate_path(self):
        assert ModulePath("crate::a").is_crate_path()
        assert not ModulePath("self::a").is_crate_path()


class TestNormalizationAndHashing:
    """String form is the identity"""

    def test_whitespace_around_separators_normalized(self):
        assert ModulePath(" a :: b ") == "a::b"

    def test_equal_to_str_and_hash_matches(self):
        path = ModulePath("crate::a")
        assert path == "crate::a"
        assert hash(path) == hash("crate::a")
        assert {"crate::a": 1}[path] == 1

    def test_buf_equal_to_path_but_unhashable(self):
        buf = ModulePathBuf("crate::a")
        assert buf == ModulePath("crate::a")
        with pytest.raises(TypeError):
            hash(buf)
        assert hash(buf.to_path()) == hash(ModulePath("crate::a"))

    def test_to_buf_is_independent_copy(self):
        path = ModulePath("crate::a")
        buf = path.to_buf()
        buf.push("b")
        assert path == "crate::a"

    def test_special_segments_accepted(self):
        assert ModulePath("$crate::m").first == "$crate"
        assert ModulePath("r#type::x").first == "r#type"
        assert ModulePath("a::*").last == "*"

    @pytest.mark.parametrize("bad", ["a::", "a::::b", "1abc", "a::b-c"])
    def test_malformed_segments_rejected(self, bad):
        with pytest.raises(ValueError):
            ModulePath(bad)

    def test_leading_separator_rejected(self):
        with pytest.raises(UnsupportedConstructError):
            ModulePath("::a")
