"""
Tests for module file resolution: ``foo.rs`` / ``foo/mod.rs`` conventions and
``#[path]`` overrides.
"""

import pytest
from rsbundle.analysis.module_system.path_resolver import PathResolver
from rsbundle.shared.errors import ModuleFileNotFoundError, UnsupportedConstructError
from rsbundle.shared.module_path import ModulePath
from tests.test_utils import write_crate


class TestDefaultCandidates:
    """Candidate order for modules without an override"""

    def test_candidate_order(self, tmp_path):
        resolver = PathResolver(tmp_path / "src")
        candidates = resolver.default_candidates(ModulePath("crate::a::foo"))
        assert candidates == [
            tmp_path / "src" / "a" / "foo.rs",
            tmp_path / "src" / "a" / "foo" / "mod.rs",
        ]

    def test_raw_identifier_prefix_stripped(self, tmp_path):
        resolver = PathResolver(tmp_path)
        candidates = resolver.default_candidates(ModulePath("crate::r#type"))
        assert candidates[0] == tmp_path / "type.rs"

    def test_requires_crate_rooted_module(self, tmp_path):
        resolver = PathResolver(tmp_path)
        with pytest.raises(ValueError):
            resolver.default_candidates(ModulePath("crate"))
        with pytest.raises(ValueError):
            resolver.default_candidates(ModulePath("self::foo"))


class TestResolve:
    """resolve() picks the first existing candidate"""

    def test_single_file_preferred(self, tmp_path):
        write_crate(tmp_path, {"src/lib.rs": "mod foo;", "src/foo.rs": "", "src/foo/mod.rs": ""})
        resolver = PathResolver(tmp_path / "src")
        found = resolver.resolve(ModulePath("crate::foo"), tmp_path / "src" / "lib.rs")
        assert found == tmp_path / "src" / "foo.rs"

    def test_falls_back_to_mod_rs(self, tmp_path):
        write_crate(tmp_path, {"src/lib.rs": "mod foo;", "src/foo/mod.rs": ""})
        resolver = PathResolver(tmp_path / "src")
        found = resolver.resolve(ModulePath("crate::foo"), tmp_path / "src" / "lib.rs")
        assert found == tmp_path / "src" / "foo" / "mod.rs"

    def test_missing_lists_all_candidates(self, tmp_path):
        write_crate(tmp_path, {"src/lib.rs": "mod foo;"})
        resolver = PathResolver(tmp_path / "src")
        with pytest.raises(ModuleFileNotFoundError) as exc_info:
            resolver.resolve(ModulePath("crate::foo"), tmp_path / "src" / "lib.rs")
        err = exc_info.value
        assert err.module_path == "crate::foo"
        assert err.searched == [tmp_path / "src" / "foo.rs", tmp_path / "src" / "foo" / "mod.rs"]
        assert "foo.rs" in err.note_text and "mod.rs" in err.note_text


class TestPathOverride:
    """``#[path]`` is relative to the declaring file, with no fallback"""

    def test_override_wins_over_convention(self, tmp_path):
        write_crate(tmp_path, {"src/foo.rs": "", "src/other/impl.rs": ""})
        resolver = PathResolver(tmp_path / "src")
        found = resolver.resolve(ModulePath("crate::foo"), tmp_path / "src" / "lib.rs", "other/impl.rs")
        assert found == tmp_path / "src" / "other" / "impl.rs"

    def test_override_relative_to_nested_file(self, tmp_path):
        write_crate(tmp_path, {"src/a/mod.rs": "", "src/a/custom.rs": ""})
        resolver = PathResolver(tmp_path / "src")
        found = resolver.resolve(ModulePath("crate::a::b"), tmp_path / "src" / "a" / "mod.rs", "custom.rs")
        assert found == tmp_path / "src" / "a" / "custom.rs"

    def test_missing_override_has_no_fallback(self, tmp_path):
        write_crate(tmp_path, {"src/foo.rs": ""})
        resolver = PathResolver(tmp_path / "src")
        with pytest.raises(ModuleFileNotFoundError) as exc_info:
            resolver.resolve(ModulePath("crate::foo"), tmp_path / "src" / "lib.rs", "gone.rs")
        assert exc_info.value.searched == [tmp_path / "src" / "gone.rs"]

    def test_fully_qualified_override_rejected(self, tmp_path):
        resolver = PathResolver(tmp_path)
        with pytest.raises(UnsupportedConstructError):
            resolver.resolve(ModulePath("crate::foo"), tmp_path / "lib.rs", "::foo.rs")
