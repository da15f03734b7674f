#!/usr/bin/env python3
"""
Tests for the error taxonomy and the rustc-style diagnostic formatter.
"""

from pathlib import Path

from rsbundle.shared.errors import (
    BundleError,
    CircularModuleError,
    Diagnostic,
    ModuleFileNotFoundError,
    RustSyntaxError,
    UnsupportedConstructError,
    format_diagnostic,
    use_color,
)
from rsbundle.shared.source_location import SourceLocation
from tests.test_utils import strip_ansi


class TestFormatDiagnostic:
    """format_diagnostic() edge cases"""

    def test_location_none(self):
        out = format_diagnostic(Diagnostic("something failed", None, code="E0583"), {})
        assert out == "error[E0583]: something failed"

    def test_file_not_in_source_files(self):
        loc = SourceLocation(file="missing.rs", line=1, column=1)
        out = format_diagnostic(Diagnostic("oops", loc), {})
        assert out.startswith("error: oops")
        assert " --> missing.rs:1:1" in out
        assert "|" not in out

    def test_line_beyond_source(self):
        loc = SourceLocation(file="x.rs", line=10, column=1)
        out = format_diagnostic(Diagnostic("bad", loc), {"x.rs": "mod a;\nmod b;\n"})
        assert " --> x.rs:10:1" in out
        assert "10 |" not in out

    def test_carets_cover_span(self):
        source = "fn f() {}\nmod foo;\n"
        loc = SourceLocation(file="lib.rs", line=2, column=1, end_line=2, end_column=9)
        out = format_diagnostic(Diagnostic("file not found for module `foo`", loc, label="here"), {"lib.rs": source})
        lines = out.split("\n")
        assert "2 | mod foo;" in lines
        assert any(line.endswith("| ^^^^^^^^ here") for line in lines)

    def test_help_and_note(self):
        out = format_diagnostic(Diagnostic("m", None, help="do this", note="because"), {})
        assert "= help: do this" in out
        assert "= note: because" in out

    def test_color_only_when_requested(self):
        diag = Diagnostic("m", None, code="E0001")
        assert "\x1b[" not in format_diagnostic(diag, {}, color=False)
        colored = format_diagnostic(diag, {}, color=True)
        assert "\x1b[" in colored
        assert strip_ansi(colored) == "error[E0001]: m"


class TestUseColor:
    """Environment switches for colored output"""

    def test_no_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert use_color() is False

    def test_explicit_off(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("RSBUNDLE_COLOR", "never")
        assert use_color() is False

    def test_default_on(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("RSBUNDLE_COLOR", raising=False)
        assert use_color() is True


class TestExceptions:
    """Exception classes carry codes and context"""

    def test_hierarchy_and_codes(self):
        assert issubclass(ModuleFileNotFoundError, BundleError)
        assert ModuleFileNotFoundError.error_code == "E0583"
        assert RustSyntaxError.error_code == "E0001"
        assert UnsupportedConstructError.error_code == "E0433"
        assert CircularModuleError.error_code == "E0584"

    def test_str_includes_location(self):
        loc = SourceLocation(file="lib.rs", line=3, column=1)
        assert str(BundleError("boom", location=loc)) == "boom (lib.rs:3:1)"
        assert str(BundleError("boom")) == "boom"

    def test_not_found_notes_searched_paths(self):
        err = ModuleFileNotFoundError("missing", module_path="crate::foo", searched=[Path("a.rs"), Path("b/mod.rs")])
        assert err.note_text == "searched: a.rs, b/mod.rs"
        assert err.to_diagnostic().note == "searched: a.rs, b/mod.rs"

    def test_render_includes_source_line(self):
        loc = SourceLocation(file="lib.rs", line=1, column=1, end_line=1, end_column=9)
        err = ModuleFileNotFoundError("file not found for module `foo`", location=loc, source_code="mod foo;\n")
        out = err.render(color=False)
        assert out.startswith("error[E0583]: file not found for module `foo`")
        assert "1 | mod foo;" in out

    def test_circular_keeps_chain(self):
        err = CircularModuleError("cycle", chain=[Path("a.rs"), Path("a.rs")])
        assert err.chain == [Path("a.rs"), Path("a.rs")]
