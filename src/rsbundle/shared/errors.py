"""
Error Reporting

Exception taxonomy for the bundler and rustc-style rendering of the
failing location.

Rust Pattern: rustc_errors::Diagnostic
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .source_location import SourceLocation
from ..utils.config import COLOR_ENV_VAR


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Diagnostic dataclass
# ---------------------------------------------------------------------------

@dataclass
class Diagnostic:
    """
    One rendered error.

    Rust Pattern: rustc_errors::Diagnostic
    """
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


def format_diagnostic(
    diagnostic: Diagnostic,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0583]: file not found for module `foo`
         --> src/lib.rs:3:1
          |
        3 | mod foo;
          | ^^^^^^^^
          |
          = help: create `src/foo.rs` or `src/foo/mod.rs`
    """
    out: List[str] = []

    code_str = f"[{diagnostic.code}]" if diagnostic.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {diagnostic.message}", _BOLD, color=color)
    )

    loc = diagnostic.location
    if loc is None:
        _append_annotations(out, diagnostic, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    src_lines = source.split("\n") if source is not None else []
    gw = max(len(str(loc.line)), 1)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    if 0 < loc.line <= len(src_lines):
        code_line = src_lines[loc.line - 1]
        col_start = max(loc.column, 1) - 1
        if loc.end_line == loc.line and loc.end_column > loc.column:
            span_len = loc.end_column - loc.column
        else:
            span_len = len(code_line.rstrip()) - col_start
        carets = " " * col_start + "^" * max(1, span_len)
        label = f" {diagnostic.label}" if diagnostic.label else ""
        out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
        out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)
        out.append(
            _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
            + _style(carets + label, _BOLD, _RED, color=color)
        )

    _append_annotations(out, diagnostic, gw, color)
    return "\n".join(out)


def _append_annotations(out: List[str], diagnostic: Diagnostic, gw: int, color: bool) -> None:
    if not (diagnostic.help or diagnostic.note):
        return
    pad = " " * (gw + 1)
    out.append(_style(pad + "|", _BOLD, _BLUE, color=color))
    if diagnostic.help:
        out.append(_style(f"{pad}= ", _BOLD, _CYAN, color=color) + _style("help: ", _BOLD, color=color) + diagnostic.help)
    if diagnostic.note:
        out.append(_style(f"{pad}= ", _BOLD, _CYAN, color=color) + _style("note: ", _BOLD, color=color) + diagnostic.note)


# ============================================================================
# Exception Classes
# ============================================================================

class BundleError(Exception):
    """Base exception for every failure that aborts a bundling run."""

    error_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.location = location
        self.source_code = source_code
        self.help_text = help
        self.note_text = note
        self.label_text = label

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
        )

    def render(self, color: Optional[bool] = None) -> str:
        """Rustc-style rendering including the offending source line when known."""
        source_files: Dict[str, str] = {}
        if self.source_code is not None and self.location is not None:
            source_files[self.location.file] = self.source_code
        use = color if color is not None else use_color()
        return format_diagnostic(self.to_diagnostic(), source_files, color=use)

    def __str__(self) -> str:
        if self.location:
            return f"{self.message} ({self.location})"
        return self.message


class ModuleFileNotFoundError(BundleError):
    """A module's file is missing or cannot be read."""

    error_code = "E0583"

    def __init__(
        self,
        message: str,
        module_path: Optional[str] = None,
        searched: Sequence[Path] = (),
        **kwargs,
    ):
        self.module_path = module_path
        self.searched = list(searched)
        if self.searched and "note" not in kwargs:
            kwargs["note"] = "searched: " + ", ".join(str(p) for p in self.searched)
        super().__init__(message, **kwargs)


class RustSyntaxError(BundleError):
    """A file's contents do not parse as Rust source."""

    error_code = "E0001"

    def __init__(self, message: str, source_file: str, **kwargs):
        self.source_file = source_file
        super().__init__(message, **kwargs)


class UnsupportedConstructError(BundleError):
    """Fully qualified (leading ``::``) paths, which the bundler cannot resolve."""

    error_code = "E0433"


class CircularModuleError(BundleError):
    """A module file includes itself through a chain of ``#[path]`` attributes."""

    error_code = "E0584"

    def __init__(self, message: str, chain: Sequence[Path] = (), **kwargs):
        self.chain = list(chain)
        super().__init__(message, **kwargs)
