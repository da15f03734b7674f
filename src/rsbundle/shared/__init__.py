"""
Shared components: module paths, source locations and errors.

Rust Pattern: Shared foundational types and utilities
"""

from .source_location import SourceLocation
from .errors import (
    Diagnostic, format_diagnostic,
    BundleError, ModuleFileNotFoundError, RustSyntaxError,
    UnsupportedConstructError, CircularModuleError,
)
from .module_path import ModulePath, ModulePathBuf

__all__ = [
    "SourceLocation",
    "Diagnostic",
    "format_diagnostic",
    "BundleError",
    "ModuleFileNotFoundError",
    "RustSyntaxError",
    "UnsupportedConstructError",
    "CircularModuleError",
    "ModulePath",
    "ModulePathBuf",
]
