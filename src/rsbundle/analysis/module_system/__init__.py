"""
Module system: locating and inlining out-of-line module files.

Rust Pattern: rustc_expand::module
"""

from .path_resolver import PathResolver
from .module_loader import LoadContext, ModuleLoader, bundle_file, parse_rs_file, path_attribute

__all__ = [
    "PathResolver",
    "LoadContext",
    "ModuleLoader",
    "bundle_file",
    "parse_rs_file",
    "path_attribute",
]
