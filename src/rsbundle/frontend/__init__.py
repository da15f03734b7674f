"""
Frontend: tree-sitter parsing of Rust source files.
"""

from .parser import Parser, SyntaxUnit, RUST_LANGUAGE, children_with_fields, outer_attributes

__all__ = ["Parser", "SyntaxUnit", "RUST_LANGUAGE", "children_with_fields", "outer_attributes"]
