"""
Analysis: module loading and scope trees.
"""

from .scope_tree import (
    BlockScope,
    FileScope,
    GenericScope,
    ImportList,
    Module,
    ScopeNode,
    ScopeTreeBuilder,
    TypeDeclaration,
    make_scope_tree,
)

__all__ = [
    "BlockScope",
    "FileScope",
    "GenericScope",
    "ImportList",
    "Module",
    "ScopeNode",
    "ScopeTreeBuilder",
    "TypeDeclaration",
    "make_scope_tree",
]
