"""
Flatten Pass: lifts every Module out of the scope tree into a flat map
keyed by canonical module path.

Rust Pattern: rustc_resolve module graph (one entry per DefId of a module)

Modules nested anywhere (including inside function bodies and impl blocks)
become top-level keys; two bodies that resolve to the same path are merged.
"""

import logging
from typing import Dict, List

from ..analysis.scope_tree import (
    BlockScope,
    FileScope,
    GenericScope,
    ImportList,
    Module,
    ScopeItem,
    ScopeNode,
    TypeDeclaration,
)
from ..shared.module_path import ModulePath
from ..utils.config import CRATE_ROOT_SEGMENT

logger = logging.getLogger(__name__)

ModuleMap = Dict[ModulePath, ScopeNode]


def flatten_mods(tree: FileScope) -> ModuleMap:
    """
    Flatten a FileScope into ``{canonical path: merged ScopeNode}``.

    The root scope maps to ``crate``. No node in the result contains a
    Module item at any depth.
    """
    if not isinstance(tree, FileScope):
        raise TypeError(f"expected FileScope at the top of the scope tree, got {type(tree).__name__}")

    mods: ModuleMap = {}
    _lift(tree.node, ModulePath(CRATE_ROOT_SEGMENT), mods)
    logger.debug(f"[Flatten] {len(mods)} modules")
    return mods


def _lift(node: ScopeNode, path: ModulePath, mods: ModuleMap) -> None:
    if path in mods:
        logger.debug(f"[Flatten] merging another body into {path}")
    else:
        # reserve the key so parents precede their children in the map
        mods[path] = ScopeNode()
    stripped = _strip_modules(node, path, mods)
    mods[path] = mods[path].merge(stripped)


def _strip_modules(node: ScopeNode, path: ModulePath, mods: ModuleMap) -> ScopeNode:
    """Copy of ``node`` without Module items; each removed module is lifted under ``path``."""
    items: List[ScopeItem] = []
    for item in node.items:
        if isinstance(item, Module):
            _lift(item.node, path.join(item.name), mods)
        elif isinstance(item, GenericScope):
            items.append(GenericScope(item.owner, _strip_modules(item.node, path, mods)))
        elif isinstance(item, BlockScope):
            items.append(BlockScope(_strip_modules(item.node, path, mods)))
        elif isinstance(item, (ImportList, TypeDeclaration)):
            items.append(item)
        else:
            raise TypeError(f"unknown scope item: {type(item).__name__}")
    return ScopeNode(items, list(node.accesses), node.defines_macros)
