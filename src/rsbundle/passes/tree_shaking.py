"""
Tree Shaking Pass: removes modules unreachable from the crate root.

Walks the flat module map breadth-first starting at ``crate``. Every access
recorded in a live module (and in its anonymous generic/block scopes) is
rewritten through the scope's imports, canonicalized, and mapped to the
module that owns it; that module and its ancestors become live. Import
targets of live scopes are edges as well. Modules that define
``macro_rules!`` macros start live next to ``crate``: macro use is textual,
so paths inside a macro body (``$crate::util::f``) must stay resolvable.

Rust Pattern: rustc_passes::dead (MarkSymbolVisitor worklist)

Live declarations (types and module-level functions named by some access)
are tracked too; the output is pruned at module granularity only.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, List, Optional, Set

from tree_sitter import Node

from .flatten import ModuleMap
from ..analysis.scope_tree import (
    BlockScope,
    GenericScope,
    ImportList,
    Module,
    ScopeNode,
    TypeDeclaration,
    nested_scopes,
)
from ..frontend.parser import Edit, Parser, SyntaxUnit
from ..shared.module_path import ModulePath, ModulePathBuf, PathLike
from ..utils.config import (
    CRATE_ROOT_SEGMENT,
    GLOB_SEGMENT,
    MACRO_CRATE_SEGMENT,
    SELF_SEGMENT,
    SUPER_SEGMENT,
)

logger = logging.getLogger(__name__)

Aliases = Dict[str, ModulePath]

_CRATE = ModulePath(CRATE_ROOT_SEGMENT)

# Nodes whose contents can never hold a module item
_OPAQUE_NODES = frozenset({
    "attribute_item", "inner_attribute_item", "token_tree", "macro_definition",
    "line_comment", "block_comment", "string_literal", "raw_string_literal",
})


@dataclass
class ReachabilityResult:
    """Live module paths and live declaration paths (``crate::m::Name``)."""
    modules: Set[ModulePath] = field(default_factory=set)
    declarations: Set[ModulePath] = field(default_factory=set)

    def is_live(self, module: PathLike) -> bool:
        return ModulePath(module) in self.modules

    def is_declaration_live(self, declaration: PathLike) -> bool:
        return ModulePath(declaration) in self.declarations


def _declared_names(node: ScopeNode) -> Set[str]:
    """Names declared directly in a scope: types and functions."""
    names: Set[str] = set()
    for item in node.items:
        if isinstance(item, TypeDeclaration):
            names.add(item.name)
        elif isinstance(item, GenericScope):
            if item.owner is not None:
                names.add(item.owner)
        elif isinstance(item, (Module, ImportList, BlockScope)):
            continue
        else:
            raise TypeError(f"unknown scope item: {type(item).__name__}")
    return names


def _import_lists(node: ScopeNode) -> List[ImportList]:
    return [item for item in node.items if isinstance(item, ImportList)]


class _ReachabilityAnalyzer:
    """Breadth-first marking over a flat module map."""

    def __init__(self, mods: ModuleMap):
        if _CRATE not in mods:
            raise ValueError("module map has no `crate` root")
        self.mods = mods
        self.declared: Dict[ModulePath, Set[str]] = {
            path: _declared_names(node) for path, node in mods.items()
        }
        self.result = ReachabilityResult()
        self.queue: Deque[ModulePath] = deque()

    def run(self) -> ReachabilityResult:
        self._mark_live(_CRATE)
        # macro_rules! use is textual; its definitions and their paths are always kept
        for path, node in self.mods.items():
            if node.defines_macros and path not in self.result.modules:
                logger.debug(f"[TreeShaking] {path} kept for its macro definitions")
                self._mark_live(path)
        self._drain()

        # A dead module may still hold an impl for a live type or trait.
        changed = True
        while changed:
            changed = False
            for path, node in self.mods.items():
                if path in self.result.modules:
                    continue
                if self._anchors_live_impl(path, node):
                    logger.debug(f"[TreeShaking] {path} kept for an impl of a live item")
                    self._mark_live(path)
                    self._drain()
                    changed = True
        return self.result

    def _drain(self) -> None:
        while self.queue:
            module = self.queue.popleft()
            self._visit_scope(module, self.mods[module], {}, frozenset())

    def _mark_live(self, module: ModulePath) -> None:
        """Mark ``module`` and every ancestor live."""
        buf = module.to_buf()
        pending: List[ModulePath] = []
        while True:
            path = buf.to_path()
            if path in self.result.modules:
                break
            pending.append(path)
            if not buf.pop():
                break
        for path in reversed(pending):
            self.result.modules.add(path)
            self.queue.append(path)
            logger.debug(f"[TreeShaking] reached {path}")

    def _visit_scope(self, module: ModulePath, node: ScopeNode, parent_aliases: Aliases, shadowed: FrozenSet[str]) -> None:
        aliases = dict(parent_aliases)
        aliases.update(self._alias_map(node))

        for import_list in _import_lists(node):
            for local_name, target in import_list.imports:
                if local_name == GLOB_SEGMENT:
                    # conservative: the glob's source module is live
                    target = target.parent()
                    if target.is_empty():
                        continue
                self._follow(module, target, {}, frozenset())

        for access in node.accesses:
            self._follow(module, access, aliases, shadowed)

        for _item, inner in nested_scopes(node):
            self._visit_scope(module, inner, aliases, shadowed | _declared_names(inner))

    def _alias_map(self, node: ScopeNode) -> Aliases:
        aliases: Aliases = {}
        for import_list in _import_lists(node):
            for local_name, target in import_list.imports:
                if local_name in (GLOB_SEGMENT, "_"):
                    continue
                aliases[local_name] = target
        return aliases

    def _follow(self, module: ModulePath, access: ModulePath, aliases: Aliases, shadowed: FrozenSet[str]) -> None:
        resolved = self._resolve(module, access, aliases, shadowed)
        if resolved is None:
            logger.debug(f"[TreeShaking] {module}: `{access}` does not name a crate item")
            return
        owner = self._owning_module(resolved)
        rest = resolved.segments[len(owner):]
        if rest and rest[0] in self.declared[owner]:
            self.result.declarations.add(owner.join(rest[0]))
        if owner not in self.result.modules:
            self._mark_live(owner)

    def _resolve(self, module: ModulePath, access: ModulePath, aliases: Aliases, shadowed: FrozenSet[str]) -> Optional[ModulePath]:
        first = access.first
        if first is None or first in shadowed:
            return None
        target = aliases.get(first)
        if target is not None:
            access = target.join(access.suffix())
        return self.canonicalize(access, module)

    def canonicalize(self, path: ModulePath, module: ModulePath) -> Optional[ModulePath]:
        """
        Crate-rooted form of ``path`` as written inside ``module``.

        crate::x / $crate::x → crate::x
        self::x              → <module>::x
        super::x             → <parent of module>::x
        x::y                 → <module>::x::y if ``x`` is declared in module,
                               else crate::x::y if declared at the root
        """
        first = path.first
        if first in (CRATE_ROOT_SEGMENT, MACRO_CRATE_SEGMENT):
            return _CRATE.join(path.suffix())
        if first == SELF_SEGMENT:
            return module.join(path.suffix())
        if first == SUPER_SEGMENT:
            buf = module.to_buf()
            segments = list(path)
            while segments and segments[0] == SUPER_SEGMENT:
                if not buf.pop():
                    logger.warning(f"`{path}` in {module} goes above the crate root")
                    return None
                segments.pop(0)
            buf.push(ModulePath.from_segments(segments))
            return buf.to_path()
        for base in (module, _CRATE):
            if self._declares(base, first):
                return base.join(path)
        return None

    def _declares(self, module: ModulePath, name: str) -> bool:
        return module.join(name) in self.mods or name in self.declared[module]

    def _owning_module(self, path: ModulePath) -> ModulePath:
        """Longest prefix of ``path`` that is a module."""
        buf: ModulePathBuf = path.to_buf()
        while buf.to_path() not in self.mods:
            if not buf.pop():
                break
        return buf.to_path()

    def _anchors_live_impl(self, module: ModulePath, node: ScopeNode) -> bool:
        aliases = self._alias_map(node)
        for item in node.items:
            if not isinstance(item, GenericScope) or item.owner is not None:
                continue
            shadowed = frozenset(_declared_names(item.node))
            for access in item.node.accesses:
                resolved = self._resolve(module, access, aliases, shadowed)
                if resolved is not None and self._owning_module(resolved) in self.result.modules:
                    return True
        return False


def collect_reachability(mods: ModuleMap) -> ReachabilityResult:
    """Modules (and declarations) reachable from ``crate``."""
    result = _ReachabilityAnalyzer(mods).run()
    logger.info(
        f"[TreeShaking] {len(result.modules)}/{len(mods)} modules live, "
        f"{len(result.declarations)} declarations named"
    )
    return result


# ============================================================================
# Output pruning
# ============================================================================

def prune_unreachable(unit: SyntaxUnit, result: ReachabilityResult, parser: Optional[Parser] = None) -> SyntaxUnit:
    """
    Remove dead ``mod`` items (with their attributes and doc comments).

    Liveness alone decides; modules defining ``macro_rules!`` macros are
    already live in ``result``.
    """
    edits: List[Edit] = []
    _collect_dead_modules(unit, unit.root, ModulePathBuf(CRATE_ROOT_SEGMENT), result, edits)
    if not edits:
        return unit
    logger.info(f"[TreeShaking] removed {len(edits)} dead module(s) from {unit.path}")
    parser = parser if parser is not None else Parser()
    return parser.parse(unit.splice(edits), str(unit.path))


def _collect_dead_modules(unit: SyntaxUnit, node: Node, path: ModulePathBuf, result: ReachabilityResult, edits: List[Edit]) -> None:
    for child in node.named_children:
        if child.type != "mod_item":
            if child.type not in _OPAQUE_NODES:
                _collect_dead_modules(unit, child, path, result, edits)
            continue

        path.push(unit.node_text(child.child_by_field_name("name")))
        try:
            if not result.is_live(path.to_path()):
                logger.debug(f"[TreeShaking] dropping {path}")
                edits.append((_removal_start(unit, child), child.end_byte, b""))
                continue
            body = child.child_by_field_name("body")
            if body is not None:
                _collect_dead_modules(unit, body, path, result, edits)
        finally:
            path.pop()


def _removal_start(unit: SyntaxUnit, node: Node) -> int:
    """Start of the item including its outer attributes and doc comments."""
    start = node.start_byte
    sibling = node.prev_named_sibling
    while sibling is not None:
        if sibling.type == "attribute_item":
            start = sibling.start_byte
        elif sibling.type in ("line_comment", "block_comment") and unit.node_text(sibling).startswith(("///", "/**")):
            start = sibling.start_byte
        else:
            break
        sibling = sibling.prev_named_sibling
    return start
