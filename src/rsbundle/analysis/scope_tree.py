"""
Scope Tree

Hierarchical record of what each lexical scope of the inlined crate declares,
imports and references. Built in one top-down walk over the syntax tree.

Rust Pattern: rustc_resolve::build_reduced_graph (per-module name tables)

Scope kinds:
- FileScope: the crate root
- Module: ``mod name { ... }``
- GenericScope: generic parameter list of a function (owner = fn name), a
  trait (owner = trait name) or an ``impl`` block (owner = None); holds one
  TypeDeclaration per type parameter, plus the signature and body
- BlockScope: ``{ ... }`` block
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple, Union

from tree_sitter import Node

from ..frontend.parser import SyntaxUnit, children_with_fields
from ..shared.errors import UnsupportedConstructError
from ..shared.module_path import ModulePath
from ..utils.config import (
    CRATE_ROOT_SEGMENT,
    GLOB_SEGMENT,
    MACRO_CRATE_SEGMENT,
    MODULE_SEPARATOR,
    SELF_SEGMENT,
    SUPER_SEGMENT,
)

logger = logging.getLogger(__name__)

# Never hold a reference (or hold text only)
_SKIPPED_NODES = frozenset({
    "attribute_item", "inner_attribute_item", "line_comment", "block_comment",
    "string_literal", "raw_string_literal", "char_literal",
    "lifetime", "label", "token_tree_pattern", "visibility_modifier",
    "extern_crate_declaration",
})

# Nodes that are a whole path reference by themselves
_PATH_NODES = frozenset({
    "identifier", "type_identifier", "scoped_identifier", "scoped_type_identifier",
})

# Segments that may start or continue a path
_SEGMENT_NODES = frozenset({"identifier", "type_identifier", "self", "super", "crate", "metavariable"})

_KEYWORD_SEGMENTS = frozenset({SELF_SEGMENT, SUPER_SEGMENT, CRATE_ROOT_SEGMENT})

# Parents whose ``name`` field is a reference rather than a binding
_REFERENCE_NAME_PARENTS = frozenset({"struct_expression"})

_TYPE_DECLARATION_NODES = frozenset({"struct_item", "enum_item", "union_item", "trait_item", "type_item"})


# ============================================================================
# Scope tree items
# ============================================================================

@dataclass
class ScopeNode:
    """
    One lexical scope: its child items and the paths referenced directly in it.

    ``defines_macros`` is set when a ``macro_rules!`` definition sits
    directly in this scope.
    """
    items: List["ScopeItem"] = field(default_factory=list)
    accesses: List[ModulePath] = field(default_factory=list)
    defines_macros: bool = False
    _seen: Set[ModulePath] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self):
        unique: List[ModulePath] = []
        for path in self.accesses:
            if path not in self._seen:
                self._seen.add(path)
                unique.append(path)
        self.accesses = unique

    def add_access(self, path: ModulePath) -> None:
        if path not in self._seen:
            self._seen.add(path)
            self.accesses.append(path)

    def merge(self, other: "ScopeNode") -> "ScopeNode":
        """Concatenate items; union accesses keeping first-seen order."""
        return ScopeNode(
            self.items + other.items,
            self.accesses + other.accesses,
            self.defines_macros or other.defines_macros,
        )


@dataclass
class Module:
    name: str
    node: ScopeNode


@dataclass
class ImportList:
    """One ``use`` declaration, flattened to (local name, target path) pairs."""
    imports: List[Tuple[str, ModulePath]]


@dataclass
class GenericScope:
    owner: Optional[str]
    node: ScopeNode


@dataclass
class TypeDeclaration:
    name: str


@dataclass
class BlockScope:
    node: ScopeNode


@dataclass
class FileScope:
    node: ScopeNode


ScopeItem = Union[Module, ImportList, GenericScope, TypeDeclaration, BlockScope]


def nested_scopes(node: ScopeNode) -> Iterator[Tuple[Union[GenericScope, BlockScope], ScopeNode]]:
    """Anonymous (generic/block) scopes directly inside ``node``."""
    for item in node.items:
        if isinstance(item, (GenericScope, BlockScope)):
            yield item, item.node
        elif isinstance(item, (Module, ImportList, TypeDeclaration)):
            continue
        else:
            raise TypeError(f"unknown scope item: {type(item).__name__}")


# ============================================================================
# Builder
# ============================================================================

class ScopeTreeBuilder:
    """
    Walks an inlined SyntaxUnit once and returns its FileScope.

    Exactly one accumulator is current at a time; entering a module, generic
    list or block swaps in a fresh one and attaches it to the restored parent
    on exit, so each reference lands in the innermost enclosing scope only.
    """

    def __init__(self, unit: SyntaxUnit):
        self.unit = unit
        self._current = ScopeNode()

    def build(self) -> FileScope:
        root = ScopeNode()
        with self._scope(root):
            self._visit_children(self.unit.root)
        logger.debug(f"Built scope tree for {self.unit.path}: {len(root.items)} top-level items")
        return FileScope(root)

    @contextmanager
    def _scope(self, node: ScopeNode):
        parent = self._current
        self._current = node
        try:
            yield node
        finally:
            self._current = parent

    # -- generic traversal -------------------------------------------------

    def _visit(self, node: Node) -> None:
        if node.type in _SKIPPED_NODES:
            return
        method = getattr(self, f"_visit_{node.type}", None)
        if method is not None:
            method(node)
        else:
            self._visit_children(node)

    def _visit_children(self, node: Node) -> None:
        for child, field_name in children_with_fields(node):
            if field_name == "pattern":
                self._visit_pattern(child)
            elif field_name == "name" and node.type not in _REFERENCE_NAME_PARENTS:
                continue
            else:
                self._visit(child)

    def _visit_pattern(self, node: Node) -> None:
        """Patterns bind bare identifiers; paths and types inside them are still references."""
        if node.type == "identifier" or node.type in _SKIPPED_NODES:
            return
        if node.type in _PATH_NODES or node.type == "macro_invocation":
            self._visit(node)
            return
        for child, field_name in children_with_fields(node):
            if field_name in ("type", "condition", "value"):
                self._visit(child)
            else:
                self._visit_pattern(child)

    def _visit_closure_parameters(self, node: Node) -> None:
        for child in node.named_children:
            self._visit_pattern(child)

    # -- references --------------------------------------------------------

    def _visit_identifier(self, node: Node) -> None:
        self._record([self.unit.node_text(node)])

    _visit_type_identifier = _visit_identifier

    def _visit_scoped_identifier(self, node: Node) -> None:
        segments = self._path_segments(node)
        if segments is not None:
            self._record(segments)

    _visit_scoped_type_identifier = _visit_scoped_identifier

    def _visit_macro_invocation(self, node: Node) -> None:
        for child, field_name in children_with_fields(node):
            if field_name == "macro":
                self._visit(child)
            elif child.type == "token_tree":
                self._scan_token_tree(child)

    def _visit_macro_definition(self, node: Node) -> None:
        self._current.defines_macros = True
        for rule in node.named_children:
            if rule.type != "macro_rule":
                continue
            right = rule.child_by_field_name("right")
            if right is not None:
                self._scan_token_tree(right)

    def _path_segments(self, node: Node) -> Optional[List[str]]:
        """
        Segments of a path node, or None for qualified-self paths.

        Type arguments met along the way (``A::<T>::f``) are visited as
        references of the current scope; the path itself drops them.
        """
        if node.type in _SEGMENT_NODES:
            return [self.unit.node_text(node)]
        if node.type in ("scoped_identifier", "scoped_type_identifier"):
            path = node.child_by_field_name("path")
            name = node.child_by_field_name("name")
            if path is None:
                self._reject_leading_separator(node)
                prefix: Optional[List[str]] = []
            else:
                prefix = self._path_segments(path)
            if prefix is None or name is None:
                return None
            return prefix + [self.unit.node_text(name)]
        if node.type in ("generic_type", "generic_type_with_turbofish"):
            arguments = node.child_by_field_name("type_arguments")
            if arguments is not None:
                self._visit(arguments)
            inner = node.child_by_field_name("type")
            return self._path_segments(inner) if inner is not None else None
        # <T as Trait>::f and friends: only the inner types are references
        self._visit_children(node)
        return None

    def _scan_token_tree(self, node: Node) -> None:
        """Record ``a::b::c`` runs found in unparsed macro input."""
        run: List[str] = []
        prev_end = node.start_byte

        def flush():
            if run and not (len(run) == 1 and run[0] in _KEYWORD_SEGMENTS):
                if not run[0].startswith("$") or (run[0] == MACRO_CRATE_SEGMENT and len(run) > 1):
                    self._record(list(run))
            run.clear()

        for child in node.named_children:
            if child.type == "token_tree":
                flush()
                self._scan_token_tree(child)
            elif child.type in _SEGMENT_NODES:
                gap = self.unit.source[prev_end:child.start_byte].strip()
                if run and gap != MODULE_SEPARATOR.encode():
                    flush()
                run.append(self.unit.node_text(child))
            else:
                flush()
            prev_end = child.end_byte
        flush()

    def _record(self, segments: List[str]) -> None:
        self._current.add_access(ModulePath.from_segments(segments))

    def _reject_leading_separator(self, node: Node) -> None:
        if node.children and node.children[0].type == MODULE_SEPARATOR:
            raise UnsupportedConstructError(
                f"fully qualified path `{self.unit.node_text(node)}` is not supported",
                location=self.unit.location_of(node),
                source_code=self.unit.text,
                label="leading `::`",
            )

    # -- scopes ------------------------------------------------------------

    def _visit_mod_item(self, node: Node) -> None:
        name = self.unit.node_text(node.child_by_field_name("name"))
        inner = ScopeNode()
        body = node.child_by_field_name("body")
        if body is not None:
            with self._scope(inner):
                self._visit_children(body)
        self._current.items.append(Module(name, inner))

    def _visit_function_item(self, node: Node) -> None:
        name = self.unit.node_text(node.child_by_field_name("name"))
        self._visit_generic_owner(node, name)

    _visit_function_signature_item = _visit_function_item

    def _visit_impl_item(self, node: Node) -> None:
        self._visit_generic_owner(node, None)

    def _visit_generic_owner(self, node: Node, owner: Optional[str]) -> None:
        inner = ScopeNode()
        with self._scope(inner):
            for child, field_name in children_with_fields(node):
                if field_name == "name":
                    continue
                if field_name == "type_parameters":
                    self._declare_type_parameters(child)
                elif field_name == "body" and child.type == "declaration_list":
                    self._visit_children(child)
                else:
                    self._visit(child)
        self._current.items.append(GenericScope(owner, inner))

    def _visit_block(self, node: Node) -> None:
        inner = ScopeNode()
        with self._scope(inner):
            self._visit_children(node)
        self._current.items.append(BlockScope(inner))

    def _declare_type_parameters(self, node: Node) -> None:
        for child in node.named_children:
            self._declare_type_parameter(child)

    def _declare_type_parameter(self, node: Node) -> None:
        if node.type == "type_identifier":
            self._current.items.append(TypeDeclaration(self.unit.node_text(node)))
            return
        if node.type in ("lifetime", "lifetime_parameter", "attribute_item", "metavariable"):
            return
        # type_parameter (name/bounds/default_type); older grammars use
        # constrained_type_parameter (left/bounds) and optional_type_parameter
        for child, field_name in children_with_fields(node):
            if field_name in ("name", "left"):
                if node.type != "const_parameter":
                    self._declare_type_parameter(child)
            else:
                self._visit(child)

    # -- declarations ------------------------------------------------------

    def _visit_type_declaration(self, node: Node) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._current.items.append(TypeDeclaration(self.unit.node_text(name)))
        self._visit_children(node)

    _visit_struct_item = _visit_type_declaration
    _visit_enum_item = _visit_type_declaration
    _visit_union_item = _visit_type_declaration
    _visit_type_item = _visit_type_declaration

    def _visit_trait_item(self, node: Node) -> None:
        """
        A trait declares its name here; its generics, supertraits and
        method signatures live in a scope owned by the trait, so method
        names never count as declarations of the enclosing module.
        """
        name = self.unit.node_text(node.child_by_field_name("name"))
        self._current.items.append(TypeDeclaration(name))
        self._visit_generic_owner(node, name)

    # -- imports -----------------------------------------------------------

    def _visit_use_declaration(self, node: Node) -> None:
        argument = node.child_by_field_name("argument")
        if argument is None:
            return
        imports = self._flatten_use_tree(argument, ModulePath())
        self._current.items.append(ImportList(imports))

    def _flatten_use_tree(self, node: Node, prefix: ModulePath) -> List[Tuple[str, ModulePath]]:
        """
        Expand one use tree into (local name, target) pairs.

        use a::{b, c::d as e, self, f::*}
          → [("b", a::b), ("e", a::c::d), ("a", a), ("*", a::f::*)]

        A glob keeps its prefix in the target (``a::f::*``, bare ``*`` only
        for ``use *``) rather than a bare ``("*", "*")`` pair, so the
        reachability walk can mark the glob's source module live.
        """
        kind = node.type
        if kind == "use_list":
            pairs: List[Tuple[str, ModulePath]] = []
            for child in node.named_children:
                pairs.extend(self._flatten_use_tree(child, prefix))
            return pairs

        if kind == "scoped_use_list":
            path = node.child_by_field_name("path")
            if path is None:
                self._reject_leading_separator(node)
            base = prefix if path is None else prefix.join(self._use_path(path))
            listing = node.child_by_field_name("list")
            return self._flatten_use_tree(listing, base) if listing is not None else []

        if kind == "use_wildcard":
            path = next((c for c in node.named_children), None)
            if path is None:
                self._reject_leading_separator(node)
            base = prefix if path is None else prefix.join(self._use_path(path))
            target = base.join(GLOB_SEGMENT) if not base.is_empty() else ModulePath(GLOB_SEGMENT)
            return [(GLOB_SEGMENT, target)]

        if kind == "use_as_clause":
            path = node.child_by_field_name("path")
            alias = node.child_by_field_name("alias")
            target = self._import_target(prefix.join(self._use_path(path)))
            return [(self.unit.node_text(alias), target)]

        # identifier / scoped_identifier / self / super / crate
        target = self._import_target(prefix.join(self._use_path(node)))
        return [(target.last, target)]

    def _use_path(self, node: Node) -> ModulePath:
        segments = self._path_segments(node)
        if segments is None:
            raise UnsupportedConstructError(
                f"unsupported import path `{self.unit.node_text(node)}`",
                location=self.unit.location_of(node),
                source_code=self.unit.text,
            )
        return ModulePath.from_segments(segments)

    @staticmethod
    def _import_target(path: ModulePath) -> ModulePath:
        """``a::b::self`` imports ``a::b`` itself."""
        if path.last == SELF_SEGMENT and len(path) > 1:
            return path.parent()
        return path


def make_scope_tree(unit: SyntaxUnit) -> FileScope:
    """Build the scope tree of an inlined crate."""
    return ScopeTreeBuilder(unit).build()
