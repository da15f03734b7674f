"""
Module Loader

Folds a multi-file crate into one syntax tree: every out-of-line module
declaration (``mod foo;``) is replaced by ``mod foo { <contents of foo.rs> }``,
recursively.

Rust Pattern: rustc_expand::expand (out-of-line module expansion)

This class handles:
- Reading and parsing each module file (at most once per run)
- ``#[path]`` overrides and the ``foo.rs`` / ``foo/mod.rs`` conventions
- Cycle detection for files that include themselves through ``#[path]``
- Splicing the loaded text in place of the declaration's ``;``
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from tree_sitter import Node

from .path_resolver import PathResolver
from ...frontend.parser import Edit, Parser, SyntaxUnit, outer_attributes
from ...shared.errors import CircularModuleError, ModuleFileNotFoundError
from ...shared.module_path import ModulePath
from ...utils.config import CRATE_ROOT_SEGMENT, PATH_ATTRIBUTE
from ...utils.io_utils import read_source_bytes

logger = logging.getLogger(__name__)

# Nodes whose contents can never hold a module declaration
_OPAQUE_NODES = frozenset({
    "attribute_item", "inner_attribute_item", "token_tree",
    "line_comment", "block_comment", "string_literal", "raw_string_literal",
})

_STRING_ESCAPES = {
    "\\n": "\n", "\\r": "\r", "\\t": "\t", "\\0": "\0",
    "\\\\": "\\", '\\"': '"', "\\'": "'",
}


@dataclass(frozen=True)
class LoadContext:
    """
    Traversal context, passed down by value.

    Entering a module or a file derives a new context, so the caller's
    context is back in effect as soon as the recursive call returns or raises.
    """
    module_path: ModulePath
    current_file: Path
    file_chain: Tuple[Path, ...] = ()

    @classmethod
    def for_root(cls, root_file: Path) -> "LoadContext":
        return cls(ModulePath(CRATE_ROOT_SEGMENT), root_file, (root_file.resolve(),))

    def enter_module(self, name: str) -> "LoadContext":
        return replace(self, module_path=self.module_path.join(name))

    def enter_file(self, file_path: Path, **error_context) -> "LoadContext":
        resolved = file_path.resolve()
        if resolved in self.file_chain:
            chain = " -> ".join(str(p) for p in self.file_chain + (resolved,))
            raise CircularModuleError(
                f"module `{self.module_path}` includes its own file: {chain}",
                chain=self.file_chain + (resolved,),
                **error_context,
            )
        return replace(self, current_file=file_path, file_chain=self.file_chain + (resolved,))


def path_attribute(unit: SyntaxUnit, node: Node) -> Optional[str]:
    """
    Value of the ``#[path = "..."]`` attribute on a module declaration, if any.
    """
    for item in outer_attributes(node):
        attribute = next((c for c in item.named_children if c.type == "attribute"), None)
        if attribute is None or not attribute.named_children:
            continue
        name = attribute.named_children[0]
        if name.type != "identifier" or unit.node_text(name) != PATH_ATTRIBUTE:
            continue
        value = attribute.child_by_field_name("value")
        if value is not None and value.type in ("string_literal", "raw_string_literal"):
            return _string_value(unit, value)
    return None


def _string_value(unit: SyntaxUnit, node: Node) -> str:
    parts: List[str] = []
    for child in node.named_children:
        if child.type == "string_content":
            parts.append(unit.node_text(child))
        elif child.type == "escape_sequence":
            text = unit.node_text(child)
            parts.append(_STRING_ESCAPES.get(text, text))
    if parts:
        return "".join(parts)
    # no content children: strip the quotes (and raw-string hashes) directly
    text = unit.node_text(node)
    if text.startswith("r"):
        text = text[1:].strip("#")
    return text[1:-1]


class ModuleLoader:
    """
    Recursive loader/inliner for one crate.

    Rust Pattern: rustc_expand::expand::InvocationCollector (``mod`` items)
    """

    def __init__(
        self,
        root_file: Union[Path, str],
        parser: Optional[Parser] = None,
        path_resolver: Optional[PathResolver] = None,
    ):
        """
        Args:
            root_file: Crate root (``src/lib.rs`` or ``src/main.rs``)
            parser: Parser instance (auto-created if None)
            path_resolver: PathResolver instance (rooted at the root file's
                           directory if None)
        """
        self.root_file = Path(root_file)
        self.parser = parser if parser is not None else Parser()
        self.path_resolver = path_resolver or PathResolver(self.root_file.parent)
        self.loaded_files: Dict[Path, SyntaxUnit] = {}

    def load(self) -> SyntaxUnit:
        """
        Load the crate rooted at ``root_file`` as one inlined SyntaxUnit.

        Raises:
            ModuleFileNotFoundError: A module file is missing or unreadable
            RustSyntaxError: A file does not parse
            UnsupportedConstructError: A ``::``-rooted ``#[path]`` value
            CircularModuleError: A file includes itself
        """
        root_unit = self.load_unit(self.root_file, ModulePath(CRATE_ROOT_SEGMENT))
        folded = self._fold_unit(root_unit, LoadContext.for_root(self.root_file))
        if folded == root_unit.source:
            return root_unit
        logger.info(f"Bundled {len(self.loaded_files)} files into {self.root_file}")
        return self.parser.parse(folded, str(self.root_file))

    def load_unit(
        self,
        file_path: Path,
        module_path: ModulePath,
        declaration: Optional[Tuple[SyntaxUnit, Node]] = None,
    ) -> SyntaxUnit:
        key = file_path.resolve()
        if key in self.loaded_files:
            return self.loaded_files[key]

        logger.debug(f"trying to open: {file_path}")
        location = source_code = None
        if declaration is not None:
            location = declaration[0].location_of(declaration[1])
            source_code = declaration[0].text
        try:
            source = read_source_bytes(file_path)
        except OSError as e:
            raise ModuleFileNotFoundError(
                f"couldn't read `{file_path}` for module `{module_path}`: {e.strerror or e}",
                module_path=str(module_path),
                searched=[file_path],
                location=location,
                source_code=source_code,
            ) from e
        logger.debug(f"opened: {file_path}")

        unit = self.parser.parse(source, str(file_path))
        self.loaded_files[key] = unit
        return unit

    def _fold_unit(self, unit: SyntaxUnit, ctx: LoadContext) -> bytes:
        edits: List[Edit] = []
        self._fold_children(unit, unit.root, ctx, edits)
        return unit.splice(edits)

    def _fold_children(self, unit: SyntaxUnit, node: Node, ctx: LoadContext, edits: List[Edit]) -> None:
        for child in node.named_children:
            if child.type == "mod_item":
                self._fold_mod_item(unit, child, ctx, edits)
            elif child.type not in _OPAQUE_NODES:
                self._fold_children(unit, child, ctx, edits)

    def _fold_mod_item(self, unit: SyntaxUnit, node: Node, ctx: LoadContext, edits: List[Edit]) -> None:
        name = unit.node_text(node.child_by_field_name("name"))
        inner = ctx.enter_module(name)

        body = node.child_by_field_name("body")
        if body is not None:
            self._fold_children(unit, body, inner, edits)
            return

        location = unit.location_of(node)
        file_path = self.path_resolver.resolve(
            inner.module_path,
            ctx.current_file,
            path_attribute(unit, node),
            location=location,
            source_code=unit.text,
        )
        nested_ctx = inner.enter_file(file_path, location=location, source_code=unit.text)
        nested_unit = self.load_unit(file_path, inner.module_path, declaration=(unit, node))
        nested_text = self._fold_unit(nested_unit, nested_ctx)
        if nested_text and not nested_text.endswith(b"\n"):
            nested_text += b"\n"

        semicolon = next(c for c in reversed(node.children) if c.type == ";")
        edits.append((semicolon.start_byte, semicolon.end_byte, b" {\n" + nested_text + b"}"))
        logger.debug(f"inlined module {inner.module_path} from {file_path}")


def bundle_file(src: Union[Path, str], parser: Optional[Parser] = None) -> SyntaxUnit:
    """Load the crate rooted at ``src`` as one inlined syntax tree."""
    return ModuleLoader(src, parser=parser).load()


def parse_rs_file(src: Union[Path, str], parser: Optional[Parser] = None) -> SyntaxUnit:
    """Read and parse a single source file."""
    loader = ModuleLoader(src, parser=parser)
    return loader.load_unit(loader.root_file, ModulePath(CRATE_ROOT_SEGMENT))
