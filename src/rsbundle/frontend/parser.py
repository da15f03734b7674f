"""
Parser

Thin wrapper around tree-sitter's Rust grammar. One source file becomes
one SyntaxUnit: the file's bytes plus the concrete syntax tree over them.

Rust Pattern: rustc_parse
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

import tree_sitter_rust
from tree_sitter import Language, Node, Parser as TreeSitterParser, Tree

from ..shared.errors import RustSyntaxError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_FILE_ENCODING

logger = logging.getLogger(__name__)

RUST_LANGUAGE = Language(tree_sitter_rust.language())

# (start_byte, end_byte, replacement)
Edit = Tuple[int, int, bytes]

_ATTRIBUTE_SIBLINGS = frozenset({"attribute_item", "line_comment", "block_comment"})


@dataclass
class SyntaxUnit:
    """Parsed representation of one source file."""
    path: Path
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def text(self) -> str:
        return self.source.decode(DEFAULT_FILE_ENCODING)

    def node_text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode(DEFAULT_FILE_ENCODING)

    def location_of(self, node: Node) -> SourceLocation:
        start_row, start_col = node.start_point
        end_row, end_col = node.end_point
        return SourceLocation(
            file=str(self.path),
            line=start_row + 1,
            column=start_col + 1,
            start=node.start_byte,
            end=node.end_byte,
            end_line=end_row + 1,
            end_column=end_col + 1,
        )

    def splice(self, edits: Iterable[Edit]) -> bytes:
        """Apply non-overlapping byte-range replacements to the source."""
        out: List[bytes] = []
        pos = 0
        for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1])):
            if start < pos:
                raise ValueError(f"overlapping edit at byte {start} in {self.path}")
            out.append(self.source[pos:start])
            out.append(replacement)
            pos = end
        out.append(self.source[pos:])
        return b"".join(out)


class Parser:
    """
    Parser (Rust naming: rustc_parse).

    Takes source code, returns a SyntaxUnit; any ERROR or MISSING node in
    the tree is reported as a RustSyntaxError at its location.
    """

    def __init__(self):
        self._parser = TreeSitterParser(RUST_LANGUAGE)

    def parse(self, source: Union[str, bytes], source_file: Union[str, Path] = "lib.rs") -> SyntaxUnit:
        data = source.encode(DEFAULT_FILE_ENCODING) if isinstance(source, str) else source
        if isinstance(source, bytes):
            _check_encoding(data, source_file)
        tree = self._parser.parse(data)
        unit = SyntaxUnit(path=Path(source_file), source=data, tree=tree)
        if tree.root_node.has_error:
            bad = _first_error_node(tree.root_node) or tree.root_node
            kind = "missing" if bad.is_missing else "unexpected"
            raise RustSyntaxError(
                f"{kind} `{bad.type if bad.is_missing else unit.node_text(bad)[:40]}` while parsing {source_file}",
                str(source_file),
                location=unit.location_of(bad),
                source_code=data.decode(DEFAULT_FILE_ENCODING, errors="replace"),
                label="syntax error",
            )
        logger.debug(f"Parsed {source_file}: {len(data)} bytes")
        return unit


def _check_encoding(data: bytes, source_file: Union[str, Path]) -> None:
    """Source files must be valid UTF-8, as rustc requires."""
    try:
        data.decode(DEFAULT_FILE_ENCODING)
    except UnicodeDecodeError as e:
        line = data.count(b"\n", 0, e.start) + 1
        column = e.start - (data.rfind(b"\n", 0, e.start) + 1) + 1
        location = SourceLocation(
            file=str(source_file),
            line=line,
            column=column,
            start=e.start,
            end=e.end,
            end_line=line,
            end_column=column + (e.end - e.start),
        )
        raise RustSyntaxError(
            f"{source_file}: stream did not contain valid UTF-8",
            str(source_file),
            location=location,
            source_code=data.decode(DEFAULT_FILE_ENCODING, errors="replace"),
            label="invalid UTF-8",
        ) from e


def _first_error_node(node: Node) -> Optional[Node]:
    """Depth-first search for the first ERROR or MISSING node."""
    for child in node.children:
        if child.is_error or child.is_missing:
            return child
        if child.has_error:
            found = _first_error_node(child)
            if found is not None:
                return found
    return None


def children_with_fields(node: Node) -> Iterator[Tuple[Node, Optional[str]]]:
    """Yield each named child together with the grammar field it fills."""
    cursor = node.walk()
    if not cursor.goto_first_child():
        return
    while True:
        child = cursor.node
        if child.is_named:
            yield child, cursor.field_name
        if not cursor.goto_next_sibling():
            return


def outer_attributes(node: Node) -> List[Node]:
    """
    Outer attributes of an item, in source order.

    tree-sitter attaches ``#[...]`` as preceding siblings, not children;
    comments between attributes and the item are skipped.
    """
    attributes: List[Node] = []
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type in _ATTRIBUTE_SIBLINGS:
        if sibling.type == "attribute_item":
            attributes.append(sibling)
        sibling = sibling.prev_named_sibling
    attributes.reverse()
    return attributes
