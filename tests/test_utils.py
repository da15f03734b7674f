"""
Test utilities for the rsbundle test suite.

Fixture crates are written into pytest's ``tmp_path``; scope-tree helpers
turn nested items into plain strings for readable assertions.
"""

import re
import sys
import textwrap
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from rsbundle.analysis.scope_tree import (
    BlockScope,
    FileScope,
    GenericScope,
    ImportList,
    Module,
    ScopeNode,
    TypeDeclaration,
    make_scope_tree,
)
from rsbundle.frontend.parser import Parser
from rsbundle.passes.flatten import ModuleMap, flatten_mods

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def write_crate(root: Path, files: Dict[str, str]) -> Path:
    """
    Write ``{relative path: source}`` under ``root`` and return ``root``.

    Sources are dedented, so tests can use indented triple-quoted strings.
    """
    for relative, source in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
    return root


def scope_tree_of(source: str, parser: Parser = None) -> FileScope:
    parser = parser if parser is not None else Parser()
    return make_scope_tree(parser.parse(textwrap.dedent(source)))


def module_map_of(source: str, parser: Parser = None) -> ModuleMap:
    return flatten_mods(scope_tree_of(source, parser))


def accesses(node: ScopeNode) -> List[str]:
    return [str(path) for path in node.accesses]


def imports(node: ScopeNode) -> List[Tuple[str, str]]:
    return [
        (local, str(target))
        for item in node.items if isinstance(item, ImportList)
        for local, target in item.imports
    ]


def type_names(node: ScopeNode) -> List[str]:
    return [item.name for item in node.items if isinstance(item, TypeDeclaration)]


def child(node: ScopeNode, kind: type, index: int = 0):
    """The ``index``-th direct item of type ``kind``."""
    found = [item for item in node.items if isinstance(item, kind)]
    return found[index]


def walk_scopes(node: ScopeNode) -> Iterator[ScopeNode]:
    """``node`` and every scope nested in it."""
    yield node
    for item in node.items:
        if isinstance(item, (Module, GenericScope, BlockScope)):
            yield from walk_scopes(item.node)
