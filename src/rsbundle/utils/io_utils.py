"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_bytes()/write_text() consistently (no raw open/read)
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING


def read_source_bytes(path: Union[Path, str]) -> bytes:
    """Read a source file as raw bytes (tree-sitter parses bytes)."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_bytes()


def write_output_file(path: Union[Path, str], text: str) -> None:
    """Write bundled output with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    p.write_text(text, encoding=DEFAULT_FILE_ENCODING)
