"""
Module Path Algebra

Normalized ``::``-joined module paths (``crate::a::b``) and the stack
operations used while walking nested modules.

Rust Pattern: rustc_resolve path segments

- ModulePath: immutable, hashable, usable as a dict key
- ModulePathBuf: mutable counterpart with push()/pop(); every push on scope
  entry is matched by a pop on scope exit
"""

import re
from typing import Iterable, Iterator, Optional, Tuple, Union

from .errors import UnsupportedConstructError
from ..utils.config import CRATE_ROOT_SEGMENT, MODULE_SEPARATOR

# identifiers, raw identifiers, macro metavariables ($crate) and the glob segment
_SEGMENT_RE = re.compile(r"^(?:\$?[^\W\d]\w*|r#[^\W\d]\w*|\*)$")

PathLike = Union["ModulePath", str]


def _split(path: PathLike) -> Tuple[str, ...]:
    """Normalize a path value into its segments."""
    if isinstance(path, ModulePath):
        return path._segments
    text = path.strip()
    if not text:
        return ()
    if text.startswith(MODULE_SEPARATOR):
        raise UnsupportedConstructError(f"fully qualified path `{text}` is not supported")
    segments = tuple(seg.strip() for seg in text.split(MODULE_SEPARATOR))
    for seg in segments:
        if not _SEGMENT_RE.match(seg):
            raise ValueError(f"invalid segment {seg!r} in module path {text!r}")
    return segments


class ModulePath:
    """
    Immutable module path.

    Equality and hashing use the normalized string form, so a ModulePath
    compares equal to (and hashes like) the equivalent ``str``.
    """

    __slots__ = ("_segments",)

    def __init__(self, path: PathLike = ""):
        self._segments: Tuple[str, ...] = _split(path)

    @classmethod
    def from_segments(cls, segments: Iterable[str]) -> "ModulePath":
        return cls(MODULE_SEPARATOR.join(segments))

    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments

    @property
    def first(self) -> Optional[str]:
        return self._segments[0] if self._segments else None

    @property
    def last(self) -> Optional[str]:
        return self._segments[-1] if self._segments else None

    def as_str(self) -> str:
        return MODULE_SEPARATOR.join(self._segments)

    def is_empty(self) -> bool:
        return not self._segments

    def is_crate_path(self) -> bool:
        return self.first == CRATE_ROOT_SEGMENT

    def starts_with(self, base: PathLike) -> bool:
        """Prefix test on whole segments (``crate::ab`` does not start with ``crate::a``)."""
        prefix = _split(base)
        return self._segments[:len(prefix)] == prefix

    def suffix(self) -> "ModulePath":
        """Drop exactly the first segment."""
        return ModulePath.from_segments(self._segments[1:])

    def parent(self) -> "ModulePath":
        """All but the last segment."""
        return ModulePath.from_segments(self._segments[:-1])

    def join(self, suffix: PathLike) -> "ModulePath":
        """Non-mutating push()."""
        buf = self.to_buf()
        buf.push(suffix)
        return buf.to_path()

    def to_buf(self) -> "ModulePathBuf":
        return ModulePathBuf(self)

    def to_path(self) -> "ModulePath":
        return ModulePath(self)

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ModulePath):
            return self._segments == other._segments
        if isinstance(other, str):
            return self.as_str() == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.as_str())

    def __str__(self) -> str:
        return self.as_str()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.as_str()!r})"


class ModulePathBuf(ModulePath):
    """Mutable module path used as a traversal stack."""

    __slots__ = ()
    __hash__ = None  # mutable; freeze with to_path() before using as a key

    def push(self, suffix: PathLike) -> None:
        """
        Append ``suffix``; a crate-rooted suffix replaces the whole path.

        Raises:
            UnsupportedConstructError: suffix has a leading ``::``
        """
        segments = _split(suffix)
        if segments and segments[0] == CRATE_ROOT_SEGMENT:
            self._segments = segments
        else:
            self._segments = self._segments + segments

    def pop(self) -> bool:
        """Remove the last segment; False (no-op) when at most one segment is left."""
        if len(self._segments) <= 1:
            return False
        self._segments = self._segments[:-1]
        return True
