"""
Module Path Resolution

Maps an out-of-line module declaration (``mod foo;``) to the file holding
its body. Follows rustc's rules:

- ``#[path = "x.rs"] mod foo;`` → ``<dir of current file>/x.rs`` (verbatim,
  no fallback)
- ``crate::a::foo`` → ``<src root>/a/foo.rs`` or ``<src root>/a/foo/mod.rs``

Rust Pattern: rustc_expand::module::mod_file_path

This class is stateless apart from the source root and can be shared/reused.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ...shared.errors import ModuleFileNotFoundError, UnsupportedConstructError
from ...shared.module_path import ModulePath
from ...shared.source_location import SourceLocation
from ...utils.config import (
    MOD_FILE_NAME,
    MODULE_SEPARATOR,
    RAW_IDENTIFIER_PREFIX,
    SOURCE_FILE_EXTENSION,
)

logger = logging.getLogger(__name__)


class PathResolver:
    """
    Resolves module declarations to source files.

    Rust Pattern: rustc_expand::module::mod_file_path
    """

    def __init__(self, src_root: Path):
        """
        Args:
            src_root: Directory of the crate root file (``src/``)
        """
        self.src_root = Path(src_root)

    def resolve(
        self,
        module_path: ModulePath,
        current_file: Path,
        path_override: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_code: Optional[str] = None,
    ) -> Path:
        """
        Resolve the file of the module at ``module_path``.

        Args:
            module_path: Canonical path of the module being declared
                         (e.g., ``crate::a::foo``)
            current_file: File containing the declaration
            path_override: Value of the declaration's ``#[path]`` attribute
            location: Declaration span (error reporting only)
            source_code: Text of ``current_file`` (error reporting only)

        Raises:
            ModuleFileNotFoundError: If no candidate file exists
            UnsupportedConstructError: If the override is a ``::`` path
        """
        if path_override is not None:
            if path_override.startswith(MODULE_SEPARATOR):
                raise UnsupportedConstructError(
                    f"fully qualified module path override `{path_override}` is not supported",
                    location=location,
                    source_code=source_code,
                )
            candidate = self.override_candidate(current_file, path_override)
            if candidate.is_file():
                logger.debug(f"PathResolver: {module_path} -> {candidate} (#[path])")
                return candidate
            raise ModuleFileNotFoundError(
                f"file not found for module `{module_path.last}`",
                module_path=str(module_path),
                searched=[candidate],
                location=location,
                source_code=source_code,
                help=f"the `#[path]` attribute points at `{candidate}`",
            )

        candidates = self.default_candidates(module_path)
        for candidate in candidates:
            if candidate.is_file():
                logger.debug(f"PathResolver: {module_path} -> {candidate}")
                return candidate

        raise ModuleFileNotFoundError(
            f"file not found for module `{module_path.last}`",
            module_path=str(module_path),
            searched=candidates,
            location=location,
            source_code=source_code,
            help=f"to create the module `{module_path.last}`, create file "
                 + " or ".join(f"`{c}`" for c in candidates),
        )

    def override_candidate(self, current_file: Path, path_override: str) -> Path:
        """``#[path]`` values are relative to the directory of the declaring file."""
        return Path(current_file).parent / path_override

    def default_candidates(self, module_path: ModulePath) -> List[Path]:
        """
        Conventional file locations, in lookup order.

        crate::a::foo → [src/a/foo.rs, src/a/foo/mod.rs]
        """
        if not module_path.is_crate_path() or len(module_path) < 2:
            raise ValueError(f"expected a crate-rooted module path, got `{module_path}`")

        path_obj = self.src_root
        for segment in module_path.suffix():
            if segment.startswith(RAW_IDENTIFIER_PREFIX):
                segment = segment[len(RAW_IDENTIFIER_PREFIX):]
            path_obj = path_obj / segment

        single_file = path_obj.parent / f"{path_obj.name}{SOURCE_FILE_EXTENSION}"
        dir_mod_file = path_obj / MOD_FILE_NAME
        return [single_file, dir_mod_file]
