"""
Bundle Driver

Rust Pattern: rustc_driver::driver

Phases, in order:
1. Load: inline every out-of-line module into one syntax tree
2. Scope tree: record declarations, imports and accesses per scope
3. Flatten: one scope node per canonical module path
4. Reachability: modules live from ``crate``
5. Prune (optional): drop dead modules from the output text
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..analysis.module_system import ModuleLoader
from ..analysis.scope_tree import FileScope, make_scope_tree
from ..frontend.parser import Parser, SyntaxUnit
from ..passes.flatten import ModuleMap, flatten_mods
from ..passes.tree_shaking import ReachabilityResult, collect_reachability, prune_unreachable
from ..shared.errors import BundleError

logger = logging.getLogger(__name__)


class BundleResult:
    """Bundling result"""
    def __init__(
        self,
        unit: Optional[SyntaxUnit] = None,
        scope_tree: Optional[FileScope] = None,
        modules: Optional[ModuleMap] = None,
        reachability: Optional[ReachabilityResult] = None,
        error: Optional[BundleError] = None,
    ):
        self.unit = unit
        self.scope_tree = scope_tree
        self.modules = modules
        self.reachability = reachability
        self.error = error

    @property
    def success(self) -> bool:
        return self.error is None and self.unit is not None

    def has_errors(self) -> bool:
        return self.error is not None

    @property
    def text(self) -> str:
        """Bundled source; empty when bundling failed."""
        return self.unit.text if self.unit is not None else ""


class BundleDriver:
    """
    Bundle driver (Rust naming: rustc_driver::driver).

    Runs the phases fail-fast: the first BundleError stops the run and is
    returned in the result; no partial output is produced.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser if parser is not None else Parser()

    def bundle(self, root_file: Union[Path, str], prune: bool = False) -> BundleResult:
        result = BundleResult()
        try:
            loader = ModuleLoader(root_file, parser=self.parser)
            unit = loader.load()
            logger.info(f"Loaded {len(loader.loaded_files)} file(s) from {root_file}")

            result.scope_tree = make_scope_tree(unit)
            result.modules = flatten_mods(result.scope_tree)
            logger.info(f"Found {len(result.modules)} module(s)")

            result.reachability = collect_reachability(result.modules)
            if prune:
                unit = prune_unreachable(unit, result.reachability, parser=self.parser)
            result.unit = unit
        except BundleError as e:
            logger.debug(f"Bundling {root_file} failed: {e}")
            result.error = e
            result.unit = None
        return result
