"""
Whole-crate passes over the scope tree.
"""

from .flatten import ModuleMap, flatten_mods
from .tree_shaking import ReachabilityResult, collect_reachability, prune_unreachable

__all__ = [
    "ModuleMap",
    "flatten_mods",
    "ReachabilityResult",
    "collect_reachability",
    "prune_unreachable",
]
