"""
rsbundle: folds a multi-file Rust crate into one source file.
"""

__version__ = "0.1.0"

from .analysis.module_system import bundle_file
from .compiler.driver import BundleDriver, BundleResult
from .shared.errors import BundleError

__all__ = ["__version__", "bundle_file", "BundleDriver", "BundleResult", "BundleError"]
