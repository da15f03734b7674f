"""
Bundle driver: runs the phases end to end.
"""

from .driver import BundleDriver, BundleResult

__all__ = ["BundleDriver", "BundleResult"]
