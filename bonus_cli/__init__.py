"""
Bonus Engine CLI Package

A Rich-based CLI wrapper for the bonus scoring and allocation engine with
progress bars, ranked tables and allocation summaries.
"""

from .main import app
from _version import __version__, get_full_version

__all__ = ["app", "__version__", "get_full_version"]
