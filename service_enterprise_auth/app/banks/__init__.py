"""
Bank directory lookups backed by a hot-reloading JSON file.
"""

from .directory_cache import DirectoryCache, DirectoryCacheEntry, load_string_mapping

__all__ = [
    "DirectoryCache",
    "DirectoryCacheEntry",
    "load_string_mapping",
]
