"""Fetch cache APIs."""

from .keys import cache_key_digest, impure_key, locked_key
from .store import CacheEntry, FetchCache, FileFetchCache

__all__ = [
    "CacheEntry",
    "FetchCache",
    "FileFetchCache",
    "cache_key_digest",
    "impure_key",
    "locked_key",
]
