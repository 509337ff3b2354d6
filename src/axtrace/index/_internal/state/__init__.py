"""Persisted index state: storage interface and fingerprint cache."""

from axtrace.index._internal.state.cache import (
    CACHE_KEY,
    compute_fingerprint,
    content_hash,
    load_cached_indexes,
    project_key,
    save_cached_indexes,
)
from axtrace.index._internal.state.storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    # Cache
    "CACHE_KEY",
    "compute_fingerprint",
    "content_hash",
    "load_cached_indexes",
    "project_key",
    "save_cached_indexes",
    # Storage
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
]
