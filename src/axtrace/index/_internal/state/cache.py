"""Index cache keyed by a content fingerprint.

fingerprint = SHA-256 over sorted ``(relative path, content SHA-256)`` pairs
plus the project key (SHA-256 of the resolved project root). An unchanged
fingerprint returns the stored indexes without rescanning; a mismatched or
corrupt payload is a cache miss.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Mapping
from pathlib import Path

import structlog

from axtrace.index._internal.state.storage import KeyValueStore
from axtrace.index.models import SourceIndexes

log = structlog.get_logger(__name__)

CACHE_KEY = "index-cache"
CACHE_VERSION = 1


def project_key(project_root: Path) -> str:
    return hashlib.sha256(str(project_root.resolve()).encode()).hexdigest()


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def compute_fingerprint(file_hashes: Mapping[str, str], key: str) -> str:
    """Order-independent fingerprint of ``{relative path: content hash}``."""
    digest = hashlib.sha256()
    digest.update(f"project:{key}\n".encode())
    for path in sorted(file_hashes):
        digest.update(f"{path}:{file_hashes[path]}\n".encode())
    return digest.hexdigest()


def load_cached_indexes(store: KeyValueStore, fingerprint: str) -> SourceIndexes | None:
    payload = store.get(CACHE_KEY)
    if not isinstance(payload, dict):
        return None
    if payload.get("version") != CACHE_VERSION or payload.get("fingerprint") != fingerprint:
        log.debug("index_cache.miss", reason="fingerprint")
        return None
    try:
        return SourceIndexes.from_dict(payload["data"])
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        log.debug("index_cache.corrupt", error=str(e))
        return None


def save_cached_indexes(
    store: KeyValueStore,
    fingerprint: str,
    key: str,
    indexes: SourceIndexes,
) -> None:
    store.set(
        CACHE_KEY,
        {
            "version": CACHE_VERSION,
            "fingerprint": fingerprint,
            "project_key": key,
            "generated_at": time.time(),
            "data": indexes.to_dict(),
        },
    )
