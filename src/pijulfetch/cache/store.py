"""Fetch cache store keyed by attribute sets, with manifest verification."""

from __future__ import annotations

import json
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from pijulfetch.attrs import Attr, Attrs
from pijulfetch.cache.keys import cache_key_digest
from pijulfetch.errors import CacheError, ValidationError
from pijulfetch.store import ArtifactId

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: Attrs
    info: Attrs
    artifact: ArtifactId
    locked: bool
    created_at: int


class FetchCache(Protocol):
    def lookup(self, key: Mapping[str, Attr]) -> tuple[Attrs, ArtifactId] | None:
        """Return the info attributes and artifact stored under *key*."""

    def add(
        self,
        key: Mapping[str, Attr],
        info: Mapping[str, Attr],
        artifact: ArtifactId,
        *,
        locked: bool,
    ) -> None:
        """Store *info* and *artifact* under *key*."""


class FileFetchCache:
    """One JSON manifest per key digest under ``root``.

    Locked entries never expire. Unlocked entries are reported as misses once
    they are older than ``ttl_seconds``, so floating references get refreshed.
    """

    def __init__(self, root: str | Path, *, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.ttl_seconds = ttl_seconds

    def lookup(self, key: Mapping[str, Attr]) -> tuple[Attrs, ArtifactId] | None:
        digest = cache_key_digest(key)
        manifest_path = self.root / f"{digest}.json"
        if not manifest_path.exists():
            return None

        entry = self._read_entry(manifest_path)
        if entry.key != dict(key):
            raise CacheError(
                "Cache manifest key mismatch.",
                hint="Invalidate the cache entry and refetch.",
                context={"operation": "cache_lookup", "key": digest},
            )
        if not entry.locked and time.time() - entry.created_at > self.ttl_seconds:
            return None
        return dict(entry.info), entry.artifact

    def add(
        self,
        key: Mapping[str, Attr],
        info: Mapping[str, Attr],
        artifact: ArtifactId,
        *,
        locked: bool,
    ) -> None:
        digest = cache_key_digest(key)
        manifest = {
            "key": dict(key),
            "info": dict(info),
            "artifact": str(artifact),
            "locked": locked,
            "created_at": int(time.time()),
        }
        manifest_path = self.root / f"{digest}.json"
        temp_path = manifest_path.with_suffix(".tmp")
        temp_path.write_text(
            json.dumps(manifest, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        os.replace(temp_path, manifest_path)

    def entries(self) -> list[CacheEntry]:
        return [self._read_entry(path) for path in sorted(self.root.glob("*.json"))]

    def _read_entry(self, path: Path) -> CacheEntry:
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CacheError(
                "Cache manifest is not valid JSON.",
                hint="Invalidate the cache entry and refetch.",
                context={"operation": "cache_lookup", "path": str(path)},
            ) from exc
        if not isinstance(parsed, dict) or not _is_valid_manifest(parsed):
            raise CacheError(
                "Cache manifest has invalid structure.",
                hint="Invalidate the cache entry and refetch.",
                context={"operation": "cache_lookup", "path": str(path)},
            )
        try:
            artifact = ArtifactId.parse(parsed["artifact"])
        except ValidationError as exc:
            raise CacheError(
                "Cache manifest references an invalid artifact.",
                hint="Invalidate the cache entry and refetch.",
                context={"operation": "cache_lookup", "path": str(path)},
            ) from exc
        return CacheEntry(
            key=parsed["key"],
            info=parsed["info"],
            artifact=artifact,
            locked=parsed["locked"],
            created_at=parsed["created_at"],
        )


def _is_valid_manifest(manifest: dict[str, Any]) -> bool:
    return (
        isinstance(manifest.get("key"), dict)
        and isinstance(manifest.get("info"), dict)
        and isinstance(manifest.get("artifact"), str)
        and isinstance(manifest.get("locked"), bool)
        and isinstance(manifest.get("created_at"), int)
    )


__all__ = ["CacheEntry", "DEFAULT_TTL_SECONDS", "FetchCache", "FileFetchCache"]
