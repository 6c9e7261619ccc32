import json
from pathlib import Path

import pytest

from pijulfetch.cache import FileFetchCache, cache_key_digest, impure_key, locked_key
from pijulfetch.errors import CacheError
from pijulfetch.store import ArtifactId

ARTIFACT = ArtifactId(digest="a" * 64, name="source")
INFO = {"channel": "main", "state": "s123", "lastModified": 1700000000}


def test_key_derivation() -> None:
    assert impure_key("source", "https://example.org/repo") == {
        "type": "pijul",
        "name": "source",
        "url": "https://example.org/repo",
    }
    assert locked_key("source", "main", "s123") == {
        "type": "pijul",
        "name": "source",
        "channel": "main",
        "state": "s123",
    }


def test_key_digest_ignores_insertion_order() -> None:
    first = {"type": "pijul", "name": "source", "url": "u"}
    second = {"url": "u", "name": "source", "type": "pijul"}

    assert cache_key_digest(first) == cache_key_digest(second)
    assert cache_key_digest(first) != cache_key_digest({**first, "url": "v"})


def test_add_then_lookup(tmp_path: Path) -> None:
    cache = FileFetchCache(tmp_path / "cache")
    key = locked_key("source", "main", "s123")

    assert cache.lookup(key) is None
    cache.add(key, INFO, ARTIFACT, locked=True)

    assert cache.lookup(key) == (INFO, ARTIFACT)
    [entry] = cache.entries()
    assert entry.locked is True
    assert entry.key == key


def test_unlocked_entries_expire_but_locked_do_not(tmp_path: Path) -> None:
    cache = FileFetchCache(tmp_path / "cache", ttl_seconds=-1)
    floating = impure_key("source", "https://example.org/repo")
    pinned = locked_key("source", "main", "s123")

    cache.add(floating, INFO, ARTIFACT, locked=False)
    cache.add(pinned, INFO, ARTIFACT, locked=True)

    assert cache.lookup(floating) is None
    assert cache.lookup(pinned) == (INFO, ARTIFACT)


def test_tampered_manifest_key_is_rejected(tmp_path: Path) -> None:
    cache = FileFetchCache(tmp_path / "cache")
    key = locked_key("source", "main", "s123")
    cache.add(key, INFO, ARTIFACT, locked=True)

    manifest_path = tmp_path / "cache" / f"{cache_key_digest(key)}.json"
    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    manifest["key"]["state"] = "tampered"
    manifest_path.write_text(json.dumps(manifest), encoding="utf-8")

    with pytest.raises(CacheError):
        cache.lookup(key)


@pytest.mark.parametrize("payload", ["{not json", "[]", json.dumps({"key": {}})])
def test_corrupt_manifest_is_rejected(tmp_path: Path, payload: str) -> None:
    cache = FileFetchCache(tmp_path / "cache")
    key = impure_key("source", "https://example.org/repo")
    (tmp_path / "cache" / f"{cache_key_digest(key)}.json").write_text(payload, encoding="utf-8")

    with pytest.raises(CacheError):
        cache.lookup(key)
