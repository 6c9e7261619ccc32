"""Cache key derivation."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping

from pijulfetch.attrs import Attr, Attrs
from pijulfetch.input import INPUT_TYPE


def impure_key(name: str, url: str) -> Attrs:
    """Key for the latest fetch of *url*, independent of any pin."""
    return {"type": INPUT_TYPE, "name": name, "url": url}


def locked_key(name: str, channel: str, state: str) -> Attrs:
    """Key for an exact ``channel``/``state`` pin."""
    return {"type": INPUT_TYPE, "name": name, "channel": channel, "state": state}


def cache_key_digest(key: Mapping[str, Attr]) -> str:
    canonical = json.dumps(dict(key), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
