"""Content-addressed store for fetched source trees."""

from __future__ import annotations

import hashlib
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pijulfetch.errors import ValidationError


@dataclass(frozen=True, slots=True)
class ArtifactId:
    digest: str
    name: str

    def __str__(self) -> str:
        return f"{self.digest}-{self.name}"

    @classmethod
    def parse(cls, text: str) -> ArtifactId:
        digest, sep, name = text.partition("-")
        if not sep or len(digest) != 64 or not name:
            raise ValidationError(
                f"'{text}' is not a valid artifact identifier.",
                context={"operation": "parse_artifact", "artifact": text},
            )
        return cls(digest=digest, name=name)


class ContentStore(Protocol):
    def ingest(self, name: str, path: Path) -> ArtifactId:
        """Copy the tree at *path* into the store and return its identifier."""

    def is_valid(self, artifact: ArtifactId) -> bool:
        """Return True if *artifact* is present in the store."""

    def path_of(self, artifact: ArtifactId) -> Path:
        """Return the on-disk location of *artifact*."""


class LocalContentStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def ingest(self, name: str, path: Path) -> ArtifactId:
        if not name or "/" in name or name.startswith("."):
            raise ValidationError(
                f"Invalid artifact name '{name}'.",
                context={"operation": "ingest", "name": name},
            )
        if not path.is_dir():
            raise ValidationError(
                "Only directories can be ingested.",
                context={"operation": "ingest", "path": str(path)},
            )

        artifact = ArtifactId(digest=tree_digest(path), name=name)
        target = self.path_of(artifact)
        if target.exists():
            return artifact

        temp_root = Path(tempfile.mkdtemp(prefix=".ingest-", dir=str(self.root)))
        try:
            staged = temp_root / "tree"
            shutil.copytree(path, staged, symlinks=True)
            try:
                os.replace(staged, target)
            except OSError:
                # another ingest of identical content won the rename
                if not target.exists():
                    raise
        finally:
            shutil.rmtree(temp_root, ignore_errors=True)
        return artifact

    def is_valid(self, artifact: ArtifactId) -> bool:
        return self.path_of(artifact).is_dir()

    def path_of(self, artifact: ArtifactId) -> Path:
        return self.root / str(artifact)


def tree_digest(root: Path) -> str:
    """Hash a directory tree by relative path, entry kind, exec bit, and content."""
    digest = hashlib.sha256()
    for path in sorted(root.rglob("*"), key=lambda item: item.relative_to(root).as_posix()):
        rel = path.relative_to(root).as_posix().encode("utf-8")
        if path.is_symlink():
            digest.update(b"l\0" + rel + b"\0" + os.readlink(path).encode("utf-8") + b"\0")
        elif path.is_dir():
            digest.update(b"d\0" + rel + b"\0")
        else:
            executable = b"x" if path.stat().st_mode & stat.S_IXUSR else b"-"
            content = hashlib.sha256(path.read_bytes()).hexdigest().encode("ascii")
            digest.update(b"f\0" + executable + b"\0" + rel + b"\0" + content + b"\0")
    return digest.hexdigest()


__all__ = ["ArtifactId", "ContentStore", "LocalContentStore", "tree_digest"]
