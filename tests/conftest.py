"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from pijulfetch.cache import FileFetchCache
from pijulfetch.errors import ToolInvocationError
from pijulfetch.fetcher import PijulFetcher
from pijulfetch.input import PijulInputScheme
from pijulfetch.observability import StructuredLogger
from pijulfetch.policy import Policy
from pijulfetch.store import LocalContentStore


@dataclass
class FakePijul:
    """In-memory stand-in for the pijul executable.

    ``clone`` materializes ``files`` plus a ``.pijul`` directory. When
    ``honor_pins`` is set, a requested ``--channel``/``--state`` becomes the
    observed one, otherwise ``channel``/``state`` are always reported.
    """

    channel: str = "main"
    state: str = "s123"
    timestamp: str = "2023-11-14T22:13:20Z"
    files: dict[str, str] = field(default_factory=lambda: {"README.md": "hello repo\n"})
    honor_pins: bool = True
    fail_on: str | None = None
    calls: list[list[str]] = field(default_factory=list)
    _observed_channel: str | None = None
    _observed_state: str | None = None

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        stdin: str | None = None,
        interactive: bool = False,
    ) -> str:
        argv = list(args)
        self.calls.append(argv)
        command = argv[0]
        if command == self.fail_on:
            raise ToolInvocationError(
                "Program 'pijul' exited with status 1.",
                context={"operation": "run_tool", "argv": " ".join(argv)},
            )
        if command == "clone":
            return self._clone(argv)
        if command == "log":
            state = self._observed_state or self.state
            return json.dumps(
                [{"hash": "HASH", "state": state, "timestamp": self.timestamp, "message": "m"}]
            )
        if command == "channel":
            channel = self._observed_channel or self.channel
            return f"  other\n* {channel}\n"
        return ""

    def commands(self) -> list[str]:
        return [argv[0] for argv in self.calls]

    def _clone(self, argv: list[str]) -> str:
        if self.honor_pins:
            if "--channel" in argv:
                self._observed_channel = argv[argv.index("--channel") + 1]
            if "--state" in argv:
                self._observed_state = argv[argv.index("--state") + 1]
        dest = Path(argv[-1])
        dest.mkdir(parents=True)
        for rel, content in self.files.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        (dest / ".pijul").mkdir()
        (dest / ".pijul" / "pristine").write_text("db", encoding="utf-8")
        return ""


@pytest.fixture
def fake_pijul() -> FakePijul:
    return FakePijul()


@pytest.fixture
def scheme(fake_pijul: FakePijul) -> PijulInputScheme:
    return PijulInputScheme(runner=fake_pijul)


@pytest.fixture
def fetch_cache(tmp_path: Path) -> FileFetchCache:
    return FileFetchCache(tmp_path / "cache")


@pytest.fixture
def content_store(tmp_path: Path) -> LocalContentStore:
    return LocalContentStore(tmp_path / "store")


@pytest.fixture
def fetcher(
    fake_pijul: FakePijul,
    fetch_cache: FileFetchCache,
    content_store: LocalContentStore,
) -> PijulFetcher:
    return PijulFetcher(
        cache=fetch_cache,
        content_store=content_store,
        runner=fake_pijul,
        policy=Policy(),
        logger=StructuredLogger(),
    )
