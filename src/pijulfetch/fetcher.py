"""Pijul fetch with two-tier caching, pin validation, and content addressing."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pijulfetch.attrs import Attr, Attrs, AttrName, maybe_get_str_attr, merge_attrs
from pijulfetch.cache.keys import impure_key, locked_key
from pijulfetch.cache.store import FetchCache
from pijulfetch.errors import ChannelMismatchError, StateMismatchError
from pijulfetch.input import INPUT_TYPE, Input
from pijulfetch.observability import StructuredLogger
from pijulfetch.policy import Policy, ensure_network_allowed
from pijulfetch.status import RepoStatus, get_repo_status
from pijulfetch.store import ArtifactId, ContentStore
from pijulfetch.tool import SubprocessToolRunner, ToolRunner
from pijulfetch.url import parse_url

METADATA_DIR = ".pijul"


@dataclass(frozen=True, slots=True)
class FetchResult:
    artifact: ArtifactId
    descriptor: Input


class PijulFetcher:
    """Resolves Pijul inputs to content-addressed artifacts.

    Lookup order is the locked key (only for locked inputs), then the impure
    key, then a fresh clone. A locked cache hit is returned as is. An impure
    hit is used only when it agrees with every pin the caller supplied. A
    fresh clone is validated against the requested pins before anything is
    written to the content store or the cache.
    """

    def __init__(
        self,
        *,
        cache: FetchCache,
        content_store: ContentStore,
        runner: ToolRunner | None = None,
        policy: Policy | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.cache = cache
        self.content_store = content_store
        self.policy = policy or Policy()
        self.runner = runner or SubprocessToolRunner(program=self.policy.program)
        self.logger = logger or StructuredLogger()

    def fetch(self, descriptor: Input) -> FetchResult:
        artifact, info = self._resolve(descriptor)
        enriched = descriptor.with_attrs(info)
        self._log("done", parse_url(descriptor.url).base, f"resolved to {artifact}")
        return FetchResult(artifact=artifact, descriptor=enriched)

    def _resolve(self, descriptor: Input) -> tuple[ArtifactId, Attrs]:
        name = descriptor.name
        repo_url = parse_url(descriptor.url).base
        channel = descriptor.channel
        state = descriptor.state

        key: Attrs | None = None
        if channel and state:
            key = locked_key(name, channel, state)
            cached = self._lookup(key, phase="lookup_locked", url=repo_url)
            if cached is not None:
                return cached

        unlocked_key = impure_key(name, repo_url)
        cached = self._lookup(unlocked_key, phase="lookup_impure", url=repo_url)
        if cached is not None:
            artifact, info = cached
            if _pins_match(info, channel=channel, state=state):
                return artifact, info
            self._log(
                "lookup_impure",
                repo_url,
                "cached entry does not match requested pins; discarding",
                extra={"cached": dict(info)},
            )

        artifact, status = self._fetch_fresh(
            name=name, repo_url=repo_url, channel=channel, state=state
        )

        if key is None:
            key = {"type": INPUT_TYPE, "name": name}
        merge_attrs(
            key,
            {AttrName.CHANNEL.value: status.channel, AttrName.STATE.value: status.state},
        )
        info = status.to_attrs()

        self._log("populate", repo_url, "writing cache entries", extra={"info": dict(info)})
        if not descriptor.locked:
            self.cache.add(unlocked_key, info, artifact, locked=False)
        self.cache.add(key, info, artifact, locked=True)
        return artifact, info

    def _lookup(
        self,
        key: Mapping[str, Attr],
        *,
        phase: str,
        url: str,
    ) -> tuple[ArtifactId, Attrs] | None:
        result = self.cache.lookup(key)
        if result is None:
            self._log(phase, url, "cache miss")
            return None
        info, artifact = result
        if self.policy.verify_artifacts and not self.content_store.is_valid(artifact):
            self._log(phase, url, f"cached artifact {artifact} is gone", level="warning")
            return None
        self._log(phase, url, f"cache hit: {artifact}")
        return artifact, info

    def _fetch_fresh(
        self,
        *,
        name: str,
        repo_url: str,
        channel: str | None,
        state: str | None,
    ) -> tuple[ArtifactId, RepoStatus]:
        ensure_network_allowed(policy=self.policy, operation="fetch_pijul")

        temp_root = Path(tempfile.mkdtemp(prefix="pijulfetch-"))
        try:
            repo_dir = temp_root / "source"
            args = ["clone"]
            if channel is not None:
                args.extend(["--channel", channel])
            if state is not None:
                args.extend(["--state", state])
            args.extend([repo_url, str(repo_dir)])

            self._log("clone", repo_url, "cloning", extra={"channel": channel, "state": state})
            self.runner.run(args, interactive=True)

            status = get_repo_status(self.runner, repo_dir)
            self._log(
                "validate",
                repo_url,
                f"observed channel {status.channel} at state {status.state}",
            )
            validate_status(status, channel=channel, state=state, url=repo_url)

            metadata_dir = repo_dir / METADATA_DIR
            if metadata_dir.exists():
                shutil.rmtree(metadata_dir)

            artifact = self.content_store.ingest(name, repo_dir)
        finally:
            shutil.rmtree(temp_root, ignore_errors=True)
        return artifact, status

    def _log(
        self,
        phase: str,
        url: str,
        message: str,
        *,
        level: str = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        self.logger.log(
            operation="fetch_pijul",
            phase=phase,
            url=url,
            message=message,
            level=level,
            extra=extra,
        )


def validate_status(
    status: RepoStatus,
    *,
    channel: str | None,
    state: str | None,
    url: str = "",
) -> None:
    """Fail when the observed repository disagrees with the requested pins."""
    if channel is not None and channel != status.channel:
        raise ChannelMismatchError(
            f"Channel mismatch: requested {channel}, got {status.channel}.",
            hint="Check that the channel exists in the remote repository.",
            context={
                "operation": "fetch_pijul",
                "url": url,
                "expected": channel,
                "actual": status.channel,
            },
        )
    if state is not None and state != status.state:
        raise StateMismatchError(
            f"State mismatch: requested {state}, got {status.state}.",
            hint="Pin a state that exists on the requested channel.",
            context={
                "operation": "fetch_pijul",
                "url": url,
                "expected": state,
                "actual": status.state,
            },
        )


def _pins_match(info: Mapping[str, Attr], *, channel: str | None, state: str | None) -> bool:
    if channel is not None and channel != maybe_get_str_attr(info, AttrName.CHANNEL):
        return False
    if state is not None and state != maybe_get_str_attr(info, AttrName.STATE):
        return False
    return True


__all__ = ["FetchResult", "PijulFetcher", "validate_status"]
