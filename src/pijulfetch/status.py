"""Repository status extraction from a materialized Pijul working copy."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pijulfetch.attrs import Attrs, AttrName
from pijulfetch.errors import MalformedOutputError, MalformedTimestampError
from pijulfetch.tool import ToolRunner

LOG_ARGS = ("log", "--output-format", "json", "--state", "--limit", "1")
CHANNEL_ARGS = ("channel",)
ACTIVE_CHANNEL_MARKER = "*"
CHANNEL_PREFIX_WIDTH = 2
# fractional seconds are matched but dropped
RFC3339_PATTERN = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})(?:\.\d+)?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})"
)


@dataclass(frozen=True, slots=True)
class RepoStatus:
    channel: str
    state: str
    last_modified: int

    def to_attrs(self) -> Attrs:
        return {
            AttrName.CHANNEL.value: self.channel,
            AttrName.STATE.value: self.state,
            AttrName.LAST_MODIFIED.value: self.last_modified,
        }


def get_repo_status(runner: ToolRunner, repo_path: Path) -> RepoStatus:
    """Inspect *repo_path* and return its current channel and latest state.

    Tool failures propagate as :class:`ToolInvocationError`; there is no
    "status unavailable" result.
    """
    state, last_modified = parse_log_output(runner.run(list(LOG_ARGS), cwd=repo_path))
    channel = parse_channel_output(runner.run(list(CHANNEL_ARGS), cwd=repo_path))
    return RepoStatus(channel=channel, state=state, last_modified=last_modified)


def parse_log_output(output: str) -> tuple[str, int]:
    try:
        parsed = json.loads(output)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(
            "Pijul log output is not valid JSON.",
            hint=str(exc),
            context={"operation": "repo_status", "output": output[:500]},
        ) from exc

    if not isinstance(parsed, list) or len(parsed) != 1:
        count = str(len(parsed)) if isinstance(parsed, list) else type(parsed).__name__
        raise MalformedOutputError(
            "Expected exactly one record in Pijul log output.",
            context={"operation": "repo_status", "records": count},
        )
    record = parsed[0]
    if not isinstance(record, dict):
        raise MalformedOutputError(
            "Pijul log record is not an object.",
            context={"operation": "repo_status", "record": repr(record)[:500]},
        )

    state = _required_str(record, "state")
    return state, parse_timestamp(_required_str(record, "timestamp"))


def _required_str(record: dict[str, object], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedOutputError(
            f"Pijul log record is missing the `{key}` field.",
            hint="Check that the installed Pijul supports `log --output-format json --state`.",
            context={"operation": "repo_status", "field": key},
        )
    return value


def parse_channel_output(output: str) -> str:
    for line in output.splitlines():
        if not line:
            continue
        if line.startswith(ACTIVE_CHANNEL_MARKER):
            label = line[CHANNEL_PREFIX_WIDTH:].strip()
            if not label:
                break
            return label
    raise MalformedOutputError(
        "Could not parse the current channel.",
        hint=f"Expected a `pijul channel` line starting with '{ACTIVE_CHANNEL_MARKER}'.",
        context={"operation": "repo_status", "output": output[:500]},
    )


def parse_timestamp(text: str) -> int:
    """Parse an RFC 3339 offset date-time into whole seconds since the epoch."""
    match = RFC3339_PATTERN.fullmatch(text.strip())
    if match is None:
        raise MalformedTimestampError(
            f"Could not parse timestamp '{text}'.",
            hint="Expected an offset date-time such as `2023-11-14T22:13:20Z`.",
            context={"operation": "parse_timestamp", "timestamp": text},
        )
    offset = match["offset"].upper()
    if offset == "Z":
        offset = "+00:00"
    try:
        parsed = datetime.fromisoformat(f"{match['date']}T{match['time']}{offset}")
    except ValueError as exc:
        raise MalformedTimestampError(
            f"Could not parse timestamp '{text}'.",
            hint=str(exc),
            context={"operation": "parse_timestamp", "timestamp": text},
        ) from exc
    return int(parsed.timestamp())


__all__ = [
    "RepoStatus",
    "get_repo_status",
    "parse_channel_output",
    "parse_log_output",
    "parse_timestamp",
]
