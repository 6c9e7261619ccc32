import json
from pathlib import Path

import pytest

from pijulfetch.errors import MalformedOutputError, MalformedTimestampError, ToolInvocationError
from pijulfetch.status import (
    RepoStatus,
    get_repo_status,
    parse_channel_output,
    parse_log_output,
    parse_timestamp,
)


def test_get_repo_status_runs_log_and_channel(tmp_path: Path, fake_pijul) -> None:
    status = get_repo_status(fake_pijul, tmp_path)

    assert status == RepoStatus(channel="main", state="s123", last_modified=1700000000)
    assert fake_pijul.calls == [
        ["log", "--output-format", "json", "--state", "--limit", "1"],
        ["channel"],
    ]
    assert status.to_attrs() == {"channel": "main", "state": "s123", "lastModified": 1700000000}


def test_get_repo_status_propagates_tool_failure(tmp_path: Path, fake_pijul) -> None:
    fake_pijul.fail_on = "channel"

    with pytest.raises(ToolInvocationError):
        get_repo_status(fake_pijul, tmp_path)


def test_parse_log_output_reads_state_and_timestamp() -> None:
    output = json.dumps(
        [{"hash": "H", "state": "STATE", "timestamp": "2023-11-14T23:13:20+01:00"}]
    )

    assert parse_log_output(output) == ("STATE", 1700000000)


@pytest.mark.parametrize(
    "output",
    [
        "not json",
        "[]",
        json.dumps([{"state": "a", "timestamp": "2023-11-14T22:13:20Z"}] * 2),
        json.dumps({"state": "a", "timestamp": "2023-11-14T22:13:20Z"}),
        json.dumps(["record"]),
        json.dumps([{"timestamp": "2023-11-14T22:13:20Z"}]),
        json.dumps([{"state": "a"}]),
    ],
)
def test_parse_log_output_rejects_unexpected_shapes(output: str) -> None:
    with pytest.raises(MalformedOutputError):
        parse_log_output(output)


def test_parse_channel_output_picks_marked_line() -> None:
    assert parse_channel_output("  dev\n\n* main\n  release\n") == "main"
    assert parse_channel_output("* feature/x") == "feature/x"


@pytest.mark.parametrize("output", ["", "  dev\n  main\n", "*\n"])
def test_parse_channel_output_requires_marker(output: str) -> None:
    with pytest.raises(MalformedOutputError):
        parse_channel_output(output)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2023-11-14T22:13:20Z", 1700000000),
        ("2023-11-14T22:13:20.987654321Z", 1700000000),
        ("2023-11-14T17:13:20-05:00", 1700000000),
        ("2023-11-14T22:13:20.5+00:00", 1700000000),
        ("2023-11-14t22:13:20z", 1700000000),
        ("2023-11-14 22:13:20Z", 1700000000),
    ],
)
def test_parse_timestamp_truncates_to_seconds(text: str, expected: int) -> None:
    assert parse_timestamp(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "yesterday",
        "2023-11-14T22:13:20",
        "",
        "20231114T221320Z",
        "2023-W46-2T22:13:20Z",
        "2023-11-14T22:13Z",
    ],
)
def test_parse_timestamp_rejects_malformed_text(text: str) -> None:
    with pytest.raises(MalformedTimestampError):
        parse_timestamp(text)
