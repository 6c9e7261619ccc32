"""Process execution for the external Pijul tool."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pijulfetch.errors import ToolInvocationError


class ToolRunner(Protocol):
    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        stdin: str | None = None,
        interactive: bool = False,
    ) -> str:
        """Run the tool with *args* and return its standard output."""


@dataclass(frozen=True, slots=True)
class SubprocessToolRunner:
    """Runs the tool as a child process and waits for it to exit.

    Interactive invocations leave stderr attached to the terminal so that
    progress and credential prompts reach the user.
    """

    program: str = "pijul"

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        stdin: str | None = None,
        interactive: bool = False,
    ) -> str:
        command = [self.program, *args]
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                input=stdin,
                check=False,
                text=True,
                stdout=subprocess.PIPE,
                stderr=None if interactive else subprocess.PIPE,
            )
        except OSError as exc:
            raise ToolInvocationError(
                f"Program '{self.program}' could not be started.",
                hint=f"Ensure `{self.program}` is installed and in PATH.",
                context={
                    "operation": "run_tool",
                    "argv": " ".join(command),
                    "error": str(exc),
                },
            ) from exc
        if completed.returncode != 0:
            raise ToolInvocationError(
                f"Program '{self.program}' exited with status {completed.returncode}.",
                hint="Inspect repository URL, channel, and state inputs.",
                context={
                    "operation": "run_tool",
                    "argv": " ".join(command),
                    "cwd": str(cwd) if cwd is not None else "",
                    "returncode": str(completed.returncode),
                    "stderr": completed.stderr[-2000:] if completed.stderr else "",
                },
            )
        return completed.stdout


__all__ = ["SubprocessToolRunner", "ToolRunner"]
