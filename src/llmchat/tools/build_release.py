"""Build the project and ask the model about the result.

Runs the configured build command. If the build succeeds and a question
was given, the question is asked; if it fails, the compiler's error
blocks are collected into a question (unless one was given) so the model
can explain the failure. Every question asked is appended to ``q.log``.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from llmchat.config.schema import BuildConfig
from llmchat.core.llm.provider import LLMProvider
from llmchat.logging import get_logger
from llmchat.query import run_query

log = get_logger("build")

QUESTION_LOG = Path("q.log")

_HOME_RE = re.compile(r"(/home/[a-zA-Z0-9_.-]+|/Users/[a-zA-Z0-9_.-]+)")
_ERROR_START_RE = re.compile(r"^error(\[.*\])?:")


@dataclass
class BuildOutput:
    """Captured result of the build command."""

    returncode: int
    stdout: str
    stderr: str

    def succeeded(self, marker: str) -> bool:
        return self.returncode == 0 and (marker in self.stdout or marker in self.stderr)


async def run_build(command: list[str]) -> BuildOutput:
    """Run the build and capture its output.

    Raises:
        OSError: the command could not be started.
    """
    log.debug("Running build: %s", command)
    proc = await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return BuildOutput(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def filter_output(output: str) -> str:
    """Blank out home directory prefixes (user names) in build output."""
    return _HOME_RE.sub("  ", output)


def extract_error_sessions(output: str) -> list[str]:
    """Split compiler output into error blocks.

    A block starts at a line like ``error[E0425]: ...`` or ``error: ...``
    and runs until the next such line. Lines before the first error are
    dropped.
    """
    sessions: list[str] = []
    current: list[str] = []
    for line in output.splitlines():
        if _ERROR_START_RE.match(line):
            if current:
                sessions.append("\n".join(current))
            current = [line]
        elif current:
            current.append(line)
    if current:
        sessions.append("\n".join(current))
    return sessions


def build_failure_question(output: BuildOutput) -> str:
    stdout = filter_output(output.stdout)
    stderr = filter_output(output.stderr)
    sessions = extract_error_sessions(stderr)
    errors = "\n\n---\n\n".join(sessions) if sessions else "No specific error sessions found."
    return (
        "Build failed or incomplete.\n\n"
        f"Error Sessions:\n{errors}\n\n"
        f"Stdout: {stdout}\n"
        f"Stderr: {stderr}"
    )


def log_question(question: str, path: Path = QUESTION_LOG) -> None:
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(question + "\n")
    except OSError as e:
        log.warning("Failed to log question to %s: %s", path, e)


async def handle_build_release(
    provider: LLMProvider,
    model: str,
    build: BuildConfig,
    *,
    question: str | None = None,
    stream: bool = False,
    out: Console | None = None,
    question_log: Path = QUESTION_LOG,
) -> int:
    """Build, then ask about the result. Returns the exit code."""
    out = out or Console()
    out.print(f"[bold]{' '.join(build.command)}[/bold]")

    spawn_error: OSError | None = None
    output: BuildOutput | None = None
    with out.status("Building..."):
        try:
            output = await run_build(build.command)
        except OSError as e:
            spawn_error = e

    if output is not None and output.succeeded(build.success_marker):
        out.print("Build complete!")
        if question is None:
            question_log.unlink(missing_ok=True)
            out.print("[green]Build succeeded. Done![/green]")
            return 0
    elif output is not None:
        out.print("[red]Build failed.[/red]")
        question = question or build_failure_question(output)
        out.print(f"Using model: [bright_yellow]{model}[/bright_yellow]")
    else:
        out.print(f"[red]Failed to execute build: {spawn_error}[/red]")
        question = question or f"Failed to execute build: {spawn_error}"

    out.print(Markdown(question))
    log_question(question, question_log)
    await run_query(provider, model, question, stream=stream, out=out)
    return 0
