"""Slash command handlers for interactive mode."""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from llmchat.audio.result import CaptureOutcome, CaptureResult
from llmchat.core.llm.models import (
    AVAILABLE_MODELS,
    PREDEFINED_ROLES,
    resolve_model,
    resolve_system_prompt,
)
from llmchat.logging import get_logger
from llmchat.session.storage import list_sessions, load_session, save_session

if TYPE_CHECKING:
    from llmchat.session.conversation import ConversationState
    from llmchat.session.vocabulary import Vocabulary

log = get_logger("commands")

console = Console()

# (output_path, cancel=event) -> result
CaptureFn = Callable[..., CaptureResult]

HELP_ROWS = [
    ("/quit, /q, /bye", "Exit interactive mode"),
    ("/system [prompt|role]", "Change the system prompt, or list predefined roles"),
    ("/model [model]", "Switch model, or list available models"),
    ("/status", "Show current model, system prompt, stream mode and title"),
    ("/ss", "Toggle stream mode"),
    ("/cls", "Clear the screen"),
    ("/clear", "Clear conversation history"),
    ("/mic", "Record audio; the transcription arrives as a query"),
    ("/title", "Generate a session title with the model"),
    ("/save [filename]", "Save the session (defaults to the title)"),
    ("/load [filename]", "Load a session, or list saved sessions"),
    ("/word <new_word>", "Add a word to the completion vocabulary"),
    ("/help, /?", "Show this help message"),
    (".file <filename>", "Send the contents of a file"),
    ("jc", "Send the current transcript file"),
    (".", "Repeat the last message"),
    (":::", "Start or finish multi-line input"),
    ("q", "Exit interactive mode"),
]


def _load_capture() -> CaptureFn:
    # sounddevice needs PortAudio at import time
    from llmchat.audio.mic import capture

    return capture


class CommandDispatcher:
    """Executes slash commands against the conversation.

    ``dispatch`` receives the command line without its leading slash and
    returns True when the command asks the session loop to exit. Errors
    from the model (``/title``) and from session storage (``/save``,
    ``/load``) propagate to the caller.
    """

    def __init__(
        self,
        state: ConversationState,
        vocabulary: Vocabulary,
        sessions_dir: Path,
        *,
        recording_path: Path,
        aliases: Mapping[str, str] | None = None,
        capture: CaptureFn | None = None,
        out: Console | None = None,
    ) -> None:
        self.state = state
        self.vocabulary = vocabulary
        self.sessions_dir = sessions_dir
        self.recording_path = recording_path
        self.aliases = dict(aliases or {})
        self._capture = capture
        self.console = out or console

        self._handlers: dict[str, Callable[[str], Awaitable[bool | None]]] = {
            "quit": self._cmd_quit,
            "bye": self._cmd_quit,
            "q": self._cmd_quit,
            "Q": self._cmd_quit,
            "cls": self._cmd_cls,
            "system": self._cmd_system,
            "model": self._cmd_model,
            "status": self._cmd_status,
            "title": self._cmd_title,
            "clear": self._cmd_clear,
            "word": self._cmd_word,
            "save": self._cmd_save,
            "load": self._cmd_load,
            "mic": self._cmd_mic,
            "ss": self._cmd_ss,
            "help": self._cmd_help,
            "?": self._cmd_help,
        }

    async def dispatch(self, command: str) -> bool:
        """Run one command. Returns True if the loop should exit."""
        name, _, arg = command.strip().partition(" ")
        arg = arg.strip()

        handler = self._handlers.get(name)
        if handler is None:
            self.console.print(f"[red]Unknown command: {escape(name)}[/red]")
            self.console.print("Type [bold]/help[/bold] for available commands.")
            return False

        log.debug("Dispatching /%s", name)
        return bool(await handler(arg))

    async def _cmd_quit(self, arg: str) -> bool:
        return True

    async def _cmd_cls(self, arg: str) -> None:
        self.console.clear()

    async def _cmd_system(self, arg: str) -> None:
        """Set the system prompt, or list predefined roles."""
        if not arg:
            self.console.print("Predefined roles:")
            for role, prompt in PREDEFINED_ROLES.items():
                self.console.print(f"[yellow]{role:<20}[/yellow] - {escape(prompt)}")
            return

        text = resolve_system_prompt(arg)
        label = arg if arg in PREDEFINED_ROLES else None
        self.state.set_system_prompt(text, label=label)
        self.console.print(f"System prompt set to: [yellow]{escape(text)}[/yellow]")

    async def _cmd_model(self, arg: str) -> None:
        """Switch model, or list available models."""
        if not arg:
            self.console.print("Available models:")
            for model in AVAILABLE_MODELS:
                marker = "*" if model == self.state.model else " "
                self.console.print(f"[yellow]{marker} {model}[/yellow]")
            for alias, model in self.aliases.items():
                self.console.print(f"  [dim]{alias} -> {escape(model)}[/dim]")
            return

        self.state.model = resolve_model(arg, self.aliases)
        self.console.print(f"Model set to: [yellow]{escape(self.state.model)}[/yellow]")

    async def _cmd_status(self, arg: str) -> None:
        """Show current settings."""
        self.console.print("[bold]--- Current settings ---[/bold]")
        self.console.print(f"Model: {escape(self.state.model)}")
        self.console.print(f"System prompt: {escape(self.state.system_message)}")
        if self.state.stream_mode:
            self.console.print("Stream mode: [green]enabled[/green]")
        else:
            self.console.print("Stream mode: [red]disabled[/red]")
        if self.state.title:
            self.console.print(f"Title: {escape(self.state.title)}")
        self.console.print(f"Turns: {self.state.turn_count()}")

    async def _cmd_title(self, arg: str) -> None:
        title = await self.state.summarize_title()
        self.console.print(f"[green]Session title set to:[/green] {escape(title)}")

    async def _cmd_clear(self, arg: str) -> None:
        self.state.clear()
        self.console.print("Conversation history cleared.")

    async def _cmd_word(self, arg: str) -> None:
        """Add a word to the vocabulary and persist it."""
        if not arg:
            self.console.print("Usage: /word <new_word>")
            return

        if not self.vocabulary.add(arg):
            self.console.print(f"Word '{escape(arg)}' already in wordlist.")
            return

        if self.vocabulary.save():
            self.console.print(f"Word '{escape(arg)}' added to wordlist.")
        else:
            self.console.print(
                f"[yellow]Word '{escape(arg)}' added for this session, "
                "but the wordlist could not be saved.[/yellow]"
            )

    async def _cmd_save(self, arg: str) -> None:
        """Save the session under arg, or under the title."""
        name = arg or self.state.title
        if not name:
            self.console.print("[yellow]No title set. Use /title or /save <filename>[/yellow]")
            return

        path = save_session(self.sessions_dir, name, self.state.to_session_state())
        self.console.print(f"Session saved to '{escape(path.name)}'")

    async def _cmd_load(self, arg: str) -> None:
        """Load a session, or list saved sessions."""
        if arg:
            loaded = load_session(self.sessions_dir, arg)
            self.state.apply_session_state(loaded)
            self.console.print(f"Session loaded from '{escape(arg)}'")
            return

        sessions = list_sessions(self.sessions_dir)
        if not sessions:
            self.console.print("No saved sessions found.")
            return

        self.console.print("Saved sessions:")
        for summary in sessions:
            modified = summary.modified.strftime("%Y-%m-%d %H:%M:%S")
            self.console.print(
                f"- {escape(summary.name)} "
                f"([yellow]Last Modified: {modified}[/yellow]) "
                f"([blue]{escape(summary.model or 'Unknown')}[/blue])"
            )

    async def _cmd_mic(self, arg: str) -> None:
        """Record audio for the external transcriber."""
        capture = self._capture
        if capture is None:
            try:
                capture = _load_capture()
            except OSError as e:
                self.console.print(f"[red]Error: audio capture unavailable: {escape(str(e))}[/red]")
                return
            self._capture = capture

        self.console.print("Recording... press Enter to stop, c + Enter to cancel.")
        cancel = threading.Event()
        loop = asyncio.get_running_loop()
        # Ctrl+C only reaches the main thread, so route it to the capture thread
        previous = signal.getsignal(signal.SIGINT)
        try:
            loop.add_signal_handler(signal.SIGINT, cancel.set)
            intercepting = True
        except (NotImplementedError, RuntimeError):
            intercepting = False
        try:
            result = await asyncio.to_thread(capture, self.recording_path, cancel=cancel)
        finally:
            if intercepting:
                loop.remove_signal_handler(signal.SIGINT)
                signal.signal(signal.SIGINT, previous)

        if result.outcome is CaptureOutcome.CAPTURED:
            self.console.print(f"Recording saved to {result.path}")
        elif result.outcome is CaptureOutcome.CANCELLED:
            self.console.print("Recording canceled.")
        else:
            self.console.print(f"[red]Error: {escape(result.message or 'unknown error')}[/red]")

    async def _cmd_ss(self, arg: str) -> None:
        self.state.stream_mode = not self.state.stream_mode
        self.console.print(f"Stream mode: {'ON' if self.state.stream_mode else 'OFF'}")

    async def _cmd_help(self, arg: str) -> None:
        """Show available commands."""
        table = Table(title="Available Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")

        for cmd, desc in HELP_ROWS:
            table.add_row(escape(cmd), desc)

        self.console.print(table)
