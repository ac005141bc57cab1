"""Interactive session loop.

Each iteration races one line of terminal input against one transcript
from the watcher queue and handles whichever arrives first. A line read
that loses the race stays pending and is picked up on a later iteration,
so neither source can starve the other. Turns never overlap: everything
a line or transcript triggers completes before the next race starts.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from llmchat.config.paths import (
    RECORDING_FILENAME,
    REPLY_FILENAME,
    TRANSCRIPT_FILENAME,
    get_history_path,
    get_sessions_dir,
    get_temp_file_path,
    get_wordlist_path,
)
from llmchat.core.llm.litellm_provider import LiteLLMProvider
from llmchat.interactive.commands import CommandDispatcher
from llmchat.interactive.completion import ChatCompleter
from llmchat.interactive.reader import LineReader
from llmchat.interactive.render import StreamPrinter, print_reply
from llmchat.logging import get_logger
from llmchat.session.conversation import DEFAULT_PROMPT, ConversationState, TextChunk, TurnResult
from llmchat.session.signals import ExternalSignal, FileSignal
from llmchat.session.vocabulary import Vocabulary
from llmchat.watching.locking import read_locked
from llmchat.watching.transcript import TranscriptWatcher, make_transcript_queue

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from llmchat.config.schema import Config
    from llmchat.core.llm.provider import LLMProvider
    from llmchat.session.conversation import TurnEvent

log = get_logger("repl")

console = Console()

MULTI_LINE_DELIMITER = ":::"
QUIT_TOKEN = "q"
REPEAT_TOKEN = "."
CLEAR_SCREEN_TOKEN = "cls"
TRANSCRIPT_TOKEN = "jc"
MIC_TOKEN = "mic"
FILE_DIRECTIVE = ".file"

MULTI_LINE_PROMPT = "\x1b[32m:: \x1b[0m"
PREVIEW_LINES = 3


def status_line(model: str, stream: bool) -> Text:
    """Banner shown when interactive mode starts."""
    text = Text()
    text.append(" Interactive Mode ", style="black on yellow")
    text.append(f" {model} ", style="black on blue")
    if stream:
        text.append(" (stream) ", style="black on white")
    text.append(" (type 'q' to quit, '/help' for help)")
    return text


def preview(content: str, lines: int = PREVIEW_LINES) -> str:
    return "\n".join(content.splitlines()[:lines])


class SessionLoop:
    """Top-level coordinator for an interactive session.

    Owns the conversation state and the receiving end of the transcript
    queue. Nothing else mutates the conversation while the loop runs.
    """

    def __init__(
        self,
        state: ConversationState,
        dispatcher: CommandDispatcher,
        reader: LineReader,
        signal: ExternalSignal,
        watcher: TranscriptWatcher,
        queue: asyncio.Queue[str],
        *,
        transcript_path: Path,
        out: Console | None = None,
    ) -> None:
        self.state = state
        self.dispatcher = dispatcher
        self.reader = reader
        self.signal = signal
        self.watcher = watcher
        self.queue = queue
        self.transcript_path = transcript_path
        self.console = out or console

        self.last_input = ""
        self.multi_line_mode = False
        self._multi_line_buffer: list[str] = []
        self._should_exit = False
        self._pending_line: asyncio.Future[str] | None = None

    @property
    def should_exit(self) -> bool:
        return self._should_exit

    def startup(self) -> None:
        """Drop a stale transcript and show the banner."""
        try:
            self.transcript_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to remove %s: %s", self.transcript_path, e)
        self.console.print(status_line(self.state.model, self.state.stream_mode))

    async def run(self) -> int:
        """Run until the user quits. Returns the process exit code."""
        self.startup()
        self.watcher.start()
        try:
            while not self._should_exit:
                await self.step()
        finally:
            await self.watcher.aclose()
        self.console.print("Goodbye.")
        return 0

    async def step(self) -> None:
        """Wait for a line or a transcript and handle it."""
        if self._pending_line is None:
            prompt = MULTI_LINE_PROMPT if self.multi_line_mode else self.state.prompt_string
            loop = asyncio.get_running_loop()
            self._pending_line = loop.run_in_executor(None, self.reader.read_line, prompt)

        transcript = asyncio.ensure_future(self.queue.get())
        done, _ = await asyncio.wait(
            {self._pending_line, transcript},
            return_when=asyncio.FIRST_COMPLETED,
        )

        if transcript in done:
            # The line read, if still pending, is raced again next step
            await self.handle_transcript(transcript.result())
            return
        transcript.cancel()

        future, self._pending_line = self._pending_line, None
        try:
            line = future.result()
        except KeyboardInterrupt:
            return
        except EOFError:
            self.console.print("CTRL-D Quitted")
            self._should_exit = True
            return
        except Exception as e:
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")
            self._should_exit = True
            return

        await self.handle_line(line)

    async def handle_line(self, line: str) -> None:
        """Classify one line of input and act on it."""
        question = line.strip()

        if question == MULTI_LINE_DELIMITER:
            await self._toggle_multi_line()
            return

        if self.multi_line_mode:
            self._multi_line_buffer.append(line)
            return

        if not question:
            return

        if question == QUIT_TOKEN:
            self._should_exit = True
        elif question == CLEAR_SCREEN_TOKEN:
            await self._dispatch("cls")
        elif question == REPEAT_TOKEN:
            await self._repeat_last()
        elif question == TRANSCRIPT_TOKEN:
            await self.inject_file(self.transcript_path)
        elif question == MIC_TOKEN:
            await self._dispatch("mic")
        elif question == FILE_DIRECTIVE or question.startswith(FILE_DIRECTIVE + " "):
            filename = question[len(FILE_DIRECTIVE) :].strip()
            if not filename:
                self.console.print("Usage: .file <filename>")
                return
            await self.inject_file(Path(filename).expanduser())
        elif question.startswith("/"):
            self.reader.add_history(line)
            if await self._dispatch(question[1:]):
                self._should_exit = True
        else:
            self.last_input = question
            await self.run_turn(question)

    async def handle_transcript(self, content: str) -> None:
        """Answer a transcript forwarded by the watcher."""
        self.console.print(f"[magenta]--[/magenta] {TRANSCRIPT_FILENAME}")
        self.console.print(preview(content), markup=False, highlight=False)
        self.console.print(f"[green]Response from machine (based on {TRANSCRIPT_FILENAME}):[/green]")
        self.signal.announce_ready()
        await self.run_turn(content)

    async def inject_file(self, path: Path) -> None:
        """Send a file's trimmed content as a turn."""
        if not path.is_file():
            self.console.print(f"[yellow]Skip: {escape(str(path))} does not exist[/yellow]")
            return

        try:
            content = await asyncio.to_thread(read_locked, path)
        except OSError as e:
            self.console.print(f"[red]Error: failed to read {escape(str(path))}: {escape(str(e))}[/red]")
            return

        content = content.strip()
        if not content:
            self.console.print(f"[yellow]Skip: {escape(str(path))} is empty[/yellow]")
            return

        self.console.print(f"[yellow]Preview:[/yellow] --- load from {escape(str(path))} ---")
        self.console.print(preview(content), markup=False, highlight=False)
        self.console.print("[green]Machine response:[/green]")
        await self.run_turn(content)

    async def run_turn(self, text: str) -> None:
        """Submit a turn and render the reply, bracketed by busy/ready.

        A failed model call is reported and the loop carries on; the user
        message stays in the conversation.
        """
        self.signal.announce_busy()
        try:
            reply = await self.state.submit_turn(text)
            if isinstance(reply, TurnResult):
                print_reply(self.console, reply.text)
            else:
                await self._render_stream(reply)
        except Exception as e:
            log.debug("Turn failed", exc_info=True)
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")
        finally:
            self.signal.announce_ready()

    async def _render_stream(self, events: AsyncIterator[TurnEvent]) -> None:
        printer = StreamPrinter(self.console)
        try:
            async for event in events:
                if isinstance(event, TextChunk):
                    printer.feed(event.text)
        finally:
            printer.finish()

    async def _dispatch(self, command: str) -> bool:
        try:
            return await self.dispatcher.dispatch(command)
        except Exception as e:
            log.debug("Command failed: /%s", command, exc_info=True)
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")
            return False

    async def _toggle_multi_line(self) -> None:
        if not self.multi_line_mode:
            self.multi_line_mode = True
            self.console.print("Entering multi-line mode. Type ':::' to finish.")
            return

        self.multi_line_mode = False
        full_input = "\n".join(self._multi_line_buffer)
        self._multi_line_buffer.clear()
        if not full_input:
            return
        self.console.print("[bright_green]Multi-line input:[/bright_green]")
        self.console.print(full_input, markup=False, highlight=False)
        await self.run_turn(full_input)

    async def _repeat_last(self) -> None:
        if not self.last_input:
            self.console.print("No previous input to repeat.")
            return
        self.console.print(f"[bright_green]>[/bright_green] {escape(self.last_input)}")
        await self.run_turn(self.last_input)


async def run_interactive(
    config: Config,
    model: str,
    *,
    stream: bool = False,
    provider: LLMProvider | None = None,
) -> int:
    """Build a session from config and run it."""
    temp_dir = Path(config.temp_dir)
    sessions_dir = get_sessions_dir()

    vocabulary = Vocabulary(path=get_wordlist_path())
    vocabulary.load()

    state = ConversationState(
        provider or LiteLLMProvider(model),
        model,
        stream_mode=stream,
        prompt_string=config.user_prompt or DEFAULT_PROMPT,
        reply_path=get_temp_file_path(temp_dir, REPLY_FILENAME),
    )
    dispatcher = CommandDispatcher(
        state,
        vocabulary,
        sessions_dir,
        recording_path=get_temp_file_path(temp_dir, RECORDING_FILENAME),
        aliases=config.aliases,
    )
    reader = LineReader(get_history_path(), ChatCompleter(vocabulary, sessions_dir))

    signal = FileSignal.in_temp_dir(temp_dir)
    transcript_path = get_temp_file_path(temp_dir, TRANSCRIPT_FILENAME)
    queue = make_transcript_queue()
    watcher = TranscriptWatcher(
        transcript_path,
        queue,
        signal,
        poll_interval=config.watcher.poll_interval,
    )

    loop = SessionLoop(
        state,
        dispatcher,
        reader,
        signal,
        watcher,
        queue,
        transcript_path=transcript_path,
    )
    with patch_stdout(raw=True):
        return await loop.run()
