"""Transcript file watching using polling.

An external speech-to-text tool writes what it heard into ``mic.md`` in
the temp directory. TranscriptWatcher polls that file, and whenever its
content changes to something non-blank it forwards the new text to the
session loop through an asyncio queue, as if the user had typed it.

Polling is used instead of native file notifications, like the config
watcher: it is portable and needs no extra dependencies.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from pathlib import Path

from llmchat.logging import get_logger
from llmchat.session.signals import ExternalSignal, NullSignal
from llmchat.watching.locking import LockError, read_locked

log = get_logger("watching")

# Default poll interval in seconds
DEFAULT_POLL_INTERVAL = 2.0

# One pending transcript at most; a further change waits for the loop to drain it
TRANSCRIPT_QUEUE_SIZE = 1


def make_transcript_queue() -> asyncio.Queue[str]:
    """Create the bounded queue the watcher feeds and the loop drains."""
    return asyncio.Queue(maxsize=TRANSCRIPT_QUEUE_SIZE)


class TranscriptWatcher:
    """Forwards new transcript content to the session loop.

    Each tick: open the file, lock it, read it, unlock it, compare with the
    last forwarded content. Missing files, lock failures and read errors
    skip the tick; the watcher only stops when stopped or cancelled.

    Example:
        queue = make_transcript_queue()
        watcher = TranscriptWatcher(Path("/tmp/mic.md"), queue, signal)
        watcher.start()
        text = await queue.get()
        watcher.stop()
    """

    def __init__(
        self,
        path: Path,
        queue: asyncio.Queue[str],
        signal: ExternalSignal | None = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        reader: Callable[[Path], str] = read_locked,
    ) -> None:
        """Initialize the watcher.

        Args:
            path: Transcript file to poll.
            queue: Queue new content is put on.
            signal: Announces busy when new content is forwarded.
            poll_interval: Seconds between polls.
            reader: Locked whole-file read; swapped out in tests.
        """
        self._path = path
        self._queue = queue
        self._signal = signal or NullSignal()
        self._poll_interval = poll_interval
        self._reader = reader
        self._last_seen = ""
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def last_seen_content(self) -> str:
        """The most recently forwarded transcript text ("" before any)."""
        return self._last_seen

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _read(self) -> str | None:
        try:
            return await asyncio.to_thread(self._reader, self._path)
        except FileNotFoundError:
            return None
        except LockError as e:
            log.warning("%s", e)
            return None
        except OSError as e:
            log.debug("Error reading %s: %s", self._path, e)
            return None

    async def poll_once(self) -> str | None:
        """Run one watcher tick.

        Returns:
            The content forwarded downstream, or None if nothing was.
        """
        content = await self._read()
        if content is None:
            return None
        if not content.strip() or content == self._last_seen:
            return None

        self._last_seen = content
        self._signal.announce_busy()
        log.debug("Forwarding transcript (%d chars)", len(content))
        await self._queue.put(content)
        return content

    async def _poll_loop(self) -> None:
        """Main polling loop."""
        while self._running:
            await asyncio.sleep(self._poll_interval)

            if not self._running:
                break

            await self.poll_once()

    def start(self) -> None:
        """Start polling.

        Must be called from within an async context.
        """
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        log.debug("Transcript watcher started on %s (interval=%.1fs)", self._path, self._poll_interval)

    def stop(self) -> None:
        """Cancel polling. A transcript being forwarded may be dropped."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        log.debug("Transcript watcher stopped")

    async def aclose(self) -> None:
        """Stop polling and wait for the task to finish cancelling."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> TranscriptWatcher:
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
