"""Completion vocabulary shared by the loop, the dispatcher and the completer."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

from filelock import FileLock, Timeout

from llmchat.logging import get_logger

log = get_logger("vocabulary")

SEED_WORDS = (
    "apple",
    "application",
    "banana",
    "blueberry",
    "cherry",
    "cranberry",
    "date",
    "dragonfruit",
    "elderberry",
    "fig",
    "grape",
    "guava",
)


class Vocabulary:
    """Ordered, de-duplicated word collection with its own lock.

    One instance is created per process and handed to whoever needs it.
    The internal lock only guards the in-memory list; it is never held
    while reading or writing the wordlist file.
    """

    def __init__(self, words: Iterable[str] = SEED_WORDS, path: Path | None = None) -> None:
        self._lock = threading.Lock()
        self._words: list[str] = []
        self._path = path
        self._extend(words)

    @property
    def path(self) -> Path | None:
        return self._path

    def _extend(self, words: Iterable[str]) -> int:
        added = 0
        with self._lock:
            for word in words:
                word = word.strip()
                if word and word not in self._words:
                    self._words.append(word)
                    added += 1
        return added

    def __contains__(self, word: object) -> bool:
        with self._lock:
            return word in self._words

    def __len__(self) -> int:
        with self._lock:
            return len(self._words)

    def words(self) -> list[str]:
        """Snapshot of the words in insertion order."""
        with self._lock:
            return list(self._words)

    def matching(self, prefix: str) -> list[str]:
        """Words starting with prefix, compared case-insensitively."""
        prefix = prefix.lower()
        with self._lock:
            return [w for w in self._words if w.lower().startswith(prefix)]

    def add(self, word: str) -> bool:
        """Add a word. Returns False if it was blank or already present."""
        return self._extend([word]) == 1

    def load(self) -> int:
        """Merge words from the wordlist file. Returns how many were new."""
        if self._path is None or not self._path.exists():
            return 0
        try:
            data = self._path.read_text(encoding="utf-8")
        except OSError as e:
            log.warning("Failed to load wordlist from %s: %s", self._path, e)
            return 0
        added = self._extend(data.splitlines())
        log.debug("Loaded %d new words from %s", added, self._path)
        return added

    def save(self) -> bool:
        """Write all words to the wordlist file, one per line.

        Returns:
            True on success. Failures are logged, not raised.
        """
        if self._path is None:
            return False

        data = "\n".join(self.words())
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with FileLock(self._path.with_suffix(".lock"), timeout=10):
                self._path.write_text(data, encoding="utf-8")
        except (OSError, Timeout) as e:
            log.warning("Failed to save wordlist to %s: %s", self._path, e)
            return False
        return True
