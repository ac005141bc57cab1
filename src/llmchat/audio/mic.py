"""Microphone capture to a WAV file.

Records from the default input device until the user presses Enter (keep)
or types ``c`` + Enter (discard), or the time limit runs out. A VU meter
shows the peak level of the most recent block while recording.

The recording only lands on disk; turning it into text is the job of the
external transcriber, whose output reaches the chat via the transcript
watcher.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

import numpy as np
import sounddevice as sd
import soundfile as sf
from rich.console import Console
from rich.live import Live
from rich.text import Text

from llmchat.audio.result import CaptureResult
from llmchat.logging import get_logger

log = get_logger("mic")

DEFAULT_MAX_SECONDS = 30.0
METER_WIDTH = 50
_REFRESH_SECONDS = 0.1


def vu_meter(level: float) -> Text:
    """Render a peak level (0..1) as a colored bar."""
    level = min(max(level, 0.0), 1.0)
    if level < 0.3:
        style, label = "green", " Low  "
    elif level < 0.7:
        style, label = "yellow", "Medium"
    else:
        style, label = "red", " High "

    bar = "=" * int(level * METER_WIDTH)
    text = Text("VU Meter: [")
    text.append(f"{bar:<{METER_WIDTH}}", style=style)
    text.append(f"] {level:.2f} (")
    text.append(label, style=style)
    text.append(")  Enter=stop  c+Enter=cancel")
    return text


def _stdin_line_ready() -> bool:
    """True if a full line is waiting on stdin (never blocks)."""
    if sys.platform == "win32":
        import msvcrt

        return bool(msvcrt.kbhit())

    import select

    try:
        ready, _, _ = select.select([sys.stdin], [], [], 0)
    except (OSError, ValueError):
        return False
    return bool(ready)


def _read_stop_request() -> str | None:
    """Return "stop"/"cancel" if the user asked for it, else None."""
    if not _stdin_line_ready():
        return None
    line = sys.stdin.readline()
    return "cancel" if line.strip().lower() in ("c", "cancel") else "stop"


def capture(
    output_path: Path,
    *,
    max_seconds: float = DEFAULT_MAX_SECONDS,
    console: Console | None = None,
    poll_stop: Callable[[], str | None] = _read_stop_request,
    cancel: threading.Event | None = None,
) -> CaptureResult:
    """Record from the default input device into output_path.

    Blocks until stopped, cancelled or max_seconds elapse.

    Args:
        output_path: WAV file to write (float32 samples).
        max_seconds: Recording time limit.
        console: Console for the VU meter.
        poll_stop: Returns "stop", "cancel" or None; polled every 100 ms.
        cancel: Set from another thread (the SIGINT handler) to discard
            the recording.

    Returns:
        CaptureResult describing the outcome. Never raises for device errors.
    """
    console = console or Console()
    frames: list[np.ndarray] = []
    level = [0.0]
    lock = threading.Lock()

    def callback(indata: np.ndarray, _frames: int, _time_info: object, status: object) -> None:
        if status:
            log.debug("input status: %s", status)
        block = indata.copy()
        with lock:
            frames.append(block)
            level[0] = float(np.abs(block).max()) if block.size else 0.0

    try:
        device = sd.query_devices(kind="input")
        samplerate = int(device["default_samplerate"])
        channels = max(1, min(int(device["max_input_channels"]), 2))
    except (sd.PortAudioError, ValueError, KeyError) as e:
        return CaptureResult.error(f"No input device available: {e}")

    request: str | None = None
    try:
        stream = sd.InputStream(
            samplerate=samplerate,
            channels=channels,
            dtype="float32",
            callback=callback,
        )
        with stream, Live(vu_meter(0.0), console=console, transient=True) as live:
            started = time.monotonic()
            while time.monotonic() - started < max_seconds:
                if cancel is not None and cancel.is_set():
                    request = "cancel"
                    break
                request = poll_stop()
                if request is not None:
                    break
                with lock:
                    current = level[0]
                live.update(vu_meter(current))
                time.sleep(_REFRESH_SECONDS)
    except KeyboardInterrupt:
        return CaptureResult.cancelled()
    except (sd.PortAudioError, OSError) as e:
        return CaptureResult.error(str(e))

    if request == "cancel":
        return CaptureResult.cancelled()

    with lock:
        recorded = list(frames)
    if not recorded:
        return CaptureResult.error("No audio captured")

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        sf.write(str(output_path), np.concatenate(recorded, axis=0), samplerate, subtype="FLOAT")
    except (OSError, RuntimeError) as e:
        return CaptureResult.error(f"Failed to write {output_path}: {e}")

    log.debug("Recorded %d blocks to %s", len(recorded), output_path)
    return CaptureResult.captured(output_path)
