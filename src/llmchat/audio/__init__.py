"""Audio input.

Only the result types are exported here: importing sounddevice needs the
PortAudio library, so ``llmchat.audio.mic`` is imported on first use.
"""

from llmchat.audio.result import CaptureOutcome, CaptureResult

__all__ = [
    "CaptureOutcome",
    "CaptureResult",
]
