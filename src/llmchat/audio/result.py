"""Outcome of a microphone capture."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class CaptureOutcome(Enum):
    """How a capture ended."""

    CAPTURED = "captured"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class CaptureResult:
    """Result of a capture attempt."""

    outcome: CaptureOutcome
    path: Path | None = None
    message: str | None = None

    @classmethod
    def captured(cls, path: Path) -> CaptureResult:
        return cls(CaptureOutcome.CAPTURED, path=path)

    @classmethod
    def cancelled(cls) -> CaptureResult:
        return cls(CaptureOutcome.CANCELLED)

    @classmethod
    def error(cls, message: str) -> CaptureResult:
        return cls(CaptureOutcome.ERROR, message=message)
