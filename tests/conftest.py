from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

import pytest

from jarvis_client.core.errors import SpeechUnsupportedError
from jarvis_client.services.schemas import Message


class FakeEngine:
    """Speech engine double emitting synthetic events."""

    def __init__(self, supported: bool = True, hold: bool = False) -> None:
        self.supported = supported
        self.spoken: list[str] = []
        self.capturing = False
        self.cancelled = 0
        self.release = asyncio.Event() if hold else None
        self.fail_with: Optional[Exception] = None
        self.capture_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self._on_transcript: Optional[Callable[[str], None]] = None
        self._on_capture_end: Optional[Callable[[], None]] = None

    def bind(self, on_transcript, on_capture_end) -> None:
        self._on_transcript = on_transcript
        self._on_capture_end = on_capture_end

    def start_capture(self) -> None:
        if not self.supported:
            raise SpeechUnsupportedError("no microphone")
        if self.capture_error is not None:
            raise self.capture_error
        self.capturing = True

    def stop_capture(self) -> None:
        self.capturing = False
        if self.stop_error is not None:
            raise self.stop_error

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        if self.fail_with is not None:
            raise self.fail_with
        if self.release is not None:
            await self.release.wait()

    def cancel_speech(self) -> None:
        self.cancelled += 1

    # Synthetic engine events
    def emit_transcript(self, text: str) -> None:
        assert self._on_transcript is not None
        self._on_transcript(text)

    def end_capture(self) -> None:
        assert self._on_capture_end is not None
        self.capturing = False
        self._on_capture_end()


class FakeBackend:
    """Generation backend returning a canned reply or raising."""

    def __init__(self, reply: str | Exception = "At your service.", hold: bool = False) -> None:
        self.reply = reply
        self.calls: list[tuple[str, tuple[Message, ...]]] = []
        self.release = asyncio.Event() if hold else None

    async def generate(self, text: str, history: Sequence[Message]) -> str:
        self.calls.append((text, tuple(history)))
        if self.release is not None:
            await self.release.wait()
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    return FakeEngine


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    return FakeBackend
