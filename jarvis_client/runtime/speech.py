"""Bridge between the speech engine callbacks and the orchestration layer."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol

from jarvis_client.core.logger import speech as logger
from jarvis_client.state.status import StatusStateMachine


TranscriptCallback = Callable[[str], None]
CaptureEndCallback = Callable[[], None]
TranscriptHandler = Callable[[str], Awaitable[Any]]


class SpeechEngine(Protocol):
    """Platform speech capability.

    Callbacks passed to :meth:`bind` must be invoked on the event loop thread.
    """

    @property
    def supported(self) -> bool: ...

    def bind(self, on_transcript: TranscriptCallback, on_capture_end: CaptureEndCallback) -> None: ...

    def start_capture(self) -> None: ...

    def stop_capture(self) -> None: ...

    async def speak(self, text: str) -> None: ...

    def cancel_speech(self) -> None: ...


class SpeechCoordinator:
    """Drive capture and synthesis while keeping the status machine consistent."""

    def __init__(self, engine: SpeechEngine, status: StatusStateMachine) -> None:
        self.engine = engine
        self.status = status
        self._handler: Optional[TranscriptHandler] = None
        self._listening = False
        self._session = 0
        self._session_open = False
        self._pending: Optional[str] = None
        self._speech_task: Optional[asyncio.Task[None]] = None
        self._dispatch_tasks: set[asyncio.Task[Any]] = set()
        engine.bind(self._on_transcript, self._on_capture_end)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    @property
    def supported(self) -> bool:
        return self.engine.supported

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def speech_task(self) -> Optional[asyncio.Task[None]]:
        """Task of the utterance being spoken, if any."""
        return self._speech_task

    @property
    def pending_dispatches(self) -> tuple[asyncio.Task[Any], ...]:
        """Transcript handler calls that have not completed yet."""
        return tuple(self._dispatch_tasks)

    def bind_transcripts(self, handler: TranscriptHandler) -> None:
        """Register the coroutine function receiving finalized transcripts."""
        self._handler = handler

    def start_listening(self) -> bool:
        """Start a new capture session; returns False when it could not start."""
        if not self.supported:
            logger.info("speech capture unsupported, start_listening ignored")
            return False
        if self._listening:
            return True
        if self._speech_task is not None:
            self.cancel_speech()
        if not self.status.begin_listening():
            logger.info("cannot listen while %s", self.status.current.value)
            return False
        try:
            self.engine.start_capture()
        except Exception as exc:
            logger.warning("capture unavailable: %r", exc)
            self.status.end_listening()
            return False
        self._listening = True
        self._session += 1
        self._session_open = True
        self._pending = None
        logger.info("listening session %d started", self._session)
        return True

    def stop_listening(self) -> None:
        """End the current capture session and dispatch its transcript if ready."""
        if not self._listening:
            return
        self._listening = False
        try:
            self.engine.stop_capture()
        except Exception as exc:
            logger.warning("capture stop failed: %r", exc)
        self.status.end_listening()
        logger.info("listening session %d ended", self._session)
        self._flush_transcript()

    def speak(self, text: str) -> Optional[asyncio.Task[None]]:
        """Vocalize ``text``, replacing any utterance in progress."""
        text = text.strip()
        if not text or not self.supported:
            return None
        if not self.status.begin_speaking():
            logger.info("speak refused while %s", self.status.current.value)
            return None
        previous = self._speech_task
        task = asyncio.create_task(self.engine.speak(text))
        self._speech_task = task
        task.add_done_callback(self._on_speech_done)
        if previous is not None and not previous.done():
            logger.debug("utterance replaced")
            previous.cancel()
        return task

    def cancel_speech(self) -> None:
        """Stop the utterance in progress."""
        task = self._speech_task
        if task is None:
            return
        self._speech_task = None
        task.cancel()
        self.engine.cancel_speech()
        self.status.end_speaking()
        logger.info("utterance cancelled")

    # ------------------------------------------------------------------ #
    # Engine callbacks
    # ------------------------------------------------------------------ #
    def _on_transcript(self, text: str) -> None:
        if not self._session_open:
            logger.debug("late transcript ignored")
            return
        text = text.strip()
        if not text:
            return
        self._pending = f"{self._pending} {text}" if self._pending else text
        if not self._listening:
            self._flush_transcript()

    def _on_capture_end(self) -> None:
        if self._listening:
            self.stop_listening()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _flush_transcript(self) -> None:
        text = self._pending
        if not text or not self._session_open:
            return
        self._pending = None
        self._session_open = False
        if self._handler is None:
            logger.warning("transcript dropped, no handler bound")
            return
        logger.info("transcript dispatched (%d chars)", len(text))
        task = asyncio.ensure_future(self._handler(text))
        self._dispatch_tasks.add(task)
        task.add_done_callback(self._on_dispatch_done)

    def _on_dispatch_done(self, task: asyncio.Task[Any]) -> None:
        self._dispatch_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("transcript handler failed: %r", exc)

    def _on_speech_done(self, task: asyncio.Task[None]) -> None:
        if task is not self._speech_task:
            return
        self._speech_task = None
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                logger.error("speech failed: %r", exc)
        self.status.end_speaking()
