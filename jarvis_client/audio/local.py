"""Speech engine running capture, ASR and TTS on the local machine."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from jarvis_client.core.config import Settings
from jarvis_client.core.errors import SpeechUnsupportedError
from jarvis_client.core.logger import speech as logger


Transcribe = Callable[[bytes], str]
Synthesize = Callable[[str], tuple[bytes, int, int]]


class UtteranceCapture(Protocol):
    """Microphone delivering whole utterances on an audio thread."""

    def bind(self, on_utterance: Callable[[bytes], None]) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> bytes: ...


class Player(Protocol):
    """Output stream for one utterance."""

    def play(self, pcm_data: bytes) -> None: ...

    def stop(self) -> None: ...


PlayerFactory = Callable[[int, int], Player]


def local_models_available(settings: Settings) -> bool:
    """True when both the Whisper and Piper models are configured and present."""
    paths = (settings.whisper_model_path, settings.piper_model_path)
    return all(path and Path(path).exists() for path in paths)


def playback_duration(length_bytes: int, sample_rate: int, channels: int = 1) -> float:
    """Seconds needed to play a PCM_s16le buffer."""
    if length_bytes <= 0 or sample_rate <= 0:
        return 0.0
    return length_bytes / (sample_rate * max(1, channels) * 2)


class LocalSpeechEngine:
    """Hand capture, transcription and synthesis results over to the event loop.

    ``transcribe`` and ``synthesize`` are blocking and run in the default
    executor. The capture callback fires on an audio thread and is marshalled
    onto the loop captured by :meth:`start_capture`.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        capture: UtteranceCapture,
        transcribe: Transcribe,
        synthesize: Synthesize,
        open_player: PlayerFactory,
    ) -> None:
        self.settings = settings
        self.capture = capture
        self.capture.bind(self._handle_utterance)
        self._transcribe_pcm = transcribe
        self._synthesize = synthesize
        self._open_player = open_player
        self._on_transcript: Optional[Callable[[str], None]] = None
        self._on_capture_end: Optional[Callable[[], None]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._player: Optional[Player] = None
        self._transcriptions: set[asyncio.Task[Any]] = set()

    @property
    def supported(self) -> bool:
        return local_models_available(self.settings)

    @property
    def pending_transcriptions(self) -> tuple[asyncio.Task[Any], ...]:
        return tuple(self._transcriptions)

    def bind(self, on_transcript: Callable[[str], None], on_capture_end: Callable[[], None]) -> None:
        self._on_transcript = on_transcript
        self._on_capture_end = on_capture_end

    def start_capture(self) -> None:
        if not self.supported:
            raise SpeechUnsupportedError("Whisper or Piper model missing")
        self._loop = asyncio.get_running_loop()
        self.capture.start()

    def stop_capture(self) -> None:
        self._transcribe(self.capture.stop())

    async def speak(self, text: str) -> None:
        if not self.supported:
            raise SpeechUnsupportedError("Piper model missing")
        loop = asyncio.get_running_loop()
        pcm, sample_rate, channels = await loop.run_in_executor(None, self._synthesize, text)
        if not pcm:
            return
        player = self._open_player(sample_rate, channels)
        self._player = player
        try:
            player.play(pcm)
            # Small guard covering the output buffer latency.
            await asyncio.sleep(playback_duration(len(pcm), sample_rate, channels) + 0.15)
        finally:
            player.stop()
            if self._player is player:
                self._player = None

    def cancel_speech(self) -> None:
        if self._player is not None:
            self._player.stop()
            self._player = None

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _handle_utterance(self, pcm: bytes) -> None:
        """Called on the audio thread when the speaker fell silent."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._finish_utterance, pcm)

    def _finish_utterance(self, pcm: bytes) -> None:
        self.capture.stop()
        self._transcribe(pcm)
        if self._on_capture_end is not None:
            self._on_capture_end()

    def _transcribe(self, pcm: bytes) -> None:
        if not pcm:
            return
        task = asyncio.create_task(self._run_transcription(pcm))
        self._transcriptions.add(task)
        task.add_done_callback(self._transcriptions.discard)

    async def _run_transcription(self, pcm: bytes) -> None:
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, self._transcribe_pcm, pcm)
        except Exception as exc:
            logger.error("transcription failed: %r", exc)
            return
        logger.info("transcript ready (%d chars)", len(text))
        if text and self._on_transcript is not None:
            self._on_transcript(text)
