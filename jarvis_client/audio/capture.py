"""Microphone capture producing whole utterances."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable

import sounddevice as sd

from .segmenter import UtteranceSegmenter
from .vad import VoiceActivityDetector

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CaptureConfig:
    """Microphone capture configuration."""

    sample_rate: int = 16_000
    frame_duration_ms: int = 30
    silence_ms: int = 800
    device_name: str | None = None


class MicrophoneCapture:
    """Record the microphone until the speaker falls silent."""

    def __init__(self, config: CaptureConfig, vad: VoiceActivityDetector) -> None:
        self.config = config
        self.vad = vad
        self._on_utterance: Callable[[bytes], None] | None = None
        self._stream: sd.RawInputStream | None = None
        self._lock = Lock()
        self._segmenter = UtteranceSegmenter(
            silence_frames=max(1, config.silence_ms // config.frame_duration_ms),
        )

    def bind(self, on_utterance: Callable[[bytes], None]) -> None:
        """Register the callback receiving a finished utterance (audio thread)."""
        self._on_utterance = on_utterance

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Start microphone capture."""
        with self._lock:
            if self._stream is not None:
                return
            self._segmenter.take()
            frame_size = int(self.config.sample_rate * self.config.frame_duration_ms / 1000)
            self._stream = sd.RawInputStream(
                samplerate=self.config.sample_rate,
                channels=1,
                dtype="int16",
                blocksize=frame_size,
                callback=self._on_frame,
                device=self.config.device_name,
            )
            self._stream.start()
            LOGGER.debug("Microphone capture started.")

    def stop(self) -> bytes:
        """Stop capture and return the audio heard so far (empty if nothing)."""
        with self._lock:
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
                LOGGER.debug("Microphone capture stopped.")
            return self._segmenter.take()

    def _on_frame(self, indata: bytes, frames: int, time, status) -> None:  # type: ignore[override]  # noqa: ANN401
        if status:  # pragma: no cover
            LOGGER.warning("Microphone status: %s", status)
        frame = bytes(indata)
        with self._lock:
            ended = self._segmenter.push(frame, self.vad.is_speech(frame, self.config.sample_rate))
            audio = self._segmenter.take() if ended else b""
        if ended and self._on_utterance is not None:
            self._on_utterance(audio)
