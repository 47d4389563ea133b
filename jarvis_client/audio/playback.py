"""Speech playback through sounddevice."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass

import sounddevice as sd

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PlaybackConfig:
    """Playback configuration."""

    sample_rate: int = 22_050
    channels: int = 1
    device_name: str | None = None


class SpeechPlayback:
    """Output stream for one synthesized utterance."""

    def __init__(self, config: PlaybackConfig) -> None:
        self.config = config
        self._buffer = deque[bytes]()
        self._lock = threading.RLock()
        self._stream: sd.RawOutputStream | None = None

    def play(self, pcm_data: bytes) -> None:
        """Queue a PCM buffer and make sure the stream runs."""
        if not pcm_data:
            return
        with self._lock:
            self._buffer.append(pcm_data)
            if self._stream is None:
                self._stream = sd.RawOutputStream(
                    samplerate=self.config.sample_rate,
                    channels=self.config.channels,
                    dtype="int16",
                    callback=self._on_write,
                    device=self.config.device_name,
                )
                self._stream.start()

    def stop(self) -> None:
        """Stop playback and clear the buffer."""
        with self._lock:
            self._buffer.clear()
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None

    def _on_write(self, outdata: bytearray, frames: int, time, status) -> None:  # type: ignore[override]  # noqa: ANN401
        if status:  # pragma: no cover
            LOGGER.warning("Playback status: %s", status)
        with self._lock:
            if not self._buffer:
                outdata[:] = b"\x00" * len(outdata)
                return
            chunk = self._buffer.popleft()
            if len(chunk) >= len(outdata):
                outdata[:] = chunk[: len(outdata)]
                remainder = chunk[len(outdata) :]
                if remainder:
                    self._buffer.appendleft(remainder)
            else:
                outdata[: len(chunk)] = chunk
                outdata[len(chunk) :] = b"\x00" * (len(outdata) - len(chunk))
