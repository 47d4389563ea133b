"""Split a stream of voiced/unvoiced frames into utterances."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class UtteranceSegmenter:
    """Accumulate frames of one utterance and detect its end.

    Frames are ignored until the first voiced one. Afterwards every frame is
    kept, and the utterance ends once ``silence_frames`` consecutive unvoiced
    frames have been seen.
    """

    silence_frames: int
    _frames: list[bytes] = field(default_factory=list)
    _trailing_silence: int = 0
    _started: bool = False
    _finished: bool = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return self._finished

    def push(self, frame: bytes, voiced: bool) -> bool:
        """Feed one frame; returns True exactly once, when the utterance ends."""
        if self._finished:
            return False
        if not self._started:
            if not voiced:
                return False
            self._started = True
        self._frames.append(frame)
        self._trailing_silence = 0 if voiced else self._trailing_silence + 1
        if self._trailing_silence >= self.silence_frames:
            self._finished = True
            return True
        return False

    def take(self) -> bytes:
        """Return the captured audio (empty when no speech was heard) and reset."""
        audio = b"".join(self._frames) if self._started else b""
        self._frames.clear()
        self._trailing_silence = 0
        self._started = False
        self._finished = False
        return audio
