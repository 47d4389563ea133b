"""Voice activity detection utilities."""

from __future__ import annotations

from dataclasses import dataclass

import webrtcvad


_VALID_SAMPLE_RATES = (8000, 16_000, 32_000, 48_000)
_VALID_FRAME_DURATIONS_MS = (10, 20, 30)


@dataclass(slots=True)
class VADConfig:
    """WebRTC VAD configuration."""

    aggressiveness: int = 2  # 0 (sensitive) to 3 (strict)


class VoiceActivityDetector:
    """Wrapper around the WebRTC VAD implementation."""

    def __init__(self, config: VADConfig | None = None) -> None:
        self.config = config or VADConfig()
        self.config.aggressiveness = max(0, min(3, self.config.aggressiveness))
        self._vad = webrtcvad.Vad(self.config.aggressiveness)

    def is_speech(self, frame: bytes, sample_rate: int) -> bool:
        """Return True when the 16-bit mono frame contains speech."""
        if sample_rate not in _VALID_SAMPLE_RATES:
            raise ValueError(f"Unsupported VAD sample rate: {sample_rate}")
        return self._vad.is_speech(self._fit_frame(frame, sample_rate), sample_rate)

    @staticmethod
    def _fit_frame(frame: bytes, sample_rate: int) -> bytes:
        """Pad or trim to the closest frame duration WebRTC VAD accepts."""
        samples = len(frame) // 2
        if samples == 0:
            return frame
        target = min(
            (sample_rate * duration // 1000 for duration in _VALID_FRAME_DURATIONS_MS),
            key=lambda expected: abs(expected - samples),
        )
        target_bytes = target * 2
        if len(frame) >= target_bytes:
            return frame[:target_bytes]
        return frame + bytes(target_bytes - len(frame))
