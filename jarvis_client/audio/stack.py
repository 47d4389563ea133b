"""Local engine wired to sounddevice, WebRTC VAD, faster-whisper and Piper."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from jarvis_client.core.config import Settings

from .capture import CaptureConfig, MicrophoneCapture
from .local import LocalSpeechEngine
from .playback import PlaybackConfig, SpeechPlayback
from .transcriber import FasterWhisperEngine, WhisperConfig
from .tts import PiperConfig, PiperTTS
from .vad import VADConfig, VoiceActivityDetector


class _Models:
    """Load Whisper and Piper on first use; both are slow to initialise."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._lock = threading.Lock()
        self._whisper: Optional[FasterWhisperEngine] = None
        self._tts: Optional[PiperTTS] = None

    def transcribe(self, pcm: bytes) -> str:
        with self._lock:
            if self._whisper is None:
                self._whisper = FasterWhisperEngine(
                    WhisperConfig(
                        model_path=Path(self.settings.whisper_model_path or ""),
                        device=self.settings.whisper_device,
                        compute_type=self.settings.whisper_compute_type,
                        language=self.settings.language or None,
                    )
                )
            whisper = self._whisper
        return whisper.transcribe_pcm(pcm)

    def synthesize(self, text: str) -> tuple[bytes, int, int]:
        with self._lock:
            if self._tts is None:
                self._tts = PiperTTS(PiperConfig(model_path=Path(self.settings.piper_model_path or "")))
            tts = self._tts
        return tts.synthesize(text)


def build_local_engine(settings: Settings) -> LocalSpeechEngine:
    models = _Models(settings)
    capture = MicrophoneCapture(
        CaptureConfig(device_name=settings.input_device, silence_ms=settings.silence_ms),
        VoiceActivityDetector(VADConfig(aggressiveness=settings.vad_aggressiveness)),
    )

    def open_player(sample_rate: int, channels: int) -> SpeechPlayback:
        return SpeechPlayback(
            PlaybackConfig(sample_rate=sample_rate, channels=channels, device_name=settings.output_device)
        )

    return LocalSpeechEngine(
        settings,
        capture=capture,
        transcribe=models.transcribe,
        synthesize=models.synthesize,
        open_player=open_player,
    )
