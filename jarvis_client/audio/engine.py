"""Speech engine selection."""

from __future__ import annotations

from typing import Callable

from jarvis_client.core.config import Settings
from jarvis_client.core.errors import SpeechUnsupportedError
from jarvis_client.core.logger import speech as logger
from jarvis_client.runtime.speech import SpeechEngine

from .local import local_models_available


class NullSpeechEngine:
    """Engine for environments without speech support."""

    supported = False

    def bind(self, on_transcript: Callable[[str], None], on_capture_end: Callable[[], None]) -> None:
        return None

    def start_capture(self) -> None:
        raise SpeechUnsupportedError("speech capture is not available")

    def stop_capture(self) -> None:
        raise SpeechUnsupportedError("speech capture is not available")

    async def speak(self, text: str) -> None:
        raise SpeechUnsupportedError("speech synthesis is not available")

    def cancel_speech(self) -> None:
        return None


def _local_engine_factory() -> Callable[[Settings], SpeechEngine]:
    """Import the audio stack (the optional ``voice`` extra)."""
    from .stack import build_local_engine

    return build_local_engine


def build_speech_engine(settings: Settings) -> SpeechEngine:
    """Return the local engine when its models and audio stack are usable."""
    if not settings.speech_enabled:
        return NullSpeechEngine()
    if not (settings.whisper_model_path and settings.piper_model_path):
        logger.info("speech models not configured, speech disabled")
        return NullSpeechEngine()
    if not local_models_available(settings):
        logger.info("speech models not found on disk, speech disabled")
        return NullSpeechEngine()
    try:
        factory = _local_engine_factory()
    except (ImportError, OSError) as exc:
        # OSError: sounddevice without a PortAudio library.
        logger.warning("audio stack unavailable, speech disabled: %r", exc)
        return NullSpeechEngine()
    return factory(settings)
