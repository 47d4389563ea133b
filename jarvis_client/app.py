"""Assembly of the assistant from its settings."""

from __future__ import annotations

from jarvis_client.audio.engine import NullSpeechEngine, build_speech_engine
from jarvis_client.core.config import Settings
from jarvis_client.runtime.orchestrator import Orchestrator
from jarvis_client.services.gemini import GeminiClient


def build_orchestrator(settings: Settings, *, speech: bool = True) -> Orchestrator:
    """Wire the Gemini backend and the best available speech engine."""
    engine = build_speech_engine(settings) if speech else NullSpeechEngine()
    return Orchestrator(GeminiClient(settings), engine, greeting=settings.greeting)
