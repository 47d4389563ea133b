"""Text-to-speech helpers using Piper."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from piper import PiperVoice, SynthesisConfig


@dataclass(slots=True)
class PiperConfig:
    """Piper model configuration."""

    model_path: Path
    length_scale: float = 1.0

    @property
    def config_path(self) -> Path:
        return self.model_path.with_name(self.model_path.name + ".json")


class PiperTTS:
    """Thin wrapper around PiperVoice."""

    def __init__(self, config: PiperConfig) -> None:
        self.config = config
        if not config.model_path.exists():
            raise FileNotFoundError(f"Piper model not found: {config.model_path}")
        self._voice = PiperVoice.load(str(config.model_path), str(config.config_path))

    def synthesize(self, text: str) -> tuple[bytes, int, int]:
        """Return (pcm_s16le, sample_rate, channels) for the given text."""
        text = self._sanitize_text(text)
        if not text:
            return b"", 0, 1
        syn_config = SynthesisConfig(length_scale=self.config.length_scale)
        pcm = bytearray()
        sample_rate, channels = 0, 1
        for chunk in self._voice.synthesize(text, syn_config=syn_config):
            pcm += chunk.audio_int16_bytes
            sample_rate = chunk.sample_rate
            channels = chunk.sample_channels or 1
        return bytes(pcm), sample_rate, channels

    @staticmethod
    def _sanitize_text(text: str) -> str:
        """Drop markdown symbols that would otherwise be read aloud."""
        cleaned = re.sub(r"[*_`#<>]", " ", text)
        return re.sub(r"\s+", " ", cleaned).strip()
