"""Unified configuration for the assistant client."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from jarvis_client.services.prompts import GREETING, SYSTEM_PROMPT


class Settings(BaseSettings):
    """Global settings, read from the environment (JARVIS_*), .env and config.json."""

    model_config = SettingsConfigDict(
        env_prefix="JARVIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Generation backend
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_timeout: float = 60.0
    temperature: float = 0.7

    # Conversation
    greeting: str = GREETING
    system_prompt: str = SYSTEM_PROMPT

    # Speech
    speech_enabled: bool = True
    whisper_model_path: str | None = None
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"
    language: str = "en"
    piper_model_path: str | None = None
    input_device: str | None = None
    output_device: str | None = None
    vad_aggressiveness: int = 2
    silence_ms: int = 800

    # Logs
    log_dir: str = "logs"
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.json_config_settings_source,
            file_secret_settings,
        )

    @staticmethod
    def json_config_settings_source() -> dict[str, object]:
        """Load config.json from the working directory when present."""
        config_path = Path.cwd() / "config.json"
        if config_path.is_file():
            try:
                return json.loads(config_path.read_text(encoding="utf-8"))
            except ValueError:
                return {}
        return {}

    def masked(self) -> dict[str, object]:
        """Dump the settings with secrets hidden."""
        data = self.model_dump()
        if data.get("gemini_api_key"):
            data["gemini_api_key"] = "***"
        return data


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
