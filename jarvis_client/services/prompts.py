"""Canned texts exchanged with the user and the generation service."""

from __future__ import annotations

from typing import Final


GREETING: Final[str] = "Greetings. I am J.A.R.V.I.S. How may I assist you today?"

MUSIC_MARKER: Final[str] = "PLAY_SONG::"

SYSTEM_PROMPT: Final[str] = (
    "You are J.A.R.V.I.S., a calm, witty and highly capable personal assistant. "
    "Answer concisely in plain prose suitable for being read aloud: no markdown, "
    "no lists, no emojis. "
    "When the user asks you to play a song or some music, reply with exactly one line "
    f'of the form {MUSIC_MARKER}{{"song": "<title or search terms>", "artist": "<artist>"}} '
    "and nothing else. Omit the artist field when it is unknown."
)

MUSIC_APOLOGY: Final[str] = "My apologies, I had trouble processing that music request. Please try again."
CONNECTION_APOLOGY: Final[str] = "My apologies, I seem to be experiencing a connection issue."

QUICK_COMMANDS: Final[dict[str, str]] = {
    "weather": "What is the current weather?",
    "news": "Give me the latest news headlines.",
    "music": "Play some upbeat electronic music",
    "settings": "Open settings panel.",
}
