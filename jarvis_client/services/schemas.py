"""Data schemas shared by the assistant components."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
from urllib.parse import quote_plus


class Role(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Message:
    """Conversation message; the id is only used for keying, never for ordering."""

    role: Role
    content: str
    id: str = field(default_factory=_new_message_id)


@dataclass(frozen=True, slots=True)
class NowPlaying:
    """Song requested through a music directive."""

    song: str
    artist: Optional[str] = None

    @property
    def youtube_url(self) -> str:
        """YouTube search URL for the song (and artist when known)."""
        terms = f"{self.song} {self.artist}" if self.artist else self.song
        return f"https://www.youtube.com/results?search_query={quote_plus(terms)}"


@dataclass(frozen=True, slots=True)
class PlainText:
    """Response to show and speak verbatim."""

    content: str


@dataclass(frozen=True, slots=True)
class PlayMusic:
    """Structured request to play a song."""

    song: str
    artist: Optional[str] = None

    @property
    def confirmation(self) -> str:
        """Sentence announcing the song to the user."""
        by_artist = f" by {self.artist}" if self.artist else ""
        return f'Of course. Opening YouTube to play "{self.song}"{by_artist}.'

    def now_playing(self) -> NowPlaying:
        return NowPlaying(song=self.song, artist=self.artist)


Directive = Union[PlainText, PlayMusic]
