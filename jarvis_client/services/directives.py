"""Classification of generated responses into plain prose or structured actions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ValidationError

from jarvis_client.core.errors import DirectiveParseError
from jarvis_client.services.prompts import MUSIC_MARKER
from jarvis_client.services.schemas import Directive, PlainText, PlayMusic


class MusicPayload(BaseModel):
    """JSON body following the music marker."""

    song: str
    artist: Optional[str] = None


def parse_directive(text: str) -> Directive:
    """Return the directive encoded in ``text``.

    A response starting with ``PLAY_SONG::`` must carry a JSON object with a
    ``song`` string and an optional ``artist`` string; anything else after the
    marker raises :class:`DirectiveParseError`. Text without the marker is
    returned verbatim as :class:`PlainText`.
    """
    if not text.startswith(MUSIC_MARKER):
        return PlainText(content=text)

    raw = text[len(MUSIC_MARKER) :]
    try:
        payload = MusicPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise DirectiveParseError(f"Invalid music payload: {raw[:200]!r}", raw=raw) from exc
    return PlayMusic(song=payload.song, artist=payload.artist)
