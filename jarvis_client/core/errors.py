from __future__ import annotations


class AssistantError(Exception):
    """Base class for recoverable assistant failures."""


class BackendError(AssistantError):
    """The generation service could not produce a reply."""


class DirectiveParseError(AssistantError):
    """A structured directive carried a malformed payload."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class SpeechUnsupportedError(AssistantError):
    """Speech capture or synthesis is not available in this environment."""
