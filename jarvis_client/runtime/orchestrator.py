"""Request/response cycle of the assistant."""

from __future__ import annotations

from typing import Optional

from jarvis_client.core.errors import DirectiveParseError
from jarvis_client.core.logger import assistant as logger, interaction_scope
from jarvis_client.runtime.speech import SpeechCoordinator, SpeechEngine
from jarvis_client.services.directives import parse_directive
from jarvis_client.services.gemini import GenerationBackend
from jarvis_client.services.prompts import CONNECTION_APOLOGY, MUSIC_APOLOGY, QUICK_COMMANDS
from jarvis_client.services.schemas import Message, NowPlaying, PlayMusic, Role
from jarvis_client.state.conversation import ConversationStore
from jarvis_client.state.status import Status, StatusStateMachine


class Orchestrator:
    """Compose the conversation, the status machine, the backend and speech."""

    def __init__(
        self,
        backend: GenerationBackend,
        engine: SpeechEngine,
        *,
        greeting: str | None = None,
    ) -> None:
        self.backend = backend
        self.store = ConversationStore(greeting)
        self.status = StatusStateMachine()
        self.speech = SpeechCoordinator(engine, self.status)
        self.speech.bind_transcripts(self.handle_user_input)
        self.now_playing: Optional[NowPlaying] = None
        self._in_flight = False

    @property
    def busy(self) -> bool:
        """True while a reply is being generated."""
        return self._in_flight

    async def handle_user_input(self, text: str) -> Optional[Message]:
        """Run one exchange; returns the assistant message, or None when ignored."""
        if not text or not text.strip():
            return None
        if self._in_flight:
            logger.warning("input ignored, a reply is still pending")
            return None

        self._in_flight = True
        try:
            with interaction_scope():
                history = self.store.messages
                self.store.append(Role.USER, text)
                # Drop any reply still being spoken.
                self.speech.cancel_speech()
                self.status.begin_thinking()
                logger.info("user input accepted (%d chars)", len(text))
                try:
                    response = await self.backend.generate(text, history)
                except Exception as exc:
                    logger.error("generation failed: %r", exc)
                    self.status.fail()
                    reply = self.store.append(Role.ASSISTANT, CONNECTION_APOLOGY)
                    self.status.recover()
                    return reply
                return self._apply_response(response)
        finally:
            if self.status.current is Status.THINKING:
                self.status.end_thinking()
            self._in_flight = False

    async def handle_quick_command(self, key: str) -> Optional[Message]:
        """Expand a quick command into its canned prompt."""
        prompt = QUICK_COMMANDS.get(key)
        if prompt is None:
            logger.info("unknown quick command %r", key)
            return None
        return await self.handle_user_input(prompt)

    def toggle_listening(self) -> bool:
        """Start or stop capture; returns True when listening afterwards."""
        if self.speech.is_listening:
            self.speech.stop_listening()
            return False
        return self.speech.start_listening()

    def clear_now_playing(self) -> None:
        self.now_playing = None

    def _apply_response(self, response: str) -> Message:
        try:
            directive = parse_directive(response)
        except DirectiveParseError as exc:
            logger.warning("music directive rejected: %s", exc)
            return self.store.append(Role.ASSISTANT, MUSIC_APOLOGY)

        if isinstance(directive, PlayMusic):
            self.now_playing = directive.now_playing()
            logger.info("now playing %r", directive.song)
            content = directive.confirmation
        else:
            content = directive.content
        reply = self.store.append(Role.ASSISTANT, content)
        self.speech.speak(content)
        return reply
