"""Conversation history for the running session."""

from __future__ import annotations

from typing import Callable, Iterator

from jarvis_client.services.schemas import Message, Role


MessageListener = Callable[[Message], None]


class ConversationStore:
    """Append-only, ordered message log."""

    def __init__(self, greeting: str | None = None) -> None:
        self._messages: list[Message] = []
        self._listeners: list[MessageListener] = []
        if greeting:
            self.append(Role.ASSISTANT, greeting)

    def append(self, role: Role, content: str) -> Message:
        message = Message(role=role, content=content)
        self._messages.append(message)
        for listener in list(self._listeners):
            listener(message)
        return message

    def subscribe(self, listener: MessageListener) -> None:
        """Call ``listener`` with every message appended from now on."""
        self._listeners.append(listener)

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the log, in append order."""
        return tuple(self._messages)

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
