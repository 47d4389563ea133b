"""Activity phase of the assistant."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from jarvis_client.core.logger import assistant as logger


class Status(str, Enum):
    """What the assistant is currently doing."""

    IDLE = "IDLE"
    LISTENING = "LISTENING"
    THINKING = "THINKING"
    SPEAKING = "SPEAKING"
    ERROR = "ERROR"


StatusListener = Callable[[Status, Status], None]


class StatusStateMachine:
    """Single source of truth for the current status.

    Every transition returns ``True`` when applied and ``False`` when refused.
    Transitions back to IDLE only apply while the status is still the one they
    close, so a stale "listening ended" or "speaking ended" signal never
    overrides a newer phase.
    """

    def __init__(self) -> None:
        self._status = Status.IDLE
        self._listeners: list[StatusListener] = []

    @property
    def current(self) -> Status:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener called with (previous, current); returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def begin_listening(self) -> bool:
        return self._move("begin_listening", Status.LISTENING, allowed=(Status.IDLE,))

    def end_listening(self) -> bool:
        return self._move("end_listening", Status.IDLE, allowed=(Status.LISTENING,))

    def begin_thinking(self) -> bool:
        return self._move("begin_thinking", Status.THINKING, allowed=tuple(Status))

    def end_thinking(self) -> bool:
        return self._move("end_thinking", Status.IDLE, allowed=(Status.THINKING,))

    def begin_speaking(self) -> bool:
        return self._move(
            "begin_speaking",
            Status.SPEAKING,
            allowed=(Status.THINKING, Status.IDLE, Status.SPEAKING),
        )

    def end_speaking(self) -> bool:
        return self._move("end_speaking", Status.IDLE, allowed=(Status.SPEAKING,))

    def fail(self) -> bool:
        return self._move("fail", Status.ERROR, allowed=tuple(Status))

    def recover(self) -> bool:
        return self._move("recover", Status.IDLE, allowed=(Status.ERROR,))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _move(self, name: str, target: Status, *, allowed: tuple[Status, ...]) -> bool:
        previous = self._status
        if previous not in allowed:
            logger.debug("%s refused from %s", name, previous.value)
            return False
        if previous is target:
            return True
        self._status = target
        logger.debug("status %s -> %s (%s)", previous.value, target.value, name)
        for listener in list(self._listeners):
            listener(previous, target)
        return True
