from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable, Optional

import typer

from jarvis_client.app import build_orchestrator
from jarvis_client.core.config import get_settings
from jarvis_client.runtime.orchestrator import Orchestrator
from jarvis_client.services.prompts import CONNECTION_APOLOGY, MUSIC_APOLOGY, QUICK_COMMANDS
from jarvis_client.services.schemas import Message, NowPlaying, Role
from jarvis_client.state.status import Status


cli = typer.Typer(name="jarvis", help="J.A.R.V.I.S. assistant client")

_APOLOGIES = (CONNECTION_APOLOGY, MUSIC_APOLOGY)


def _echo_message(message: Message) -> None:
    if message.role is Role.ASSISTANT:
        typer.echo(f"jarvis> {message.content}")


def _echo_status(previous: Status, current: Status) -> None:
    typer.echo(f"[{current.value}]")


def _echo_now_playing(now_playing: NowPlaying) -> None:
    typer.echo(f"now playing: {now_playing.youtube_url}")


async def _shutdown(orchestrator: Orchestrator) -> None:
    task = orchestrator.speech.speech_task
    if task is not None:
        await asyncio.wait({task})
    close = getattr(orchestrator.backend, "aclose", None)
    if close is not None:
        await close()


async def _one_shot(
    action: Callable[[Orchestrator], Awaitable[Optional[Message]]],
    speak: bool,
) -> tuple[Optional[Message], Optional[NowPlaying]]:
    orchestrator = build_orchestrator(get_settings(), speech=speak)
    try:
        reply = await action(orchestrator)
    finally:
        await _shutdown(orchestrator)
    return reply, orchestrator.now_playing


def _report(reply: Optional[Message], now_playing: Optional[NowPlaying]) -> None:
    if reply is None:
        typer.echo("No reply.")
        raise typer.Exit(code=1)
    typer.echo(reply.content)
    if now_playing is not None:
        _echo_now_playing(now_playing)
    if reply.content in _APOLOGIES:
        raise typer.Exit(code=1)


@cli.command()
def ask(
    text: str,
    speak: bool = typer.Option(False, "--speak/--no-speak", help="Read the reply aloud"),
) -> None:
    """Send one message and print the reply."""
    _report(*asyncio.run(_one_shot(lambda o: o.handle_user_input(text), speak)))


@cli.command()
def command(
    key: str,
    speak: bool = typer.Option(False, "--speak/--no-speak", help="Read the reply aloud"),
) -> None:
    """Run a quick command (weather, news, music, settings)."""
    if key not in QUICK_COMMANDS:
        typer.echo(f"Unknown command: {key}. Available: {', '.join(QUICK_COMMANDS)}")
        raise typer.Exit(code=2)
    _report(*asyncio.run(_one_shot(lambda o: o.handle_quick_command(key), speak)))


async def _chat_loop(speak: bool) -> None:
    orchestrator = build_orchestrator(get_settings(), speech=speak)
    for message in orchestrator.store:
        _echo_message(message)
    orchestrator.store.subscribe(_echo_message)
    orchestrator.status.subscribe(_echo_status)
    if not orchestrator.speech.supported:
        typer.echo("(speech unavailable, text only)")
    try:
        while True:
            try:
                line = (await asyncio.to_thread(input, "> ")).strip()
            except EOFError:
                break
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break
            if line == "/listen":
                orchestrator.toggle_listening()
                continue
            if line == "/close":
                orchestrator.clear_now_playing()
                continue
            previous = orchestrator.now_playing
            if line.startswith("/"):
                key = line[1:]
                if key not in QUICK_COMMANDS:
                    typer.echo(f"Unknown command: {key}")
                    continue
                await orchestrator.handle_quick_command(key)
            else:
                await orchestrator.handle_user_input(line)
            if orchestrator.now_playing is not None and orchestrator.now_playing is not previous:
                _echo_now_playing(orchestrator.now_playing)
    finally:
        if orchestrator.speech.is_listening:
            orchestrator.speech.stop_listening()
        orchestrator.speech.cancel_speech()
        await _shutdown(orchestrator)


@cli.command()
def chat(
    speech: bool = typer.Option(True, "--speech/--no-speech", help="Enable voice capture and playback"),
) -> None:
    """Interactive session; /weather /news /music /settings /listen /close /quit."""
    asyncio.run(_chat_loop(speech))


@cli.command("config")
def show_config() -> None:
    """Print the effective settings (secrets masked)."""
    typer.echo(json.dumps(get_settings().masked(), indent=2, ensure_ascii=False))


if __name__ == "__main__":  # pragma: no cover
    cli()
