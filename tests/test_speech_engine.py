import asyncio
import threading

import pytest

from jarvis_client.app import build_orchestrator
from jarvis_client.audio import engine as engine_module
from jarvis_client.audio.engine import NullSpeechEngine, build_speech_engine
from jarvis_client.audio.local import LocalSpeechEngine, local_models_available, playback_duration
from jarvis_client.core.config import Settings
from jarvis_client.core.errors import SpeechUnsupportedError
from jarvis_client.services.prompts import GREETING
from jarvis_client.services.schemas import Role


@pytest.fixture
def model_settings(tmp_path) -> Settings:
    whisper = tmp_path / "whisper"
    whisper.mkdir()
    piper = tmp_path / "voice.onnx"
    piper.write_bytes(b"")
    return Settings(_env_file=None, whisper_model_path=str(whisper), piper_model_path=str(piper))


class FakeCapture:
    def __init__(self) -> None:
        self.on_utterance = None
        self.started = 0
        self.stopped = 0
        self.partial = b""

    def bind(self, on_utterance) -> None:
        self.on_utterance = on_utterance

    def start(self) -> None:
        self.started += 1

    def stop(self) -> bytes:
        self.stopped += 1
        pcm, self.partial = self.partial, b""
        return pcm


class FakePlayer:
    def __init__(self, sample_rate: int, channels: int) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.played: list[bytes] = []
        self.stopped = 0
        self.started = asyncio.Event()

    def play(self, pcm_data: bytes) -> None:
        self.played.append(pcm_data)
        self.started.set()

    def stop(self) -> None:
        self.stopped += 1


class Harness:
    """Local engine wired to in-memory capture, ASR, TTS and output."""

    def __init__(self, settings: Settings, transcript: str | Exception = "hello there") -> None:
        self.capture = FakeCapture()
        self.transcript = transcript
        self.transcribed: list[bytes] = []
        self.players: list[FakePlayer] = []
        self.transcripts: list[str] = []
        self.capture_ends = 0
        self.delivered = asyncio.Event()
        self.engine = LocalSpeechEngine(
            settings,
            capture=self.capture,
            transcribe=self.transcribe,
            synthesize=lambda text: (b"\x01\x00" * 160, 16_000, 1),
            open_player=self.open_player,
        )
        self.engine.bind(self.on_transcript, self.on_capture_end)

    def transcribe(self, pcm: bytes) -> str:
        self.transcribed.append(pcm)
        if isinstance(self.transcript, Exception):
            raise self.transcript
        return self.transcript

    def open_player(self, sample_rate: int, channels: int) -> FakePlayer:
        player = FakePlayer(sample_rate, channels)
        self.players.append(player)
        return player

    def on_transcript(self, text: str) -> None:
        self.transcripts.append(text)
        self.delivered.set()

    def on_capture_end(self) -> None:
        self.capture_ends += 1

    async def drain(self) -> None:
        await asyncio.gather(*self.engine.pending_transcriptions)


# ---------------------------------------------------------------------- #
# Engine selection
# ---------------------------------------------------------------------- #
def test_null_engine_refuses_capture_and_speech() -> None:
    engine = NullSpeechEngine()
    engine.bind(lambda text: None, lambda: None)
    engine.cancel_speech()
    assert engine.supported is False
    with pytest.raises(SpeechUnsupportedError):
        engine.start_capture()
    with pytest.raises(SpeechUnsupportedError):
        engine.stop_capture()
    with pytest.raises(SpeechUnsupportedError):
        asyncio.run(engine.speak("hello"))


def test_disabled_speech_selects_null_engine(model_settings, monkeypatch) -> None:
    def untouched_stack():
        raise AssertionError("audio stack imported while speech is disabled")

    monkeypatch.setattr(engine_module, "_local_engine_factory", untouched_stack)
    settings = model_settings.model_copy(update={"speech_enabled": False})
    assert isinstance(build_speech_engine(settings), NullSpeechEngine)


def test_unconfigured_models_select_null_engine() -> None:
    settings = Settings(_env_file=None, whisper_model_path=None, piper_model_path=None)
    assert isinstance(build_speech_engine(settings), NullSpeechEngine)


def test_missing_model_files_select_null_engine(tmp_path) -> None:
    settings = Settings(
        _env_file=None,
        whisper_model_path=str(tmp_path / "absent"),
        piper_model_path=str(tmp_path / "absent.onnx"),
    )
    assert local_models_available(settings) is False
    assert isinstance(build_speech_engine(settings), NullSpeechEngine)


@pytest.mark.parametrize(
    "error",
    [ModuleNotFoundError("No module named 'sounddevice'"), OSError("PortAudio library not found")],
)
def test_unimportable_audio_stack_selects_null_engine(model_settings, monkeypatch, error) -> None:
    def broken_stack():
        raise error

    monkeypatch.setattr(engine_module, "_local_engine_factory", broken_stack)
    assert isinstance(build_speech_engine(model_settings), NullSpeechEngine)


def test_available_stack_builds_local_engine(model_settings, monkeypatch) -> None:
    built = []

    def factory(settings):
        built.append(settings)
        return "local-engine"

    monkeypatch.setattr(engine_module, "_local_engine_factory", lambda: factory)
    assert build_speech_engine(model_settings) == "local-engine"
    assert built == [model_settings]


@pytest.mark.asyncio
@pytest.mark.parametrize("speech", [True, False])
async def test_build_orchestrator_without_speech(speech) -> None:
    settings = Settings(_env_file=None, speech_enabled=False)
    orchestrator = build_orchestrator(settings, speech=speech)
    try:
        assert orchestrator.speech.supported is False
        assert [(m.role, m.content) for m in orchestrator.store.messages] == [(Role.ASSISTANT, GREETING)]
        assert orchestrator.toggle_listening() is False
    finally:
        await orchestrator.backend.aclose()


def test_playback_duration() -> None:
    assert playback_duration(32_000, 16_000) == 1.0
    assert playback_duration(32_000, 16_000, channels=2) == 0.5
    assert playback_duration(0, 16_000) == 0.0


# ---------------------------------------------------------------------- #
# Local engine hand-off
# ---------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_finished_utterance_ends_capture_then_delivers_transcript(model_settings) -> None:
    harness = Harness(model_settings)
    harness.engine.start_capture()
    assert harness.capture.started == 1

    harness.engine._finish_utterance(b"\x02\x00" * 320)
    assert harness.capture.stopped == 1
    assert harness.capture_ends == 1
    assert harness.transcripts == []

    await harness.drain()
    assert harness.transcripts == ["hello there"]
    assert harness.transcribed == [b"\x02\x00" * 320]


@pytest.mark.asyncio
async def test_utterance_from_audio_thread_reaches_the_loop(model_settings) -> None:
    harness = Harness(model_settings, transcript="lights on")
    harness.engine.start_capture()

    worker = threading.Thread(target=harness.capture.on_utterance, args=(b"\x03\x00" * 64,))
    worker.start()
    worker.join()
    await asyncio.wait_for(harness.delivered.wait(), timeout=5)

    assert harness.transcripts == ["lights on"]
    assert harness.capture_ends == 1


def test_utterance_before_capture_started_is_dropped(model_settings) -> None:
    harness = Harness(model_settings)
    harness.capture.on_utterance(b"\x03\x00")
    assert harness.capture.stopped == 0
    assert harness.transcripts == []


@pytest.mark.asyncio
async def test_stop_capture_transcribes_partial_audio(model_settings) -> None:
    harness = Harness(model_settings, transcript="half a sentence")
    harness.engine.start_capture()
    harness.capture.partial = b"\x04\x00" * 100

    harness.engine.stop_capture()
    await harness.drain()

    assert harness.transcribed == [b"\x04\x00" * 100]
    assert harness.transcripts == ["half a sentence"]
    assert harness.capture_ends == 0


@pytest.mark.asyncio
async def test_stop_capture_without_audio_transcribes_nothing(model_settings) -> None:
    harness = Harness(model_settings)
    harness.engine.start_capture()
    harness.engine.stop_capture()
    await harness.drain()
    assert harness.transcribed == []
    assert harness.transcripts == []


@pytest.mark.asyncio
async def test_failed_transcription_delivers_nothing(model_settings) -> None:
    harness = Harness(model_settings, transcript=RuntimeError("model crashed"))
    harness.engine.start_capture()
    harness.engine._finish_utterance(b"\x05\x00" * 10)
    await harness.drain()
    assert harness.transcripts == []
    assert harness.capture_ends == 1


@pytest.mark.asyncio
async def test_start_capture_requires_models(tmp_path) -> None:
    settings = Settings(_env_file=None, whisper_model_path=str(tmp_path / "absent"), piper_model_path=None)
    harness = Harness(settings)
    assert harness.engine.supported is False
    with pytest.raises(SpeechUnsupportedError):
        harness.engine.start_capture()
    with pytest.raises(SpeechUnsupportedError):
        await harness.engine.speak("hello")
    assert harness.capture.started == 0


@pytest.mark.asyncio
async def test_speak_plays_then_releases_the_player(model_settings) -> None:
    harness = Harness(model_settings)
    await harness.engine.speak("Good evening.")

    (player,) = harness.players
    assert (player.sample_rate, player.channels) == (16_000, 1)
    assert player.played == [b"\x01\x00" * 160]
    assert player.stopped == 1


@pytest.mark.asyncio
async def test_cancel_speech_stops_the_player(model_settings) -> None:
    harness = Harness(model_settings)
    harness.engine.cancel_speech()

    task = asyncio.create_task(harness.engine.speak("A very long story."))
    while not harness.players:
        await asyncio.sleep(0.01)
    player = harness.players[0]
    await player.started.wait()

    harness.engine.cancel_speech()
    assert player.stopped == 1
    task.cancel()
    await asyncio.wait({task})
    assert player.stopped == 2
