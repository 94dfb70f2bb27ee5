"""TDD: VoicePipeline tests written FIRST"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audio.converter import AudioConverter
from src.config import Config
from src.errors import AuthError, ConversionError, TranscriptionError
from src.transcription.client import TranscriptionClient
from src.transcription.sber import SberTranscriptionClient
from src.voice import VoicePipeline, build_voice_pipeline


def make_pipeline(*, mp3=b"mp3", text="hello", convert_error=None, transcribe_error=None):
    converter = MagicMock(spec=AudioConverter)
    converter.convert_ogg_to_mp3 = AsyncMock(return_value=mp3, side_effect=convert_error)
    transcriber = MagicMock(spec=TranscriptionClient)
    transcriber.transcribe = AsyncMock(return_value=text, side_effect=transcribe_error)
    transcriber.aclose = AsyncMock()
    return VoicePipeline(converter, transcriber), converter, transcriber


def make_config(*, secret="c2VjcmV0", enabled=True, ffmpeg="ffmpeg") -> Config:
    return Config(
        telegram_bot_token="token",
        allowed_chat_id="123456789",
        log_level="INFO",
        sber_client_secret=secret,
        transcription_enabled=enabled,
        sber_verify_ssl=True,
        ffmpeg_path=ffmpeg,
        conversion_timeout=60,
        audit_log_path="audit.log",
        audit_log_json=False,
        rate_limit_per_minute=10,
    )


# ── transcribe_voice ──────────────────────────────────────────────────────────


async def test_transcribe_voice_converts_then_transcribes():
    pipeline, converter, transcriber = make_pipeline(mp3=b"converted", text="hi there")

    result = await pipeline.transcribe_voice(b"ogg")

    assert result == "hi there"
    converter.convert_ogg_to_mp3.assert_awaited_once_with(b"ogg")
    transcriber.transcribe.assert_awaited_once_with(b"converted")


async def test_no_speech_passes_through_as_empty_string():
    pipeline, _, _ = make_pipeline(text="")

    assert await pipeline.transcribe_voice(b"ogg") == ""


async def test_conversion_failure_returns_none_and_skips_transcription():
    pipeline, _, transcriber = make_pipeline(convert_error=ConversionError("bad ogg"))

    assert await pipeline.transcribe_voice(b"ogg") is None
    transcriber.transcribe.assert_not_called()


@pytest.mark.parametrize(
    "error", [TranscriptionError("boom", status_code=500), AuthError("no token")]
)
async def test_transcription_failures_return_none(error):
    pipeline, _, _ = make_pipeline(transcribe_error=error)

    assert await pipeline.transcribe_voice(b"ogg") is None


async def test_unexpected_errors_propagate():
    pipeline, _, _ = make_pipeline(transcribe_error=RuntimeError("bug"))

    with pytest.raises(RuntimeError):
        await pipeline.transcribe_voice(b"ogg")


async def test_transcribe_file_reads_bytes(tmp_path):
    voice_file = tmp_path / "voice.ogg"
    voice_file.write_bytes(b"ogg-from-disk")
    pipeline, converter, _ = make_pipeline()

    assert await pipeline.transcribe_file(voice_file) == "hello"
    converter.convert_ogg_to_mp3.assert_awaited_once_with(b"ogg-from-disk")


async def test_transcribe_file_missing_returns_none(tmp_path):
    pipeline, converter, _ = make_pipeline()

    assert await pipeline.transcribe_file(tmp_path / "missing.ogg") is None
    converter.convert_ogg_to_mp3.assert_not_called()


async def test_aclose_closes_transcriber():
    pipeline, _, transcriber = make_pipeline()

    await pipeline.aclose()

    transcriber.aclose.assert_awaited_once()


# ── build_voice_pipeline ──────────────────────────────────────────────────────


def test_build_returns_none_without_secret(monkeypatch):
    monkeypatch.setattr("src.voice.shutil.which", lambda _: "/usr/bin/ffmpeg")
    assert build_voice_pipeline(make_config(secret=None)) is None


def test_build_returns_none_when_disabled(monkeypatch):
    monkeypatch.setattr("src.voice.shutil.which", lambda _: "/usr/bin/ffmpeg")
    assert build_voice_pipeline(make_config(enabled=False)) is None


def test_build_returns_none_without_ffmpeg(monkeypatch):
    monkeypatch.setattr("src.voice.shutil.which", lambda _: None)
    assert build_voice_pipeline(make_config()) is None


def test_build_wires_sber_client_when_configured(monkeypatch):
    monkeypatch.setattr("src.voice.shutil.which", lambda _: "/usr/bin/ffmpeg")

    pipeline = build_voice_pipeline(make_config())

    assert isinstance(pipeline, VoicePipeline)
    assert isinstance(pipeline.transcriber, SberTranscriptionClient)
