"""Tests for transcriber module."""

import asyncio
import logging

import pytest

from conftest import FakeProcess
from scribe.config import WhisperConfig
from scribe.errors import EncodingError, LaunchError, TranscriptionError
from scribe.transcriber import WhisperTranscriber, build_whisper_command


@pytest.fixture
def config():
    """Create a test whisper config."""
    return WhisperConfig()


@pytest.fixture
def audio_path(tmp_path):
    path = tmp_path / "output_1700000000.wav"
    path.write_bytes(b"RIFF0000WAVE")
    return path


@pytest.fixture
def transcriber(config):
    return WhisperTranscriber(config)


def test_build_whisper_command(config, audio_path):
    """Test the fixed model, device and language flags."""
    assert build_whisper_command(config, audio_path) == [
        "whisper",
        "--model",
        "turbo",
        "--device",
        "cuda",
        "--language",
        "en",
        str(audio_path),
    ]


def test_build_whisper_command_configured(audio_path):
    config = WhisperConfig(program="whisper-cli", model="small.en", device="cpu", language="de")
    assert build_whisper_command(config, audio_path)[:7] == [
        "whisper-cli",
        "--model",
        "small.en",
        "--device",
        "cpu",
        "--language",
        "de",
    ]


@pytest.mark.asyncio
async def test_transcribe_returns_stdout(fake_exec, transcriber, audio_path):
    """Test the whole stdout is returned unchanged."""
    output = "[00:00.000 --> 00:01.000]  hello world\n"
    fake_exec.processes["whisper"] = FakeProcess(
        stdout=output.encode("utf-8"), stderr=b"100%|#####|\n"
    )

    text = await transcriber.transcribe(audio_path)

    assert text == output
    kwargs = fake_exec.mock.call_args.kwargs
    assert kwargs["stdout"] == asyncio.subprocess.PIPE
    assert kwargs["stderr"] == asyncio.subprocess.PIPE


@pytest.mark.asyncio
async def test_transcribe_non_ascii(fake_exec, transcriber, audio_path):
    """Test UTF-8 text survives decoding."""
    fake_exec.processes["whisper"] = FakeProcess(stdout="café – naïve\n".encode("utf-8"))

    assert await transcriber.transcribe(audio_path) == "café – naïve\n"


@pytest.mark.asyncio
async def test_transcribe_failure(fake_exec, transcriber, audio_path):
    """Test a non-zero exit is a TranscriptionError with the code."""
    fake_exec.processes["whisper"] = FakeProcess(
        returncode=1, stderr=b"RuntimeError: CUDA out of memory\n"
    )

    with pytest.raises(TranscriptionError, match="Exit code: 1") as exc_info:
        await transcriber.transcribe(audio_path)

    assert exc_info.value.code == 1
    assert "CUDA out of memory" in exc_info.value.stderr


@pytest.mark.asyncio
async def test_transcribe_invalid_utf8(fake_exec, transcriber, audio_path):
    """Test undecodable output is an EncodingError."""
    fake_exec.processes["whisper"] = FakeProcess(stdout=b"hello \xff\xfe world")

    with pytest.raises(EncodingError, match="not valid UTF-8"):
        await transcriber.transcribe(audio_path)


@pytest.mark.asyncio
async def test_whisper_not_found(fake_exec, transcriber, audio_path):
    """Test a missing whisper is a LaunchError for the transcription stage."""
    fake_exec.processes["whisper"] = FileNotFoundError()

    with pytest.raises(LaunchError, match="transcription stage"):
        await transcriber.transcribe(audio_path)


@pytest.mark.asyncio
async def test_missing_audio_only_warns(fake_exec, transcriber, tmp_path, caplog):
    """Test a missing recording is logged but whisper still runs."""
    fake_exec.processes["whisper"] = FakeProcess(stdout=b"text")

    with caplog.at_level(logging.WARNING, logger="scribe.transcriber"):
        text = await transcriber.transcribe(tmp_path / "missing.wav")

    assert text == "text"
    assert "not found" in caplog.text
    assert fake_exec.programs == ["whisper"]


@pytest.mark.asyncio
async def test_empty_audio_only_warns(fake_exec, transcriber, tmp_path, caplog):
    """Test an empty recording is logged but whisper still runs."""
    empty = tmp_path / "empty.wav"
    empty.touch()
    fake_exec.processes["whisper"] = FakeProcess(stdout=b"")

    with caplog.at_level(logging.WARNING, logger="scribe.transcriber"):
        assert await transcriber.transcribe(empty) == ""

    assert "empty" in caplog.text
