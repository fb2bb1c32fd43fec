"""Audio stage: remote file polling, transcript fallback and cleanup."""

from __future__ import annotations

import asyncio
import subprocess

import pytest

from app.config.settings import settings
from app.pipelines.analysis import TranscriptionError, transcribe_lecture
from app.pipelines.analysis import transcription
from app.pipelines.analysis.transcription import audio_path_for, ffmpeg_command

from conftest import FakeGeminiClient


@pytest.fixture
def video(tmp_path, monkeypatch):
    """A stored video plus an ffmpeg stand-in that writes the audio file."""

    path = tmp_path / "video-1-abc.mp4"
    path.write_bytes(b"fake video bytes")

    async def fake_transcode(video_path):
        audio = audio_path_for(video_path)
        audio.write_bytes(b"ID3 fake audio")
        return audio

    monkeypatch.setattr(transcription, "transcode_to_audio", fake_transcode)
    monkeypatch.setattr(settings.gemini, "poll_interval_seconds", 0)
    return path


def test_transcript_and_cleanup_on_success(video):
    client = FakeGeminiClient(states=("PROCESSING", "ACTIVE"))

    result = asyncio.run(transcribe_lecture(client, video))

    assert result.transcription.startswith("Good morning class")
    assert result.sentiment == "Neutral"
    assert result.model == settings.gemini.transcription_models[0]
    assert client.polls == 2
    assert client.uploaded == [audio_path_for(video)]
    assert client.deleted == ["files/lecture-audio"]
    assert not audio_path_for(video).exists()


def test_failed_remote_state_is_fatal(video):
    client = FakeGeminiClient(states=("FAILED",))

    with pytest.raises(TranscriptionError, match="failed to process"):
        asyncio.run(transcribe_lecture(client, video))

    assert client.deleted == ["files/lecture-audio"]
    assert not audio_path_for(video).exists()


def test_polling_gives_up_after_max_attempts(video, monkeypatch):
    monkeypatch.setattr(settings.gemini, "poll_max_attempts", 3)
    client = FakeGeminiClient(states=("PROCESSING",))

    with pytest.raises(TranscriptionError, match="still processing"):
        asyncio.run(transcribe_lecture(client, video))

    assert client.polls == 3
    assert client.deleted == ["files/lecture-audio"]


def test_transcript_model_exhaustion_fails_the_step(video, monkeypatch):
    monkeypatch.setattr(settings.gemini, "transcription_models", ["model-a", "model-b"])
    client = FakeGeminiClient(transcript=lambda model: None if model == "model-a" else RuntimeError("429"))

    with pytest.raises(TranscriptionError, match="All models failed"):
        asyncio.run(transcribe_lecture(client, video))

    assert client.calls == [("transcription", "model-a"), ("transcription", "model-b")]
    assert client.deleted == ["files/lecture-audio"]
    assert not audio_path_for(video).exists()


def test_ffmpeg_command_targets_small_mono_mp3(tmp_path):
    command = ffmpeg_command(tmp_path / "in.mp4", tmp_path / "in.mp3")

    assert command[0] == settings.gemini.ffmpeg_binary
    assert "-vn" in command
    assert command[command.index("-acodec") + 1] == "libmp3lame"
    assert command[command.index("-b:a") + 1] == "32k"
    assert command[command.index("-ac") + 1] == "1"
    assert command[command.index("-ar") + 1] == "16000"


def test_ffmpeg_failure_is_reported(tmp_path, monkeypatch):
    video = tmp_path / "lecture.mp4"
    video.write_bytes(b"not really a video")

    def fail(*args, **kwargs):
        raise subprocess.CalledProcessError(1, args[0], stderr=b"Invalid data found")

    monkeypatch.setattr(transcription.subprocess, "run", fail)

    with pytest.raises(TranscriptionError, match="Invalid data found"):
        asyncio.run(transcription.transcode_to_audio(video))


def test_missing_video_is_reported(tmp_path):
    with pytest.raises(TranscriptionError, match="not found"):
        asyncio.run(transcription.transcode_to_audio(tmp_path / "missing.mp4"))
