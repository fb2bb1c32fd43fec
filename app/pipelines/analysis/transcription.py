"""Transcription stage: ffmpeg transcode, Gemini upload + poll, transcript fallback."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

from app.config.settings import settings
from app.services.file_storage import remove_files
from app.services.gemini_client import GeminiClient, GeminiInvocationError, RemoteFile
from app.services.model_fallback import AllModelsFailedError, first_success

from .prompts import TRANSCRIPTION_PROMPT
from .types import TranscriptResult

logger = logging.getLogger("app.services.analysis_pipeline")

AUDIO_MIME_TYPE = "audio/mp3"


class TranscriptionError(RuntimeError):
    """Raised when the lecture audio cannot be turned into a transcript."""


def audio_path_for(video_path: str | Path) -> Path:
    return Path(video_path).with_suffix(".mp3")


def ffmpeg_command(video_path: str | Path, audio_path: str | Path) -> list[str]:
    return [
        settings.gemini.ffmpeg_binary,
        "-y",
        "-i",
        str(video_path),
        "-vn",
        "-threads",
        "0",
        "-acodec",
        "libmp3lame",
        "-b:a",
        "32k",
        "-ac",
        "1",
        "-ar",
        "16000",
        str(audio_path),
    ]


def _transcode_sync(video_path: Path, audio_path: Path) -> Path:
    try:
        subprocess.run(
            ffmpeg_command(video_path, audio_path),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=settings.gemini.ffmpeg_timeout_seconds,
        )
    except subprocess.TimeoutExpired as exc:
        remove_files([audio_path])
        raise TranscriptionError(
            f"ffmpeg timed out after {settings.gemini.ffmpeg_timeout_seconds} seconds"
        ) from exc
    except subprocess.CalledProcessError as exc:
        remove_files([audio_path])
        error_msg = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else "No stderr"
        logger.error("ffmpeg failed. stderr: %s", error_msg)
        raise TranscriptionError(f"ffmpeg failed to extract audio: {error_msg[-500:]}") from exc
    except OSError as exc:
        raise TranscriptionError(f"ffmpeg could not be started: {exc}") from exc
    return audio_path


async def transcode_to_audio(video_path: str | Path) -> Path:
    """Extract a mono 16 kHz 32 kbit/s MP3 next to the video."""

    source = Path(video_path)
    if not source.exists():
        raise TranscriptionError(f"Video file not found: {source.name}")
    target = audio_path_for(source)
    logger.info("Extracting audio %s -> %s", source.name, target.name)
    return await run_in_threadpool(_transcode_sync, source, target)


async def wait_until_active(client: GeminiClient, remote: RemoteFile) -> RemoteFile:
    """Poll the remote file until Gemini finishes processing it."""

    current = remote
    attempts = 0
    max_attempts = settings.gemini.poll_max_attempts
    while current.state == "PROCESSING":
        if attempts >= max_attempts:
            raise TranscriptionError(
                f"Remote file {current.name} still processing after {attempts} polls"
            )
        attempts += 1
        if attempts % 5 == 0:
            logger.info("Waiting for %s (%s/%s)", current.name, attempts, max_attempts)
        await asyncio.sleep(settings.gemini.poll_interval_seconds)
        current = await client.get_file(current.name)

    if current.state == "FAILED":
        raise TranscriptionError(f"Gemini failed to process file {current.name}")
    return current


async def transcribe_lecture(client: GeminiClient, video_path: str | Path) -> TranscriptResult:
    """Run the full audio stage; local and remote audio are always cleaned up."""

    audio_path: Path | None = None
    remote: RemoteFile | None = None
    try:
        audio_path = await transcode_to_audio(video_path)
        remote = await client.upload_file(audio_path, AUDIO_MIME_TYPE)
        logger.info("Uploaded audio as %s", remote.uri or remote.name)
        remote = await wait_until_active(client, remote)
        active_file = remote

        async def _attempt(model: str) -> str | None:
            return await client.generate(
                model=model,
                prompt=TRANSCRIPTION_PROMPT,
                file=active_file,
            )

        try:
            model, transcript = await first_success(
                settings.gemini.transcription_models,
                _attempt,
                stage="transcription",
            )
        except AllModelsFailedError as exc:
            raise TranscriptionError(str(exc)) from exc

        logger.info("Transcript received from %s (%s chars)", model, len(transcript))
        return TranscriptResult(
            transcription=transcript,
            model=model,
            remote_uri=remote.uri or None,
        )
    except GeminiInvocationError as exc:
        raise TranscriptionError(str(exc)) from exc
    finally:
        if audio_path is not None:
            remove_files([audio_path])
        if remote is not None and remote.name:
            try:
                await client.delete_file(remote.name)
            except GeminiInvocationError as exc:
                logger.warning("Could not delete remote file %s: %s", remote.name, exc)


__all__ = [
    "TranscriptionError",
    "audio_path_for",
    "ffmpeg_command",
    "transcode_to_audio",
    "transcribe_lecture",
    "wait_until_active",
]
