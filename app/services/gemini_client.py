"""Thin Google Gemini client wrapper for file uploads and content generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from google import genai
from google.genai import types

from app.config.settings import settings

logger = logging.getLogger(__name__)


class GeminiInvocationError(RuntimeError):
    """Raised when a Gemini API call fails or the client is not configured."""


@dataclass(frozen=True)
class RemoteFile:
    """Reference to a file stored in the Gemini file store."""

    name: str
    uri: str
    mime_type: str
    state: str


def _to_remote_file(raw: Any, fallback_mime_type: str = "") -> RemoteFile:
    state = getattr(raw, "state", None)
    state_name = getattr(state, "name", None) or (str(state) if state else "")
    return RemoteFile(
        name=getattr(raw, "name", "") or "",
        uri=getattr(raw, "uri", "") or "",
        mime_type=getattr(raw, "mime_type", None) or fallback_mime_type,
        state=state_name.upper(),
    )


class GeminiClient:
    """Invoke Gemini models and manage remote files with standard configuration."""

    def __init__(self, api_key: Optional[str] = None) -> None:
        if api_key is None and settings.gemini.api_key is not None:
            api_key = settings.gemini.api_key.get_secret_value().strip()

        self._client: genai.Client | None = None
        if api_key:
            self._client = genai.Client(api_key=api_key)
        else:
            logger.warning("GEMINI_API_KEY is not configured; AI calls will fail.")

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> genai.Client:
        if self._client is None:
            raise GeminiInvocationError("Gemini API key is not configured.")
        return self._client

    async def upload_file(self, path: str | Path, mime_type: str) -> RemoteFile:
        """Upload a local file to the Gemini file store."""

        client = self._require_client()

        def _call() -> Any:
            return client.files.upload(
                file=str(path),
                config={"mime_type": mime_type, "display_name": Path(path).name},
            )

        try:
            uploaded = await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise GeminiInvocationError(f"File upload failed: {exc}") from exc

        return _to_remote_file(uploaded, mime_type)

    async def get_file(self, name: str) -> RemoteFile:
        """Fetch the current processing state of a remote file."""

        client = self._require_client()
        try:
            raw = await run_in_threadpool(client.files.get, name=name)
        except Exception as exc:  # pragma: no cover - external dependency
            raise GeminiInvocationError(f"File lookup failed: {exc}") from exc
        return _to_remote_file(raw)

    async def delete_file(self, name: str) -> None:
        client = self._require_client()
        try:
            await run_in_threadpool(client.files.delete, name=name)
        except Exception as exc:  # pragma: no cover - external dependency
            raise GeminiInvocationError(f"File deletion failed: {exc}") from exc

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        file: RemoteFile | None = None,
        response_mime_type: str | None = None,
    ) -> str | None:
        """Run `generate_content` and return the aggregate text output."""

        client = self._require_client()

        contents: list[Any] = []
        if file is not None:
            contents.append(
                types.Part.from_uri(file_uri=file.uri, mime_type=file.mime_type)
            )
        contents.append(prompt)

        config = None
        if response_mime_type:
            config = types.GenerateContentConfig(response_mime_type=response_mime_type)

        def _call() -> str:
            response = client.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
            return (response.text or "").strip()

        try:
            result = await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise GeminiInvocationError(f"{model}: {exc}") from exc

        return result or None


__all__ = ["GeminiClient", "GeminiInvocationError", "RemoteFile"]
