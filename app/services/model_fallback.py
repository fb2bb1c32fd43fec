"""Ordered model fallback shared by every Gemini-backed pipeline stage."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from app.telemetry import record_model_attempt

logger = logging.getLogger("app.services.analysis_pipeline")

T = TypeVar("T")


class AllModelsFailedError(RuntimeError):
    """Raised when every configured model failed or returned nothing."""

    def __init__(self, stage: str, errors: dict[str, str]) -> None:
        self.stage = stage
        self.errors = dict(errors)
        if errors:
            details = "; ".join(f"{model}: {error}" for model, error in errors.items())
        else:
            details = "no models configured"
        super().__init__(f"All models failed for {stage} ({details})")


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


async def first_success(
    models: Sequence[str],
    attempt: Callable[[str], Awaitable[T | None]],
    *,
    stage: str,
) -> tuple[str, T]:
    """Return ``(model, value)`` for the first model whose attempt succeeds.

    An attempt that raises is logged and skipped; an attempt that returns an
    empty value is skipped as well. When the list is exhausted an
    ``AllModelsFailedError`` carrying every per-model error is raised.
    """

    errors: dict[str, str] = {}
    for model in models:
        logger.info("stage=%s trying model=%s", stage, model)
        try:
            value = await attempt(model)
        except Exception as exc:
            errors[model] = str(exc) or exc.__class__.__name__
            record_model_attempt(stage, model, "error")
            logger.warning("stage=%s model=%s failed: %s", stage, model, exc)
            continue

        if _is_empty(value):
            errors[model] = "empty response"
            record_model_attempt(stage, model, "empty")
            logger.warning("stage=%s model=%s returned an empty response", stage, model)
            continue

        record_model_attempt(stage, model, "success")
        logger.info("stage=%s model=%s succeeded", stage, model)
        return model, value  # type: ignore[return-value]

    raise AllModelsFailedError(stage, errors)


__all__ = ["AllModelsFailedError", "first_success"]
