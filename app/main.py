"""FastAPI application: routers, middleware, logging and lifecycle hooks."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError

from .config.settings import settings
from .controllers import (
    analysis,
    auth,
    dashboard,
    lectures,
    rubrics,
    schools,
    teachers,
    uploads,
    users,
)
from .database import dispose_engine, init_models
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware
from .services.file_storage import PUBLIC_PREFIX, upload_root
from .services.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_ROUTERS = (auth, schools, users, teachers, lectures, uploads, analysis, rubrics, dashboard)
# SDK and HTTP clients log every request at INFO, which drowns the pipeline log.
_QUIET_LOGGERS = ("google_genai", "httpx", "httpcore", "urllib3", "sqlalchemy.engine", "pypdf")


def _rotating_file(path: str, max_bytes: int, fmt: str) -> RotatingFileHandler:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(target, maxBytes=max_bytes, backupCount=5, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _configure_logging() -> None:
    """Route logs to stdout plus two rotating files.

    ``settings.log_file`` receives everything. The analysis pipeline also gets
    its own file so a lecture's run can be followed without request noise,
    and the request middleware prints bare pre-formatted lines to stdout.
    """

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(_LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.addHandler(_rotating_file(settings.log_file, 1_000_000, _LOG_FORMAT))
    root.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    requests_log = logging.getLogger("app.middleware.structured")
    requests_log.handlers.clear()
    bare_console = logging.StreamHandler(sys.stdout)
    bare_console.setFormatter(logging.Formatter("%(message)s"))
    requests_log.addHandler(bare_console)
    requests_log.setLevel(logging.INFO)
    requests_log.propagate = False

    pipeline_log = logging.getLogger("app.services.analysis_pipeline")
    pipeline_log.handlers.clear()
    pipeline_log.addHandler(
        _rotating_file(
            settings.pipeline_log_file,
            500_000,
            "%(asctime)s | %(levelname)s | %(message)s",
        )
    )
    pipeline_log.setLevel(logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": f"Database error: {exc}"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="School management backend with classroom observation analysis",
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # One SDK client per process; controllers reach it through request.app.state.
    app.state.gemini_client = GeminiClient()

    for module in _ROUTERS:
        app.include_router(module.router)

    # Stored uploads and rendered reports are served as plain static files.
    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=str(upload_root()), check_dir=False),
        name="uploads",
    )

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, object]:
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "gemini_configured": app.state.gemini_client.configured,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    _register_error_handlers(app)

    @app.on_event("startup")
    async def startup_event() -> None:
        upload_root()
        await init_models()
        logger.info("%s %s started", settings.app_name, settings.app_version)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await dispose_engine()

    return app


app = create_app()
