#!/usr/bin/env python3
"""Serve the school manager API locally with uvicorn."""
import uvicorn

from app.config.settings import settings

if __name__ == "__main__":
    # Auto-reload only works when uvicorn imports the app itself.
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
