"""
Sandbox implementation of the remote match API, for local development and end-to-end tests.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings, get_settings
from ..logging_config import setup_logging
from .db import MatchRepository
from .exceptions import (
    SandboxException,
    generic_exception_handler,
    http_exception_handler,
    sandbox_exception_handler,
    validation_exception_handler,
)
from .routes.matches import router as matches_router


def create_app(
    settings: Optional[Settings] = None, repository: Optional[MatchRepository] = None
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, route_uvicorn=True)

    app = FastAPI(title="CapKeo Sandbox API")
    app.state.settings = settings
    app.state.repository = repository or MatchRepository()

    app.add_exception_handler(SandboxException, sandbox_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/healthz")
    def health_check():
        return {"status": "ok"}

    app.include_router(matches_router, prefix=settings.sandbox_api_prefix)
    return app
