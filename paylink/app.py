"""
FastAPI application entry point for the payment details service.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from paylink.config import Settings, get_settings
from paylink.dependencies import AppContext, build_context
from paylink.errors import PaylinkError
from paylink.routes import router

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


async def _paylink_error_handler(request: Request, exc: PaylinkError):
    return _error(exc.status_code, exc.message)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths, wrong methods and missing static files all read as 404.
    if exc.status_code in (404, 405):
        return _error(404, "Route not found")
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request to %s: %s", request.url.path, exc.errors())
    return _error(400, "Invalid request")


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Error: %s", exc)
    return _error(500, "Internal server error")


def create_app(
    settings: Optional[Settings] = None, context: Optional[AppContext] = None
) -> FastAPI:
    if settings is None:
        settings = context.settings if context else get_settings()
    if context is None:
        context = build_context(settings)

    app = FastAPI(title="Paylink Payment Details", version="0.1.0")
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    app.mount(
        context.images.url_prefix,
        StaticFiles(directory=context.images.ensure_directory()),
        name="uploads",
    )

    app.add_exception_handler(PaylinkError, _paylink_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    return app
