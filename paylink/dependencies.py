"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from paylink.config import Settings
from paylink.db import ClientStore, InMemoryClientStore, SqlClientStore
from paylink.uploads import ImageStore


@dataclass
class AppContext:
    """Everything a request handler needs, built once per application."""

    settings: Settings
    store: ClientStore
    images: ImageStore


def build_store(settings: Settings) -> ClientStore:
    if settings.use_in_memory_backends or not settings.database_url:
        return InMemoryClientStore()
    return SqlClientStore(settings.database_url)


def build_context(settings: Settings) -> AppContext:
    return AppContext(
        settings=settings,
        store=build_store(settings),
        images=ImageStore(
            directory=settings.uploads_dir,
            url_prefix=settings.uploads_url_prefix,
            max_bytes=settings.max_upload_bytes,
        ),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context
