"""
Create/update and lookup workflows for client payment details.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from paylink.db import (
    ClientChanges,
    ClientRecord,
    ClientStore,
    DuplicateBaseUrlError,
)
from paylink.errors import (
    AuthError,
    ClientNotFoundError,
    InvalidRequestError,
    InvalidSecurityCodeError,
)
from paylink.hashing import hash_secret
from paylink.uploads import ImageStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertRequest:
    base_url: Optional[str] = None
    upi_id: Optional[str] = None
    security_code: Optional[str] = None
    existing_security_code: Optional[str] = None


@dataclass(frozen=True)
class UpsertResult:
    created: bool
    record: ClientRecord


def normalize_base_url(value: Optional[str]) -> str:
    return (value or "").strip()


def upsert_client(
    store: ClientStore,
    images: ImageStore,
    request: UpsertRequest,
    qr_image_path: Optional[str] = None,
) -> UpsertResult:
    """
    Create the record for ``request.base_url`` or update it after verifying
    the existing security code.

    ``qr_image_path`` is the relative URL of an image already saved for this
    request, if any. When it replaces a stored image the old file is removed.
    """
    base_url = normalize_base_url(request.base_url)
    if not base_url:
        raise InvalidRequestError("Base URL is required")

    existing = store.get_client(base_url)
    if existing is None:
        if not request.security_code:
            raise InvalidRequestError("Security code is required for new client")
        record = ClientRecord(
            base_url=base_url,
            upi_id=(request.upi_id or "").strip(),
            qr_image_path=qr_image_path or "",
            secret_hash=hash_secret(request.security_code),
        )
        try:
            created = store.create_client(record)
        except DuplicateBaseUrlError:
            # Lost a race with a concurrent create; treat this request as an update.
            logger.info("Concurrent create for %s, falling back to update", base_url)
        else:
            logger.info("Created client %s", base_url)
            return UpsertResult(created=True, record=created)

    return UpsertResult(
        created=False,
        record=_update_client(store, images, base_url, request, qr_image_path),
    )


def _update_client(
    store: ClientStore,
    images: ImageStore,
    base_url: str,
    request: UpsertRequest,
    qr_image_path: Optional[str],
) -> ClientRecord:
    if not request.existing_security_code:
        raise AuthError("Security code is required")

    changes = ClientChanges(
        upi_id=request.upi_id.strip() if request.upi_id else None,
        qr_image_path=qr_image_path or None,
        secret_hash=hash_secret(request.security_code)
        if request.security_code
        else None,
    )
    update = store.update_client(
        base_url, hash_secret(request.existing_security_code), changes
    )
    if update is None:
        logger.warning("Rejected update for %s: invalid security code", base_url)
        raise InvalidSecurityCodeError()

    previous_image = update.previous.qr_image_path
    if qr_image_path and previous_image and previous_image != qr_image_path:
        images.discard(previous_image)
    if changes.secret_hash:
        logger.info("Rotated security code for %s", base_url)
    logger.info("Updated client %s", base_url)
    return update.current


def lookup_client(store: ClientStore, base_url: Optional[str]) -> ClientRecord:
    base_url = normalize_base_url(base_url)
    if not base_url:
        raise InvalidRequestError("Base URL parameter is required")
    record = store.get_client(base_url)
    if record is None:
        raise ClientNotFoundError()
    return record
