"""
HTTP routes for the payment details API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

from paylink.dependencies import AppContext, get_context
from paylink.errors import InternalServerError, PaylinkError
from paylink.schemas import (
    ErrorResponse,
    PaymentDetails,
    PaymentDetailsResponse,
    UpdateResponse,
)
from paylink.service import UpsertRequest, lookup_client, upsert_client

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/update", response_model=UpdateResponse, responses=ERROR_RESPONSES)
async def update_payment_details(
    response: Response,
    base_url: Optional[str] = Form(None, alias="baseUrl"),
    upi_id: Optional[str] = Form(None, alias="upiId"),
    security_code: Optional[str] = Form(None, alias="securityCode"),
    existing_security_code: Optional[str] = Form(None, alias="existingSecurityCode"),
    qr_image: Optional[UploadFile] = File(None, alias="qrImage"),
    context: AppContext = Depends(get_context),
):
    """
    Create a client on first use, or update it when the existing security code matches.
    """
    payload = UpsertRequest(
        base_url=base_url,
        upi_id=upi_id,
        security_code=security_code,
        existing_security_code=existing_security_code,
    )
    qr_image_path = None
    try:
        qr_image_path = await context.images.save(qr_image)
        result = await run_in_threadpool(
            upsert_client, context.store, context.images, payload, qr_image_path
        )
    except PaylinkError:
        context.images.discard(qr_image_path)
        raise
    except Exception as exc:
        logger.exception("Update error: %s", exc)
        context.images.discard(qr_image_path)
        raise InternalServerError() from exc

    if result.created:
        response.status_code = 201
        message = "Client added successfully"
    else:
        message = "Client updated successfully"
    return UpdateResponse(message=message, data=result.record.public_fields())


@router.get(
    "/payment-details", response_model=PaymentDetailsResponse, responses=ERROR_RESPONSES
)
def get_payment_details(
    request: Request,
    base_url: Optional[str] = Query(None, alias="baseUrl"),
    context: AppContext = Depends(get_context),
):
    try:
        record = lookup_client(context.store, base_url)
    except PaylinkError:
        raise
    except Exception as exc:
        logger.exception("Get payment details error: %s", exc)
        raise InternalServerError() from exc

    qr_image_url = None
    if record.qr_image_path:
        qr_image_url = str(request.base_url).rstrip("/") + record.qr_image_path
    return PaymentDetailsResponse(
        data=PaymentDetails(upiId=record.upi_id, qrImagePath=qr_image_url)
    )
