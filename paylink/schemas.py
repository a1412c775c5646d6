"""
Pydantic schemas for the payment details API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class ClientDetails(BaseModel):
    baseUrl: str
    upiId: str
    qrImagePath: str


class UpdateResponse(BaseModel):
    success: Literal[True] = True
    message: str
    data: ClientDetails


class PaymentDetails(BaseModel):
    upiId: str
    qrImagePath: Optional[str] = None


class PaymentDetailsResponse(BaseModel):
    success: Literal[True] = True
    data: PaymentDetails


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    message: str
