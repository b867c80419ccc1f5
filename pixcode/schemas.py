"""Pydantic schemas for API contracts."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratePixCodeRequest(CamelModel):
    amount: Decimal = Field(ge=0, le=Decimal("999999999.99"))
    description: str = Field(default="")
    tx_id: str | None = Field(default=None, min_length=1, max_length=99)


class PixCodeResponse(CamelModel):
    pix_code: str
    tx_id: str
    amount: str
    qr_code_data: str
    crc: str


class PixCodeRequest(CamelModel):
    code: str


class ValidateResponse(CamelModel):
    valid: bool


class AdditionalDataResponse(CamelModel):
    tx_id: str | None = None
    description: str | None = None


class ParsedPixResponse(CamelModel):
    amount: float | None = None
    merchant_name: str | None = None
    merchant_city: str | None = None
    additional_data: AdditionalDataResponse | None = None


class CreatePaymentRequest(CamelModel):
    amount: Decimal = Field(gt=0, le=Decimal("999999999.99"))
    description: str = Field(default="")
    plan_id: str = Field(min_length=1, max_length=36)


class PaymentResponse(CamelModel):
    pix_code: str
    tx_id: str
    amount: str
    qr_code_image: str
    expires_at: datetime
    description: str
    plan_id: str


class PaymentStatusResponse(CamelModel):
    tx_id: str
    status: Literal["pending", "completed", "failed"]
    paid_at: datetime | None = None
    amount: float | None = None
    simulated: bool = False
