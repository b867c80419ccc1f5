"""PIX code generation and payment request orchestration."""
from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from ..brcode import DESCRIPTION_MAX_LENGTH, ParsedPixData, assemble_payload, format_amount, parse_payload, validate_payload
from ..config import MerchantIdentity, settings
from ..monitoring import record_code_generated, record_parse_failure, record_payment_created
from ..renderer import QRRenderOptions, Renderer, render_qr_payload
from ..tlv import HEADER_LENGTH, MAX_VALUE_LENGTH
from .errors import InvalidPayloadError, RenderError
from .status import PaymentStatus, StatusProvider, build_status_provider

logger = logging.getLogger("pixcode.payments")

GENERATED_TX_ID_LENGTH = 25


@dataclass(slots=True)
class PixCode:
    pix_code: str
    tx_id: str
    amount: str
    qr_code_data: str

    @property
    def crc(self) -> str:
        return self.pix_code[-4:]


@dataclass(slots=True)
class PaymentRequest:
    pix_code: str
    tx_id: str
    amount: str
    qr_code_image: str
    expires_at: datetime
    description: str
    plan_id: str


def generate_tx_id() -> str:
    return secrets.token_hex(16)[:GENERATED_TX_ID_LENGTH]


def description_room(tx_id: str) -> int:
    """Characters left for the description in tag 62 next to ``tx_id``."""

    return max(0, min(DESCRIPTION_MAX_LENGTH, MAX_VALUE_LENGTH - 2 * HEADER_LENGTH - len(tx_id)))


def payment_tx_id(plan_id: Any) -> str:
    """Build ``PIX_{plan}_{epoch millis}_{8 hex}`` with 32 random bits."""

    return f"PIX_{plan_id}_{time.time_ns() // 1_000_000}_{secrets.token_hex(4)}"


class PixPaymentService:
    def __init__(
        self,
        merchant: MerchantIdentity | None = None,
        *,
        renderer: Renderer = render_qr_payload,
        render_options: QRRenderOptions | None = None,
        status_provider: StatusProvider | None = None,
        payment_ttl: timedelta | None = None,
        render_timeout: float | None = None,
    ):
        self.merchant = merchant or settings.merchant_identity()
        self.renderer = renderer
        self.render_options = render_options or QRRenderOptions.from_settings()
        self.status_provider = status_provider or build_status_provider()
        self.payment_ttl = payment_ttl or timedelta(minutes=settings.payment_ttl_minutes)
        self.render_timeout = render_timeout if render_timeout is not None else settings.render_timeout_seconds

    def generate_pix_code(self, amount: Any, description: str = "", tx_id: str | None = None) -> PixCode:
        return self._build_code(amount, description, tx_id or generate_tx_id(), kind="code")

    def _build_code(self, amount: Any, description: str, tx_id: str, kind: str) -> PixCode:
        formatted_amount = format_amount(amount)
        payload = assemble_payload(
            pix_key=self.merchant.pix_key,
            merchant_name=self.merchant.merchant_name,
            merchant_city=self.merchant.merchant_city,
            amount=formatted_amount,
            tx_id=tx_id,
            description=description,
        )
        record_code_generated(kind)
        return PixCode(pix_code=payload, tx_id=tx_id, amount=formatted_amount, qr_code_data=payload)

    def validate_pix_code(self, code: Any) -> bool:
        return validate_payload(code)

    def parse_pix_code(self, code: str) -> ParsedPixData:
        try:
            return parse_payload(code)
        except InvalidPayloadError:
            record_parse_failure()
            raise

    async def render(self, payload: str) -> str:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.renderer, payload, self.render_options),
                timeout=self.render_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise RenderError(f"QR rendering timed out after {self.render_timeout}s") from exc
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"QR rendering failed: {exc}") from exc

    async def create_pix_payment(self, amount: Any, description: str, plan_id: Any) -> PaymentRequest:
        tx_id = payment_tx_id(plan_id)
        # The generated tx id shares tag 62 with the description; cut the
        # description to what is left, like the 72-character limit.
        code = self._build_code(amount, description[: description_room(tx_id)], tx_id, kind="payment")
        qr_code_image = await self.render(code.pix_code)
        expires_at = datetime.now(timezone.utc) + self.payment_ttl
        record_payment_created()

        logger.info(
            "pix payment created",
            extra={"tx_id": tx_id, "plan_id": str(plan_id), "amount": code.amount},
        )
        return PaymentRequest(
            pix_code=code.pix_code,
            tx_id=tx_id,
            amount=code.amount,
            qr_code_image=qr_code_image,
            expires_at=expires_at,
            description=description,
            plan_id=str(plan_id),
        )

    async def check_pix_payment(self, tx_id: str) -> PaymentStatus:
        return await self.status_provider.check(tx_id)
