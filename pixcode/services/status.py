"""Settlement status providers for PIX transactions.

Results from these providers are advisory: only the receiving bank or PSP
can confirm that a payment has settled.
"""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Protocol

import requests

from ..config import Settings, settings
from .errors import StatusProviderError

logger = logging.getLogger("pixcode.status")

PaymentState = Literal["pending", "completed", "failed"]
PAYMENT_STATES: tuple[PaymentState, ...] = ("pending", "completed", "failed")

# PSP status names mapped onto the local states.
_REMOTE_STATES: dict[str, PaymentState] = {
    "ATIVA": "pending",
    "PENDING": "pending",
    "CONCLUIDA": "completed",
    "COMPLETED": "completed",
    "PAID": "completed",
    "REMOVIDA_PELO_USUARIO_RECEBEDOR": "failed",
    "REMOVIDA_PELO_PSP": "failed",
    "FAILED": "failed",
}


@dataclass(slots=True)
class PaymentStatus:
    tx_id: str
    status: PaymentState
    paid_at: datetime | None = None
    amount: float | None = None


class StatusProvider(Protocol):
    async def check(self, tx_id: str) -> PaymentStatus: ...


class SimulatedStatusProvider:
    """Random outcome after an artificial delay. Demo use only."""

    def __init__(self, delay_seconds: float = 1.0, rng: random.Random | None = None):
        self.delay_seconds = delay_seconds
        self.rng = rng or random.Random()

    async def check(self, tx_id: str) -> PaymentStatus:
        logger.warning("simulated payment status requested", extra={"tx_id": tx_id})
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        status = self.rng.choice(PAYMENT_STATES)
        paid_at = datetime.now(timezone.utc) if status == "completed" else None
        return PaymentStatus(tx_id=tx_id, status=status, paid_at=paid_at, amount=None)


class StaticStatusProvider:
    """Deterministic provider returning preconfigured statuses."""

    def __init__(self, statuses: dict[str, PaymentStatus] | None = None, default: PaymentState = "pending"):
        self.statuses = dict(statuses or {})
        self.default = default

    def set(self, status: PaymentStatus) -> None:
        self.statuses[status.tx_id] = status

    async def check(self, tx_id: str) -> PaymentStatus:
        return self.statuses.get(tx_id) or PaymentStatus(tx_id=tx_id, status=self.default)


class HttpStatusProvider:
    """Poll a PSP endpoint at ``{base_url}/{tx_id}`` for the settlement status."""

    def __init__(self, base_url: str, token: str | None = None, timeout: float = 20.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _fetch(self, tx_id: str) -> dict[str, Any]:
        url = f"{self.base_url}/{tx_id}"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as exc:
            raise StatusProviderError(f"Status request for {tx_id} timed out") from exc
        except requests.exceptions.RequestException as exc:
            raise StatusProviderError(f"Status request for {tx_id} failed: {exc}") from exc
        except ValueError as exc:
            raise StatusProviderError(f"Status response for {tx_id} is not JSON") from exc
        if not isinstance(data, dict):
            raise StatusProviderError(f"Status response for {tx_id} is not a JSON object")
        return data

    async def check(self, tx_id: str) -> PaymentStatus:
        data = await asyncio.to_thread(self._fetch, tx_id)
        return self._to_status(tx_id, data)

    @staticmethod
    def _to_status(tx_id: str, data: dict[str, Any]) -> PaymentStatus:
        remote = str(data.get("status", "")).upper()
        status = _REMOTE_STATES.get(remote, "pending")
        if remote and remote not in _REMOTE_STATES:
            logger.warning("unknown remote payment status", extra={"tx_id": tx_id, "remote_status": remote})

        paid_at = None
        raw_paid_at = data.get("paidAt")
        if raw_paid_at:
            try:
                paid_at = datetime.fromisoformat(str(raw_paid_at).replace("Z", "+00:00"))
            except ValueError as exc:
                raise StatusProviderError(f"Invalid paidAt {raw_paid_at!r} for {tx_id}") from exc

        amount = data.get("amount")
        try:
            amount = float(amount) if amount is not None else None
        except (TypeError, ValueError) as exc:
            raise StatusProviderError(f"Invalid amount {amount!r} for {tx_id}") from exc

        return PaymentStatus(tx_id=str(data.get("txId") or tx_id), status=status, paid_at=paid_at, amount=amount)


def build_status_provider(config: Settings | None = None) -> StatusProvider:
    """Select the status provider configured in ``settings.status_provider``."""

    config = config or settings
    if config.status_provider == "http":
        if not config.status_api_url:
            raise ValueError("status_api_url is required for the http status provider")
        return HttpStatusProvider(
            config.status_api_url,
            token=config.status_api_token,
            timeout=config.status_api_timeout_seconds,
        )
    if config.status_provider == "static":
        return StaticStatusProvider()
    return SimulatedStatusProvider(delay_seconds=config.status_check_delay_seconds)
