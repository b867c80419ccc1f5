"""PIX BR Code payload assembler, validator and parser."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from .crc import CRC_TAG_HEADER, crc16_ccitt, crc_field
from .services.errors import EncodingError, InvalidPayloadError, MissingFieldError
from .tlv import TLVItem, TLVReader, build_tlv, encode_field

logger = logging.getLogger("pixcode.brcode")

PIX_GUI = "br.gov.bcb.pix"
PAYLOAD_FORMAT_INDICATOR = "000201"
POINT_OF_INITIATION_STATIC = "010212"
MERCHANT_CATEGORY_CODE = "52040000"
CURRENCY_BRL = "5303986"
COUNTRY_CODE = "5802BR"
DESCRIPTION_MAX_LENGTH = 72
MIN_PAYLOAD_LENGTH = 44
CRC_FIELD_LENGTH = 8

TAG_MERCHANT_ACCOUNT = "26"
TAG_AMOUNT = "54"
TAG_MERCHANT_NAME = "59"
TAG_MERCHANT_CITY = "60"
TAG_ADDITIONAL_DATA = "62"

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class MerchantAccountInfo:
    pix_key: str
    gui: str = PIX_GUI

    def to_subitems(self) -> Iterable[TLVItem]:
        yield TLVItem(tag="00", value=self.gui)
        yield TLVItem(tag="01", value=self.pix_key)

    def encode(self) -> str:
        return encode_field(TAG_MERCHANT_ACCOUNT, build_tlv(self.to_subitems()))


@dataclass(frozen=True)
class AdditionalData:
    tx_id: str | None = None
    description: str | None = None

    def __bool__(self) -> bool:
        return bool(self.tx_id or self.description)

    def to_subitems(self) -> Iterable[TLVItem]:
        if self.tx_id:
            yield TLVItem(tag="05", value=self.tx_id)
        if self.description:
            # Longer descriptions are cut silently and cannot be recovered.
            yield TLVItem(tag="02", value=self.description[:DESCRIPTION_MAX_LENGTH])

    def encode(self) -> str:
        if not self:
            return ""
        return encode_field(TAG_ADDITIONAL_DATA, build_tlv(self.to_subitems()))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.tx_id is not None:
            data["txId"] = self.tx_id
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class ParsedPixData:
    amount: float | None = None
    merchant_name: str | None = None
    merchant_city: str | None = None
    additional_data: AdditionalData | None = None

    @property
    def tx_id(self) -> str | None:
        return self.additional_data.tx_id if self.additional_data else None

    @property
    def description(self) -> str | None:
        return self.additional_data.description if self.additional_data else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.amount is not None:
            data["amount"] = self.amount
        if self.merchant_name is not None:
            data["merchantName"] = self.merchant_name
        if self.merchant_city is not None:
            data["merchantCity"] = self.merchant_city
        if self.additional_data is not None:
            data["additionalData"] = self.additional_data.to_dict()
        return data


def format_amount(amount: Any) -> str:
    """Format ``amount`` with exactly two fractional digits (half-up)."""

    try:
        value = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise EncodingError(f"Invalid amount {amount!r}") from exc
    if not value.is_finite():
        raise EncodingError(f"Invalid amount {amount!r}")
    return f"{value:.2f}"


def _require(name: str, value: str | None) -> str:
    if value is None or not str(value).strip():
        raise MissingFieldError(f"{name} is required")
    return value


def assemble_payload(
    pix_key: str,
    merchant_name: str,
    merchant_city: str,
    amount: Any = None,
    tx_id: str | None = None,
    description: str | None = None,
) -> str:
    """Build a static PIX Copia e Cola payload terminated by its CRC field."""

    pix_key = _require("pix_key", pix_key)
    merchant_name = _require("merchant_name", merchant_name)
    merchant_city = _require("merchant_city", merchant_city)

    parts = [
        PAYLOAD_FORMAT_INDICATOR,
        POINT_OF_INITIATION_STATIC,
        MerchantAccountInfo(pix_key=pix_key).encode(),
        MERCHANT_CATEGORY_CODE,
        CURRENCY_BRL,
    ]
    if amount is not None:
        formatted = format_amount(amount)
        if Decimal(formatted) > 0:
            parts.append(encode_field(TAG_AMOUNT, formatted))
    parts.append(COUNTRY_CODE)
    parts.append(encode_field(TAG_MERCHANT_NAME, merchant_name))
    parts.append(encode_field(TAG_MERCHANT_CITY, merchant_city))
    parts.append(AdditionalData(tx_id=tx_id, description=description).encode())

    payload_no_crc = "".join(parts)
    payload = payload_no_crc + crc_field(payload_no_crc)
    logger.debug("payload assembled", extra={"payload_length": len(payload), "tx_id": tx_id})
    return payload


def validate_payload(payload: Any) -> bool:
    """Return ``True`` when ``payload`` is long enough, well prefixed and its CRC matches."""

    if not isinstance(payload, str):
        return False
    if len(payload) < MIN_PAYLOAD_LENGTH:
        return False
    if not payload.startswith(PAYLOAD_FORMAT_INDICATOR):
        return False
    if payload[-CRC_FIELD_LENGTH:-4] != CRC_TAG_HEADER:
        return False
    return payload[-4:] == crc16_ccitt(payload[:-4])


def _parse_additional_data(value: str) -> AdditionalData:
    tx_id = None
    description = None
    for item in TLVReader(value):
        if item.tag == "05":
            tx_id = item.value
        elif item.tag == "02":
            description = item.value
    return AdditionalData(tx_id=tx_id, description=description)


def parse_payload(payload: str) -> ParsedPixData:
    """Parse a validated PIX payload into its known fields.

    Unknown top-level tags are skipped. Raises :class:`InvalidPayloadError`
    when the payload does not validate or its TLV structure is broken.
    """

    if not validate_payload(payload):
        raise InvalidPayloadError("Invalid PIX code")

    fields: dict[str, Any] = {}
    reader = TLVReader(payload, end=len(payload) - CRC_FIELD_LENGTH)
    for item in reader:
        if item.tag == TAG_AMOUNT:
            try:
                fields["amount"] = float(item.value)
            except ValueError as exc:
                raise InvalidPayloadError(f"Invalid amount {item.value!r}") from exc
        elif item.tag == TAG_MERCHANT_NAME:
            fields["merchant_name"] = item.value
        elif item.tag == TAG_MERCHANT_CITY:
            fields["merchant_city"] = item.value
        elif item.tag == TAG_ADDITIONAL_DATA:
            fields["additional_data"] = _parse_additional_data(item.value)

    return ParsedPixData(**fields)
