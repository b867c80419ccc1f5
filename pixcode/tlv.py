"""Utility helpers to build and parse EMV-style TLV payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .services.errors import EncodingError, InvalidPayloadError

MAX_VALUE_LENGTH = 99
HEADER_LENGTH = 4


def _check_tag(tag: str) -> None:
    if len(tag) != 2 or not (tag.isascii() and tag.isdigit()):
        raise EncodingError(f"TLV tag must be two ASCII digits, got {tag!r}")


@dataclass(frozen=True)
class TLVItem:
    tag: str
    value: str

    def __post_init__(self) -> None:
        _check_tag(self.tag)
        if len(self.value) > MAX_VALUE_LENGTH:
            raise EncodingError(f"Value for tag {self.tag} has {len(self.value)} characters (max {MAX_VALUE_LENGTH})")

    @property
    def length(self) -> str:
        return f"{len(self.value):02d}"

    def serialize(self) -> str:
        return f"{self.tag}{self.length}{self.value}"


def encode_field(tag: str, value: str) -> str:
    """Encode a single ``tag + length + value`` field."""

    return TLVItem(tag=tag, value=value).serialize()


def build_tlv(items: Iterable[TLVItem]) -> str:
    """Serialize iterable of TLV items into EMV string."""

    return "".join(item.serialize() for item in items)


class TLVReader:
    """Bounds-checked cursor over a TLV string.

    ``read`` consumes exactly one field and never slices past the end of the
    buffer; any structural problem raises :class:`InvalidPayloadError`.
    """

    def __init__(self, payload: str, start: int = 0, end: int | None = None):
        self.payload = payload
        self.position = start
        self.end = len(payload) if end is None else end

    @property
    def remaining(self) -> int:
        return self.end - self.position

    def at_end(self) -> bool:
        return self.position >= self.end

    def read(self) -> TLVItem:
        if self.remaining < HEADER_LENGTH:
            raise InvalidPayloadError(f"Truncated TLV header at offset {self.position}")
        tag = self.payload[self.position : self.position + 2]
        raw_length = self.payload[self.position + 2 : self.position + 4]
        if not (raw_length.isascii() and raw_length.isdigit()):
            raise InvalidPayloadError(f"Invalid TLV length {raw_length!r} at offset {self.position}")
        length = int(raw_length)
        value_start = self.position + HEADER_LENGTH
        value_end = value_start + length
        if value_end > self.end:
            raise InvalidPayloadError(f"TLV value for tag {tag!r} overruns payload at offset {self.position}")
        try:
            item = TLVItem(tag=tag, value=self.payload[value_start:value_end])
        except EncodingError as exc:
            raise InvalidPayloadError(exc.message) from exc
        self.position = value_end
        return item

    def __iter__(self) -> Iterator[TLVItem]:
        while not self.at_end():
            yield self.read()


def parse_tlv(payload: str) -> Iterator[TLVItem]:
    """Lazily parse a TLV payload string into TLV items."""

    return iter(TLVReader(payload))
