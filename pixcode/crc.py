"""CRC16-CCITT-FALSE checksum used by the BR Code trailer (tag 63)."""
from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF
CRC_TAG_HEADER = "6304"


def crc16_ccitt(data: str) -> str:
    """Compute CRC16-CCITT (0x1021, init 0xFFFF, no final XOR) over ``data``.

    Each character contributes its code point, so ASCII payloads match the
    byte-oriented algorithm used by scanning applications.
    """

    checksum = CRC16_INIT
    for ch in data:
        checksum ^= ord(ch) << 8
        for _ in range(8):
            if checksum & 0x8000:
                checksum = (checksum << 1) ^ CRC16_POLY
            else:
                checksum <<= 1
            checksum &= 0xFFFF
    return f"{checksum:04X}"


def crc_field(payload_without_crc: str) -> str:
    """Return the complete ``6304XXXX`` field that terminates ``payload_without_crc``."""

    return f"{CRC_TAG_HEADER}{crc16_ccitt(payload_without_crc + CRC_TAG_HEADER)}"
