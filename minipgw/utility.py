"""IMSI decoding and timestamp helpers."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

_MIN_IMSI_DIGITS = 6
_MAX_IMSI_DIGITS = 15
_IMSI_TYPE = 1
_FILLER = 0x0F


class ParseError(Enum):
    """Reasons a packet does not yield an IMSI."""

    PACKET_TOO_SHORT = "packet_too_short"
    INVALID_IMSI_TYPE = "invalid_imsi_type"
    PACKET_SIZE_MISMATCH = "packet_size_mismatch"
    INVALID_BCD_DIGIT = "invalid_bcd_digit"
    INVALID_IMSI_LENGTH = "invalid_imsi_length"


class ImsiParseError(ValueError):
    """Raised when a packet does not hold a valid BCD-encoded IMSI."""

    def __init__(self, error: ParseError) -> None:
        super().__init__(error.value)
        self.error = error


def parse_imsi_from_bcd(packet: bytes) -> str:
    """Decode the IMSI carried in ``packet``.

    Layout: a type byte (1), a big-endian 16-bit length, one spare byte,
    then BCD digits with the low nibble first. A high nibble of 0xF ends
    the digits.
    """
    if len(packet) < 4:
        raise ImsiParseError(ParseError.PACKET_TOO_SHORT)
    if packet[0] != _IMSI_TYPE:
        raise ImsiParseError(ParseError.INVALID_IMSI_TYPE)

    length = int.from_bytes(packet[1:3], "big")
    if len(packet) < 3 + length:
        raise ImsiParseError(ParseError.PACKET_SIZE_MISMATCH)

    digits: list[str] = []
    for byte in packet[4:]:
        low, high = byte & 0x0F, byte >> 4
        if low > 9:
            raise ImsiParseError(ParseError.INVALID_BCD_DIGIT)
        digits.append(str(low))
        if high == _FILLER:
            break
        if high > 9:
            raise ImsiParseError(ParseError.INVALID_BCD_DIGIT)
        digits.append(str(high))

    if not _MIN_IMSI_DIGITS <= len(digits) <= _MAX_IMSI_DIGITS:
        raise ImsiParseError(ParseError.INVALID_IMSI_LENGTH)
    return "".join(digits)


def current_timestamp() -> str:
    """Local time as ``YYYY-MM-DD HH:MM:SS.mmmmmm`` holding milliseconds."""
    now = datetime.now()
    return f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:06d}"