"""
Register value codec.

Converts a window of raw 16-bit register words into a typed value per
encoding, and applies the fixed-point scaling and rounding contract.
"""

import math
import struct
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Optional, Sequence, Union

from tapgen_collector.logger import get_logger
from tapgen_collector.schemas.modbus_models import Encoding, SINGLE_WORD_ENCODINGS

logger = get_logger(__name__)

Number = Union[int, float]

ROUNDING_QUANTUM = Decimal("0.001")
# wide enough to quantize any finite double to 3 decimals
_ROUNDING_CONTEXT = Context(prec=400)


def word_width(encoding: Encoding) -> int:
    """Number of registers an encoding consumes."""
    return 1 if encoding in SINGLE_WORD_ENCODINGS else 2


def _combine_words(high: int, low: int) -> int:
    return ((high & 0xFFFF) << 16) | (low & 0xFFFF)


def _to_signed32(value: int) -> int:
    if value >= 0x80000000:
        return value - 0x100000000
    return value


def _bits_to_float32(bits: int) -> float:
    return struct.unpack(">f", struct.pack(">I", bits))[0]


def decode(encoding: Encoding, words: Sequence[int], offset: int = 0) -> Number:
    """
    Decode the value starting at `offset` in a register window.

    AB encodings treat words[offset] as the high half, the *_SWAP (BA)
    encodings treat it as the low half. Float encodings reinterpret the
    32-bit pattern as IEEE-754 single precision bits.

    Args:
        encoding: Encoding of the value
        words: Raw 16-bit register words
        offset: Index of the value's first word inside `words`

    Returns:
        Decoded integer or float; 0 when the offset falls outside `words`
    """
    encoding = Encoding(encoding)
    width = word_width(encoding)

    if offset < 0 or offset + width > len(words):
        logger.debug(
            "Register offset %s out of range for %s (window of %s words), decoding as 0",
            offset,
            encoding.value,
            len(words),
        )
        return 0

    if encoding is Encoding.UINT16:
        return words[offset] & 0xFFFF
    if encoding is Encoding.INT16:
        return struct.unpack(">h", struct.pack(">H", words[offset] & 0xFFFF))[0]

    first = words[offset]
    second = words[offset + 1]

    if encoding in (Encoding.INT32, Encoding.UINT32, Encoding.FLOAT):
        combined = _combine_words(first, second)
    else:
        combined = _combine_words(second, first)

    if encoding in (Encoding.UINT32, Encoding.UINT32_SWAP):
        return combined
    if encoding in (Encoding.INT32, Encoding.INT32_SWAP):
        return _to_signed32(combined)
    return _bits_to_float32(combined)


def scale_and_round(raw: Number, scale: float) -> Optional[float]:
    """
    Apply the scale factor, then round half-up to 3 decimal places.

    Rounding works on the shortest decimal representation of the scaled
    float, so 1235 * 0.0001 rounds to 0.124. Non-finite results (NaN or
    infinity from float encodings) yield None.
    """
    scaled = float(raw) * scale
    if not math.isfinite(scaled):
        return None
    rounded = Decimal(repr(scaled)).quantize(
        ROUNDING_QUANTUM, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT
    )
    return float(rounded)
