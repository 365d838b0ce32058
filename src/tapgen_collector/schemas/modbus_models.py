"""Modbus register point and sample models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Encoding(str, Enum):
    """Numeric encodings a register point can be decoded with."""
    INT16 = "INT16"
    UINT16 = "UINT16"
    INT32 = "INT32"              # high word first (AB)
    INT32_SWAP = "INT32_SWAP"    # low word first (BA / CDAB)
    UINT32 = "UINT32"
    UINT32_SWAP = "UINT32_SWAP"
    FLOAT = "FLOAT"              # IEEE-754 single, AB
    FLOAT_SWAP = "FLOAT_SWAP"    # IEEE-754 single, BA


SINGLE_WORD_ENCODINGS = frozenset({Encoding.INT16, Encoding.UINT16})


class RegisterPoint(BaseModel):
    """
    Schema for a single decodable measurement of a device type.

    Represents one register or register pair read from a device.
    """
    model_config = ConfigDict(frozen=True)

    device_type: str = Field(..., description="Device type key, e.g. 'k24'")
    code: str = Field(..., description="Stable machine name, unique within the device type")
    display_name: str = Field(..., description="Human-readable name")
    address: int = Field(..., ge=0, le=65535, description="Zero-based register offset")
    word_count: int = Field(..., ge=1, le=2, description="Number of 16-bit registers")
    encoding: Encoding = Field(..., description="Numeric encoding of the raw words")
    scale: float = Field(default=1.0, description="Multiplier applied to the decoded value")
    unit: str = Field(default="", description="Engineering unit (e.g., 'V', 'A', 'L/min')")

    @model_validator(mode="after")
    def validate_word_count_for_encoding(self) -> "RegisterPoint":
        """Word count must match the encoding width."""
        expected = 1 if self.encoding in SINGLE_WORD_ENCODINGS else 2
        if self.word_count != expected:
            raise ValueError(
                f"Encoding {self.encoding.value} requires word_count={expected}, "
                f"got {self.word_count} for '{self.device_type}.{self.code}'"
            )
        return self


class Sample(BaseModel):
    """One decoded, scaled measurement produced by a device read."""
    model_config = ConfigDict(frozen=True)

    group: str
    device: str
    device_type: str
    code: str
    display_name: str
    unit: str
    value: Optional[float] = None
    timestamp: datetime
