from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ByteOrderMode(str, Enum):
    """Internal layout of a cartridge image, named after its usual extension."""

    NATIVE = "z64"            # big-endian, canonical
    WORD_SWAPPED = "n64"      # little-endian 32-bit words
    HALFWORD_SWAPPED = "v64"  # byte-swapped 16-bit halfwords


class SaveKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    requires_byte_swap: bool = False
    # 0 means no size normalization: pass through or byte swap only
    container_size: int = Field(default=0, ge=0)
    unit_size: int = Field(default=0, ge=0)
    max_size: int = Field(default=0, ge=0)


class CartridgeIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(max_length=20)
    content_hash: str = Field(pattern=r"^[0-9A-F]{64}$")
    byte_order: ByteOrderMode


class TransformReport(BaseModel):
    action: Literal["copy", "byteswap", "normalize"]
    kind: str
    bytes_in: int
    bytes_out: int
    byte_swapped: bool = False
    truncated: bool = False
    padded: bool = False
    tiles: int = Field(default=1, examples=[4])


class ConversionResult(BaseModel):
    output_name: str
    output_path: str
    cartridge: CartridgeIdentity
    report: TransformReport


class ConvertedSave(BaseModel):
    file_name: str
    sha256: str
    size: int
    content_b64: str


class ConvertResponse(BaseModel):
    converted_save: ConvertedSave
    cartridge: CartridgeIdentity
    report: TransformReport


class HealthResponse(BaseModel):
    ok: bool = True
