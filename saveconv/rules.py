"""
Format registry: fixed classification tables.

Everything here is read-only process-wide data. Extensions are looked up
lower-cased and include the leading dot.
"""

from __future__ import annotations

from types import MappingProxyType

from .models import ByteOrderMode, SaveKind

HEADER_SIZE = 0x40
TITLE_OFFSET = 0x20
TITLE_LENGTH = 20

KIB = 1024

MAGIC_BYTE_ORDER = MappingProxyType({
    b"\x80\x37\x12\x40": ByteOrderMode.NATIVE,
    b"\x40\x12\x37\x80": ByteOrderMode.WORD_SWAPPED,
    b"\x37\x80\x40\x12": ByteOrderMode.HALFWORD_SWAPPED,
})

ROM_EXTENSIONS = frozenset({".z64", ".n64", ".v64"})

SRAM = SaveKind(name="sram", requires_byte_swap=True)
FLASHRAM = SaveKind(name="flashram", requires_byte_swap=True)
EEPROM = SaveKind(name="eeprom")
# a single 32 KiB controller pak is mirrored into all four pak slots
CONTROLLER_PAK = SaveKind(
    name="controller_pak",
    container_size=128 * KIB,
    unit_size=32 * KIB,
    max_size=128 * KIB,
)

SAVE_KINDS = MappingProxyType({
    ".sra": SRAM,
    ".fla": FLASHRAM,
    ".eep": EEPROM,
    ".mpk": CONTROLLER_PAK,
    ".mem": CONTROLLER_PAK,
})

SAVE_EXTENSIONS = frozenset(SAVE_KINDS)

# legacy extensions written under their canonical name
OUTPUT_EXTENSIONS = MappingProxyType({
    ".mem": ".mpk",
})


def is_save_extension(ext: str) -> bool:
    return ext.lower() in SAVE_EXTENSIONS


def is_rom_extension(ext: str) -> bool:
    return ext.lower() in ROM_EXTENSIONS


def save_kind_for(ext: str) -> SaveKind:
    try:
        return SAVE_KINDS[ext.lower()]
    except KeyError:
        raise KeyError(f"no save kind registered for extension '{ext}'") from None


def output_extension_for(ext: str) -> str:
    ext = ext.lower()
    return OUTPUT_EXTENSIONS.get(ext, ext)
