"""
Cartridge identification.

Responsibilities:
- read the 64-byte ROM header
- detect the image byte order from the header magic
- bring the header into big-endian order and pull out a clean title
- hash the whole, unmodified image with SHA-256
"""

from __future__ import annotations

import hashlib
import logging
import os
import string
from typing import Optional

from .config import Settings, get_settings
from .errors import HeaderTruncated, IoFailure, PathLike, UnsupportedCartridgeFormat, ValidationFailure
from .models import ByteOrderMode, CartridgeIdentity
from .rules import HEADER_SIZE, MAGIC_BYTE_ORDER, TITLE_LENGTH, TITLE_OFFSET

logger = logging.getLogger(__name__)

TITLE_CHARS = frozenset((string.ascii_letters + string.digits + " ").encode("ascii"))


def swap_groups(data: bytes, width: int) -> bytes:
    """Reverse the byte order inside every `width`-byte group of `data`."""
    if len(data) % width:
        raise ValueError(f"length {len(data)} is not a multiple of {width}")
    out = bytearray(len(data))
    for i in range(width):
        out[i::width] = data[width - 1 - i::width]
    return bytes(out)


def detect_byte_order(header: bytes, path: Optional[PathLike] = None) -> ByteOrderMode:
    magic = bytes(header[:4])
    mode = MAGIC_BYTE_ORDER.get(magic)
    if mode is None:
        raise UnsupportedCartridgeFormat(path, magic)
    return mode


def normalize_header(header: bytes, mode: ByteOrderMode) -> bytes:
    if mode is ByteOrderMode.WORD_SWAPPED:
        return swap_groups(header, 4)
    if mode is ByteOrderMode.HALFWORD_SWAPPED:
        return swap_groups(header, 2)
    return bytes(header)


def extract_title(header: bytes) -> str:
    """
    Clean game title from a big-endian header.

    Trailing space padding is stripped first, then every byte outside
    [A-Za-z0-9 ] is dropped. An empty title is valid.
    """
    field = bytes(header[TITLE_OFFSET:TITLE_OFFSET + TITLE_LENGTH]).rstrip(b" ")
    return bytes(b for b in field if b in TITLE_CHARS).decode("ascii")


def read_header(path: PathLike) -> bytes:
    try:
        with open(path, "rb") as f:
            header = f.read(HEADER_SIZE)
    except OSError as e:
        raise IoFailure(path, "reading ROM header of", e) from e

    if len(header) < HEADER_SIZE:
        raise HeaderTruncated(path, HEADER_SIZE, len(header))
    return header


def hash_file(path: PathLike, chunk_size: int = 64 * 1024) -> str:
    """SHA-256 of the file contents as uppercase hex, read `chunk_size` bytes at a time."""
    hasher = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hasher.update(chunk)
    except OSError as e:
        raise IoFailure(path, "computing SHA256 for", e) from e
    return hasher.hexdigest().upper()


def identify_cartridge(path: PathLike, settings: Optional[Settings] = None) -> CartridgeIdentity:
    settings = settings or get_settings()

    try:
        size = os.stat(path).st_size
    except OSError as e:
        raise IoFailure(path, "opening ROM file", e) from e
    if size > settings.max_rom_bytes:
        raise ValidationFailure(
            path,
            f"ROM file '{os.fspath(path)}' is too large "
            f"({size} bytes, limit {settings.max_rom_bytes})",
        )

    raw = read_header(path)
    mode = detect_byte_order(raw, path)
    title = extract_title(normalize_header(raw, mode))
    content_hash = hash_file(path, settings.chunk_size)

    logger.info("identified %s: title=%r format=%s sha256=%s", os.fspath(path), title, mode.value, content_hash)
    return CartridgeIdentity(title=title, content_hash=content_hash, byte_order=mode)
