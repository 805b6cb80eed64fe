"""
Save payload transformation.

Three paths, picked from the SaveKind:
- byte swap: stream 32-bit words and reverse each one (SRAM, FlashRAM)
- size normalization: truncate / zero-pad / tile into a fixed container
- direct copy: byte-for-byte

Output is written to a temporary file next to the destination and moved into
place only once everything has been written and synced, so a failed run never
leaves a truncated save behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from .cartridge import swap_groups
from .config import Settings, get_settings
from .errors import EmptySourceFile, IoFailure, MisalignedSaveData, PathLike, ValidationFailure
from .models import SaveKind, TransformReport

logger = logging.getLogger(__name__)


def swap_words(data: bytes, path: Optional[PathLike] = None) -> bytes:
    """Big-endian <-> little-endian swap of every 32-bit word."""
    if len(data) % 4:
        raise MisalignedSaveData(path, len(data))
    return swap_groups(data, 4)


def _normalize(payload: bytes, kind: SaveKind, path: Optional[PathLike] = None):
    if not kind.container_size:
        raise ValueError(f"save kind '{kind.name}' has no fixed container size")
    if not payload:
        raise EmptySourceFile(path)

    unit = bytes(payload)
    truncated = padded = False

    if kind.max_size and len(unit) > kind.max_size:
        unit = unit[:kind.max_size]
        truncated = True

    if len(unit) <= kind.unit_size:
        padded = len(unit) < kind.unit_size
        unit = unit.ljust(kind.unit_size, b"\x00")

    target = kind.container_size
    tiles = 1
    if len(unit) < target and target % len(unit) == 0:
        tiles = target // len(unit)
        out = unit * tiles
    else:
        if len(unit) < target:
            padded = True
        out = unit[:target].ljust(target, b"\x00")

    return out, truncated, padded, tiles


def normalize_payload(payload: bytes, kind: SaveKind) -> bytes:
    """
    Fit `payload` into the fixed container of `kind`.

    Rules:
    - kinds without a container size are rejected
    - empty payloads are rejected
    - anything past the largest tier (kind.max_size) is dropped
    - payloads no larger than one unit are zero-padded to a full unit
    - the resulting unit is repeated when the container holds a whole number
      of units, otherwise zero-padded to the container size
    """
    return _normalize(payload, kind)[0]


def _match_mode(tmp_path: str, dest: str) -> None:
    # mkstemp creates 0600; give the output the mode a plain create would
    if os.path.exists(dest):
        shutil.copymode(dest, tmp_path)
    else:
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_path, 0o666 & ~umask)


@contextmanager
def _atomic_output(dest: PathLike) -> Iterator[BinaryIO]:
    dest = os.fspath(dest)
    directory = os.path.dirname(os.path.abspath(dest))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".saveconv-", suffix=".tmp", dir=directory)
    except OSError as e:
        raise IoFailure(dest, "creating output file", e) from e

    try:
        with os.fdopen(fd, "wb") as out:
            yield out
            out.flush()
            os.fsync(out.fileno())
        _match_mode(tmp_path, dest)
        os.replace(tmp_path, dest)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def _read_bounded(src: PathLike, limit: int) -> bytes:
    try:
        with open(src, "rb") as f:
            payload = f.read(limit + 1)
    except OSError as e:
        raise IoFailure(src, "reading save file", e) from e
    if len(payload) > limit:
        raise ValidationFailure(src, f"save file '{os.fspath(src)}' is too large (limit {limit} bytes)")
    return payload


def _stream_swap(src: PathLike, out: BinaryIO, chunk_size: int) -> int:
    total = 0
    pending = b""
    try:
        with open(src, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                buf = pending + chunk
                cut = len(buf) - len(buf) % 4
                out.write(swap_groups(buf[:cut], 4))
                pending = buf[cut:]
                total += len(chunk)
    except OSError as e:
        raise IoFailure(src, "converting save file", e) from e
    if pending:
        raise MisalignedSaveData(src, total)
    return total


def _stream_copy(src: PathLike, out: BinaryIO, chunk_size: int) -> int:
    try:
        with open(src, "rb") as f:
            shutil.copyfileobj(f, out, chunk_size)
    except OSError as e:
        raise IoFailure(src, "copying save file", e) from e
    return out.tell()


def convert_save(
    src: PathLike,
    dest: PathLike,
    kind: SaveKind,
    settings: Optional[Settings] = None,
) -> TransformReport:
    """
    Convert the save at `src` into `dest` (created or truncated).

    The source file is only ever read.
    """
    settings = settings or get_settings()

    try:
        with _atomic_output(dest) as out:
            if kind.container_size:
                payload = _read_bounded(src, settings.max_save_bytes)
                data, truncated, padded, tiles = _normalize(payload, kind, src)
                if truncated:
                    logger.warning("%s: truncated %d bytes to %d", os.fspath(src), len(payload), kind.max_size)
                if kind.requires_byte_swap:
                    data = swap_words(data, src)
                out.write(data)
                report = TransformReport(
                    action="normalize",
                    kind=kind.name,
                    bytes_in=len(payload),
                    bytes_out=len(data),
                    byte_swapped=kind.requires_byte_swap,
                    truncated=truncated,
                    padded=padded,
                    tiles=tiles,
                )
            elif kind.requires_byte_swap:
                n = _stream_swap(src, out, settings.chunk_size)
                report = TransformReport(
                    action="byteswap", kind=kind.name, bytes_in=n, bytes_out=n, byte_swapped=True
                )
            else:
                n = _stream_copy(src, out, settings.chunk_size)
                report = TransformReport(action="copy", kind=kind.name, bytes_in=n, bytes_out=n)
    except OSError as e:
        raise IoFailure(dest, "writing output file", e) from e

    logger.info("%s -> %s: %s (%d -> %d bytes)", os.fspath(src), os.fspath(dest), report.action, report.bytes_in, report.bytes_out)
    return report
