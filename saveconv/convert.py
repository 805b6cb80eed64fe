"""
Orchestration: validate one save/ROM pair, identify the cartridge and write the
converted save under its Gopher64 name.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .cartridge import identify_cartridge
from .config import Settings, get_settings
from .errors import PathLike, ValidationFailure
from .models import CartridgeIdentity, ConversionResult
from .rules import (
    ROM_EXTENSIONS,
    SAVE_EXTENSIONS,
    is_rom_extension,
    is_save_extension,
    output_extension_for,
    save_kind_for,
)
from .transform import convert_save

logger = logging.getLogger(__name__)


# label -> (registry gate, extensions listed in the error message)
INPUT_GATES = {
    "save": (is_save_extension, SAVE_EXTENSIONS),
    "ROM": (is_rom_extension, ROM_EXTENSIONS),
}


def allowed_extensions(label: str) -> str:
    return " ".join(sorted(INPUT_GATES[label][1]))


def validate_input(path: PathLike, label: str, max_bytes: int) -> str:
    """Boundary checks for an input file; returns its lower-cased extension."""
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise ValidationFailure(path, f"'{path}' is not a valid file path")

    size = os.path.getsize(path)
    if size > max_bytes:
        raise ValidationFailure(path, f"{label} file '{path}' is too large ({size} bytes, limit {max_bytes})")

    is_allowed = INPUT_GATES[label][0]
    ext = os.path.splitext(path)[1].lower()
    if not is_allowed(ext):
        raise ValidationFailure(
            path,
            f"unsupported {label} file extension '{ext}'; only {allowed_extensions(label)} files are allowed",
        )
    return ext


def output_name(identity: CartridgeIdentity, save_ext: str) -> str:
    return f"{identity.title}-{identity.content_hash}{output_extension_for(save_ext)}"


def convert_pair(
    save_path: PathLike,
    rom_path: PathLike,
    out_dir: PathLike = ".",
    *,
    overwrite: bool = False,
    settings: Optional[Settings] = None,
) -> ConversionResult:
    settings = settings or get_settings()

    save_ext = validate_input(save_path, "save", settings.max_save_bytes)
    validate_input(rom_path, "ROM", settings.max_rom_bytes)

    identity = identify_cartridge(rom_path, settings)
    name = output_name(identity, save_ext)
    dest = os.path.join(os.fspath(out_dir), name)

    if not overwrite and os.path.exists(dest):
        raise ValidationFailure(dest, f"output file '{dest}' already exists")

    report = convert_save(save_path, dest, save_kind_for(save_ext), settings)
    logger.info("file converted successfully: %s", dest)

    return ConversionResult(output_name=name, output_path=dest, cartridge=identity, report=report)
