"""
Error taxonomy for save conversion.

Every failure is terminal for the current run; nothing here is retried.
Messages always name the offending path so the caller can print them as-is.
"""

from __future__ import annotations

import os
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


class ConversionError(Exception):
    """Base class for everything the converter raises on purpose."""

    def __init__(self, path: Optional[PathLike], message: str):
        self.path = os.fspath(path) if path is not None else None
        super().__init__(message)


class IoFailure(ConversionError):
    def __init__(self, path: PathLike, action: str, cause: OSError):
        self.action = action
        self.cause = cause
        super().__init__(path, f"error {action} '{os.fspath(path)}': {cause}")


class HeaderTruncated(ConversionError):
    def __init__(self, path: PathLike, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            path,
            f"ROM header of '{os.fspath(path)}' is incomplete: "
            f"expected {expected} bytes, got {actual}",
        )


class UnsupportedCartridgeFormat(ConversionError):
    def __init__(self, path: Optional[PathLike], magic: bytes):
        self.magic = bytes(magic)
        where = f" '{os.fspath(path)}'" if path is not None else ""
        super().__init__(
            path,
            f"unsupported ROM format{where} based on magic bytes {self.magic.hex(' ').upper()}",
        )


class MisalignedSaveData(ConversionError):
    def __init__(self, path: Optional[PathLike], size: int):
        self.size = size
        self.trailing = size % 4
        where = f" '{os.fspath(path)}'" if path is not None else ""
        super().__init__(
            path,
            f"save file{where} size is not a multiple of 4 bytes "
            f"({size} bytes, {self.trailing} trailing)",
        )


class EmptySourceFile(ConversionError):
    def __init__(self, path: Optional[PathLike]):
        where = f" '{os.fspath(path)}'" if path is not None else ""
        super().__init__(path, f"save file{where} is empty")


class ValidationFailure(ConversionError):
    def __init__(self, path: Optional[PathLike], reason: str):
        self.reason = reason
        super().__init__(path, reason)
