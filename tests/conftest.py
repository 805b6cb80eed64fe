import pytest

from saveconv.cartridge import swap_groups

NATIVE_MAGIC = b"\x80\x37\x12\x40"


def build_header(title: bytes = b"SUPER GAME!!") -> bytes:
    header = bytearray(0x40)
    header[0:4] = NATIVE_MAGIC
    header[0x20:0x34] = title.ljust(20, b" ")[:20]
    header[0x3B:0x3F] = b"NSME"
    return bytes(header)


def to_layout(data: bytes, fmt: str) -> bytes:
    """Re-encode a big-endian image as z64, n64 or v64."""
    if fmt == "n64":
        return swap_groups(data, 4)
    if fmt == "v64":
        return swap_groups(data, 2)
    return data


@pytest.fixture
def make_rom(tmp_path):
    def _make(title=b"SUPER GAME!!", fmt="z64", body=b"\x12\x34\x56\x78" * 64, name=None):
        image = to_layout(build_header(title) + body, fmt)
        path = tmp_path / (name or f"game.{fmt}")
        path.write_bytes(image)
        return path
    return _make
