import hashlib

import pytest

from saveconv.cartridge import (
    detect_byte_order,
    extract_title,
    hash_file,
    identify_cartridge,
    normalize_header,
    read_header,
    swap_groups,
)
from saveconv.config import Settings
from saveconv.errors import HeaderTruncated, IoFailure, UnsupportedCartridgeFormat, ValidationFailure
from saveconv.models import ByteOrderMode

from conftest import build_header, to_layout

EMPTY_SHA256 = "E3B0C44298FC1C149AFBF4C8996FB92427AE41E4649B934CA495991B7852B855"


@pytest.mark.parametrize("fmt,mode", [
    ("z64", ByteOrderMode.NATIVE),
    ("n64", ByteOrderMode.WORD_SWAPPED),
    ("v64", ByteOrderMode.HALFWORD_SWAPPED),
])
def test_detect_and_normalize_all_layouts(fmt, mode):
    canonical = build_header()
    raw = to_layout(canonical, fmt)

    assert detect_byte_order(raw) is mode
    assert normalize_header(raw, mode) == canonical


def test_normalize_native_is_idempotent():
    header = build_header()
    once = normalize_header(header, ByteOrderMode.NATIVE)
    assert once == header
    assert normalize_header(once, ByteOrderMode.NATIVE) == header


@pytest.mark.parametrize("mode", [ByteOrderMode.WORD_SWAPPED, ByteOrderMode.HALFWORD_SWAPPED])
def test_normalize_swapped_is_self_inverse(mode):
    header = bytes(range(0x40))
    assert normalize_header(normalize_header(header, mode), mode) == header


def test_swap_groups_layout():
    assert swap_groups(b"\x01\x02\x03\x04\x05\x06\x07\x08", 4) == b"\x04\x03\x02\x01\x08\x07\x06\x05"
    assert swap_groups(b"\x01\x02\x03\x04", 2) == b"\x02\x01\x04\x03"
    with pytest.raises(ValueError):
        swap_groups(b"\x01\x02\x03", 2)


def test_unknown_magic_is_rejected():
    with pytest.raises(UnsupportedCartridgeFormat) as exc:
        detect_byte_order(bytes(0x40))
    assert exc.value.magic == b"\x00\x00\x00\x00"
    assert "00 00 00 00" in str(exc.value)


def test_title_strips_padding_and_special_characters():
    assert extract_title(build_header(b"SUPER GAME!!  ")) == "SUPER GAME"


def test_title_keeps_internal_spaces_and_digits():
    assert extract_title(build_header(b"MARIO  KART 64")) == "MARIO  KART 64"


def test_title_may_be_empty():
    assert extract_title(build_header(b"")) == ""
    assert extract_title(build_header(b"\xff\x00!?")) == ""


def test_title_drops_non_ascii_bytes():
    assert extract_title(build_header(b"ZELDA\x00\x00\xe9 OOT")) == "ZELDA OOT"


def test_read_header_too_short(tmp_path):
    rom = tmp_path / "short.z64"
    rom.write_bytes(build_header()[:40])
    with pytest.raises(HeaderTruncated) as exc:
        read_header(rom)
    assert (exc.value.expected, exc.value.actual) == (64, 40)


def test_read_header_missing_file(tmp_path):
    with pytest.raises(IoFailure) as exc:
        read_header(tmp_path / "missing.z64")
    assert exc.value.path.endswith("missing.z64")


def test_hash_of_empty_file(tmp_path):
    empty = tmp_path / "empty.z64"
    empty.write_bytes(b"")
    assert hash_file(empty) == EMPTY_SHA256


def test_hash_matches_hashlib_regardless_of_chunk_size(tmp_path):
    data = bytes(range(256)) * 300
    rom = tmp_path / "blob.bin"
    rom.write_bytes(data)

    expected = hashlib.sha256(data).hexdigest().upper()
    assert hash_file(rom) == expected
    assert hash_file(rom, chunk_size=7) == expected
    assert hash_file(rom) == hash_file(rom)


@pytest.mark.parametrize("fmt", ["z64", "n64", "v64"])
def test_identify_cartridge(make_rom, fmt):
    rom = make_rom(fmt=fmt)
    identity = identify_cartridge(rom)

    assert identity.title == "SUPER GAME"
    assert identity.byte_order.value == fmt
    # hash covers the file as stored, not the normalized image
    assert identity.content_hash == hashlib.sha256(rom.read_bytes()).hexdigest().upper()


def test_identify_rejects_oversized_rom(make_rom):
    rom = make_rom()
    with pytest.raises(ValidationFailure):
        identify_cartridge(rom, Settings(max_rom_bytes=100))


def test_identify_rejects_unknown_format(tmp_path):
    rom = tmp_path / "zeros.z64"
    rom.write_bytes(bytes(0x1000))
    with pytest.raises(UnsupportedCartridgeFormat):
        identify_cartridge(rom)
