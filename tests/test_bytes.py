from __future__ import annotations

import pytest

from btcrpc.utils.bytes import ByteReader, compact_size_decode, compact_size_encode, from_hex


@pytest.mark.parametrize(
    "n, encoded",
    [
        (0, "00"),
        (0xFC, "fc"),
        (0xFD, "fdfd00"),
        (0xFFFF, "fdffff"),
        (0x10000, "fe00000100"),
        (0x100000000, "ff0000000001000000"),
    ],
)
def test_compact_size_boundaries(n, encoded):
    assert compact_size_encode(n).hex() == encoded
    assert compact_size_decode(bytes.fromhex(encoded)) == (n, len(encoded) // 2)


def test_compact_size_decode_at_offset():
    assert compact_size_decode(b"\xaa\xfd\x00\x01", offset=1) == (0x100, 3)


def test_reader_raises_on_truncation():
    reader = ByteReader(b"\x01\x02\x03")
    assert reader.read(2) == b"\x01\x02"
    assert reader.remaining() == 1
    with pytest.raises(ValueError):
        reader.u32()


@pytest.mark.parametrize("bad", ["0x00", "abc", "zz"])
def test_from_hex_is_strict(bad):
    with pytest.raises(ValueError):
        from_hex(bad)
