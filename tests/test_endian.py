import math

import pytest

from mbslave.endian import NumberKind, from_be, from_le, to_be, to_le

INT_KINDS = [
    NumberKind.U16,
    NumberKind.U32,
    NumberKind.U64,
    NumberKind.I16,
    NumberKind.I32,
    NumberKind.I64,
]
ALL_KINDS = INT_KINDS + [NumberKind.F32, NumberKind.F64]


def test_u16_big_endian_pinned():
    assert from_be(b"\x12\x34", NumberKind.U16) == 0x1234


def test_u16_little_endian_pinned():
    assert from_le(b"\x34\x12", NumberKind.U16) == 0x1234


def test_u16_to_be_coil_on():
    assert to_be(0xFF00, NumberKind.U16) == b"\xff\x00"


def test_u16_to_le_crc_order():
    assert to_le(0xFF00, NumberKind.U16) == b"\x00\xff"


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_size_of_encoding(kind):
    assert len(to_be(1, kind)) == kind.size
    assert len(to_le(1, kind)) == kind.size


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_le_is_reversed_be(kind):
    value = 7
    assert to_le(value, kind) == to_be(value, kind)[::-1]


@pytest.mark.parametrize("kind", INT_KINDS)
def test_integer_round_trip(kind):
    values = [0, 1, 0x7F, 0x1234]
    if kind.signed:
        values += [-1, -0x1234, -(1 << (8 * kind.size - 1))]
    else:
        values += [kind.mask]
    for v in values:
        assert from_be(to_be(v, kind), kind) == v
        assert from_le(to_le(v, kind), kind) == v


@pytest.mark.parametrize("kind", [NumberKind.F32, NumberKind.F64])
def test_float_round_trip_exact(kind):
    for v in [0.0, 1.5, -2.25, 1024.0]:
        assert from_be(to_be(v, kind), kind) == v
        assert from_le(to_le(v, kind), kind) == v


@pytest.mark.parametrize("kind", [NumberKind.F32, NumberKind.F64])
def test_float_special_values(kind):
    assert from_be(to_be(math.inf, kind), kind) == math.inf
    assert math.isnan(from_le(to_le(math.nan, kind), kind))


def test_signed_reinterprets_unsigned_bits():
    raw = to_be(-1, NumberKind.I16)
    assert from_be(raw, NumberKind.U16) == 0xFFFF
    assert from_be(raw, NumberKind.I16) == -1


def test_unsigned_to_signed_reinterpretation():
    raw = to_le(0xFFFF, NumberKind.U16)
    assert from_le(raw, NumberKind.I16) == -1


def test_big_endian_reads_swapped_little():
    raw = to_le(0x1234, NumberKind.U32)
    assert from_be(raw[::-1], NumberKind.U32) == 0x1234


def test_extra_bytes_ignored():
    raw = to_be(0x1234, NumberKind.U16) + b"\xaa\xbb"
    assert from_be(raw, NumberKind.U16) == 0x1234


def test_reads_from_memoryview_offset():
    buf = bytearray(b"\x00") + bytearray(to_be(0x1234, NumberKind.U16))
    assert from_be(memoryview(buf)[1:], NumberKind.U16) == 0x1234


def test_out_of_range_wraps():
    assert to_be(0x10000 + 5, NumberKind.U16) == to_be(5, NumberKind.U16)
    assert to_be(-1, NumberKind.U32) == to_be(0xFFFFFFFF, NumberKind.U32)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_short_buffer_raises(kind):
    with pytest.raises(ValueError):
        from_be(b"\x01" * (kind.size - 1), kind)
    with pytest.raises(ValueError):
        from_le(b"", kind)


def test_float_for_integer_kind_raises():
    with pytest.raises(TypeError):
        to_be(1.5, NumberKind.U16)


def test_text_for_float_kind_raises():
    with pytest.raises(TypeError):
        to_le("1.0", NumberKind.F32)