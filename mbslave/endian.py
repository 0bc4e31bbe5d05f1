"""Byte-order conversion between raw bytes and fixed-width numbers."""

from __future__ import annotations

import enum
import struct
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]
Number = Union[int, float]

__all__ = ["NumberKind", "from_be", "from_le", "to_be", "to_le"]


class NumberKind(enum.Enum):
    """Fixed-width numeric types that can be encoded to and from bytes."""

    U16 = ("H", 2, False, False)
    U32 = ("I", 4, False, False)
    U64 = ("Q", 8, False, False)
    I16 = ("h", 2, True, False)
    I32 = ("i", 4, True, False)
    I64 = ("q", 8, True, False)
    F32 = ("f", 4, True, True)
    F64 = ("d", 8, True, True)

    def __init__(self, code: str, size: int, signed: bool, is_float: bool) -> None:
        self.code = code
        self.size = size
        self.signed = signed
        self.is_float = is_float

    @property
    def mask(self) -> int:
        """All-ones bit mask covering the width of this kind."""
        return (1 << (8 * self.size)) - 1


def _decode(buf: BytesLike, kind: NumberKind, byteorder: str) -> Number:
    raw = bytes(buf[: kind.size])
    if len(raw) < kind.size:
        raise ValueError(
            f"{kind.name} needs {kind.size} bytes, got {len(raw)}"
        )
    if kind.is_float:
        prefix = ">" if byteorder == "big" else "<"
        return struct.unpack(prefix + kind.code, raw)[0]
    return int.from_bytes(raw, byteorder, signed=kind.signed)


def _encode(value: Number, kind: NumberKind, byteorder: str) -> bytes:
    if kind.is_float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{kind.name} expects a number, got {type(value).__name__}")
        prefix = ">" if byteorder == "big" else "<"
        return struct.pack(prefix + kind.code, value)
    if not isinstance(value, int):
        raise TypeError(f"{kind.name} expects an int, got {type(value).__name__}")
    # Values outside the width wrap around, as an integer conversion would.
    return (value & kind.mask).to_bytes(kind.size, byteorder)


def from_be(buf: BytesLike, kind: NumberKind) -> Number:
    """Decode the first ``kind.size`` bytes of ``buf`` as big-endian."""
    return _decode(buf, kind, "big")


def from_le(buf: BytesLike, kind: NumberKind) -> Number:
    """Decode the first ``kind.size`` bytes of ``buf`` as little-endian."""
    return _decode(buf, kind, "little")


def to_be(value: Number, kind: NumberKind) -> bytes:
    """Encode ``value`` as big-endian bytes of ``kind``."""
    return _encode(value, kind, "big")


def to_le(value: Number, kind: NumberKind) -> bytes:
    """Encode ``value`` as little-endian bytes of ``kind``."""
    return _encode(value, kind, "little")