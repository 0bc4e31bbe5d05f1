"""Modbus RTU CRC-16 checksum."""

from __future__ import annotations

from typing import Tuple, Union

__all__ = ["crc16"]

_POLY = 0xA001
_INITIAL = 0xFFFF


def _make_table() -> Tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ _POLY if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _make_table()


def crc16(data: Union[bytes, bytearray, memoryview]) -> int:
    """Return the Modbus CRC-16 of ``data``."""
    crc = _INITIAL
    for byte in bytes(data):
        crc = (crc >> 8) ^ _TABLE[(crc ^ byte) & 0xFF]
    return crc