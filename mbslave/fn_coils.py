"""Handlers for the coil and discrete-input function codes."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from .coil import CoilDescriptor, find_coil, read_coil, write_allowed
from .coil import write_coil as _write_one
from .endian import NumberKind, from_be
from .errors import ModbusError, ModbusStatus
from .instance import Instance

__all__ = ["read_coils", "write_coil", "write_coils"]

BytesLike = Union[bytes, bytearray, memoryview]

_FC_READ_COILS = 0x01
_FC_READ_DISC_INPUTS = 0x02
_FC_WRITE_SINGLE_COIL = 0x05
_FC_WRITE_MULTIPLE_COILS = 0x0F

_N_READ_MAX = 0x07D0
_N_WRITE_MAX = 0x07B0

COIL_ON = 0xFF00
COIL_OFF = 0x0000


def _u16(buf: BytesLike, pos: int) -> int:
    return int(from_be(buf[pos:pos + 2], NumberKind.U16))


def _check_call(inst: Optional[Instance], coils, req: BytesLike, codes) -> bytes:
    if inst is None or coils is None or req is None:
        raise ModbusError(ModbusStatus.DEV_FAIL)
    req = bytes(req)
    if not req or req[0] not in codes:
        raise ModbusError(ModbusStatus.DEV_FAIL)
    return req


def read_coils(
    inst: Instance, coils: Sequence[CoilDescriptor], req: BytesLike
) -> bytes:
    """Handle Read Coils (0x01) or Read Discrete Inputs (0x02).

    Missing coils after the first are reported as 0.
    """
    req = _check_call(inst, coils, req, (_FC_READ_COILS, _FC_READ_DISC_INPUTS))
    if len(req) != 5:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    start = _u16(req, 1)
    quantity = _u16(req, 3)
    if quantity == 0 or quantity > _N_READ_MAX:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    if find_coil(coils, start) is None:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_ADDR)

    data = bytearray((quantity + 7) // 8)
    for i in range(quantity):
        coil = find_coil(coils, (start + i) & 0xFFFF)
        if coil is not None and read_coil(coil):
            data[i // 8] |= 1 << (i % 8)

    return bytes([req[0], len(data)]) + bytes(data)


def write_coil(
    inst: Instance, coils: Sequence[CoilDescriptor], req: BytesLike
) -> bytes:
    """Handle Write Single Coil (0x05); the response echoes the request."""
    req = _check_call(inst, coils, req, (_FC_WRITE_SINGLE_COIL,))
    if len(req) != 5:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    address = _u16(req, 1)
    value = _u16(req, 3)
    if value not in (COIL_OFF, COIL_ON):
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    coil = find_coil(coils, address)
    if coil is None or not write_allowed(coil):
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_ADDR)

    _write_one(coil, value != COIL_OFF)
    if coil.post_write is not None:
        coil.post_write()
    if inst.commit_coils_write is not None:
        inst.commit_coils_write(inst)

    return req[:5]


def write_coils(
    inst: Instance, coils: Sequence[CoilDescriptor], req: BytesLike
) -> bytes:
    """Handle Write Multiple Coils (0x0F).

    Every target coil is checked before any is written.
    """
    req = _check_call(inst, coils, req, (_FC_WRITE_MULTIPLE_COILS,))
    if len(req) < 7:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    start = _u16(req, 1)
    quantity = _u16(req, 3)
    byte_count = req[5]
    if quantity == 0 or quantity > _N_WRITE_MAX:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    if byte_count != (quantity + 7) // 8:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    if len(req) != 6 + byte_count:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    targets = []
    for i in range(quantity):
        coil = find_coil(coils, (start + i) & 0xFFFF)
        if coil is None or not write_allowed(coil):
            raise ModbusError(ModbusStatus.ILLEGAL_DATA_ADDR)
        targets.append(coil)

    data = req[6:]
    for i, coil in enumerate(targets):
        _write_one(coil, bool(data[i // 8] & (1 << (i % 8))))
        if coil.post_write is not None:
            coil.post_write()

    if inst.commit_coils_write is not None:
        inst.commit_coils_write(inst)

    return req[:5]