"""Handlers for function codes used only on serial lines."""

from __future__ import annotations

from typing import Union

from .errors import ModbusError, ModbusStatus
from .instance import Instance

__all__ = ["read_exception_status"]

_FC_READ_EXCEPTION_STATUS = 0x07


def read_exception_status(
    inst: Instance, req: Union[bytes, bytearray, memoryview]
) -> bytes:
    """Handle Read Exception Status (0x07) using the instance's callback."""
    if inst is None or req is None or inst.serial.read_exception_status is None:
        raise ModbusError(ModbusStatus.DEV_FAIL)
    req = bytes(req)
    if not req or req[0] != _FC_READ_EXCEPTION_STATUS:
        raise ModbusError(ModbusStatus.DEV_FAIL)
    if len(req) != 1:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    status = int(inst.serial.read_exception_status()) & 0xFF
    return bytes([req[0], status])