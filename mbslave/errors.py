"""Modbus status codes and the exception raised for them."""

from __future__ import annotations

import enum
from typing import Union

__all__ = ["ModbusStatus", "ModbusError"]


class ModbusStatus(enum.IntEnum):
    """Result of handling a request; non-OK values are Modbus exception codes."""

    OK = 0x00
    ILLEGAL_FN = 0x01
    ILLEGAL_DATA_ADDR = 0x02
    ILLEGAL_DATA_VAL = 0x03
    DEV_FAIL = 0x04
    ACK = 0x05
    BUSY = 0x06
    NAK = 0x07
    MEM_PARITY_ERR = 0x08
    GW_PATH_UNAVAIL = 0x0A
    GW_TARGET_FAILED = 0x0B


class ModbusError(Exception):
    """A request failed with a Modbus exception code."""

    def __init__(self, status: Union[ModbusStatus, int]) -> None:
        status = ModbusStatus(status)
        if status is ModbusStatus.OK:
            raise ValueError("ModbusError cannot carry the OK status")
        super().__init__(f"Modbus exception {status.value:#04x} ({status.name})")
        self.status = status

    @property
    def code(self) -> int:
        """The exception code as sent on the wire."""
        return int(self.status)