"""Coil descriptors and single-coil read and write access."""

from __future__ import annotations

import enum
from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable, MutableSequence, Optional, Sequence, Union

from .errors import ModbusError, ModbusStatus

__all__ = [
    "CoilAccess",
    "BitRef",
    "CoilDescriptor",
    "find_coil",
    "read_coil",
    "write_allowed",
    "write_coil",
]

_BSEARCH_THRESHOLD = 16


class CoilAccess(enum.Flag):
    """How a coil is read and written; combine one read and one write method."""

    READ_VALUE = 1 << 0
    READ_REF = 1 << 1
    WRITE_REF = 1 << 2
    RW_REF = READ_REF | WRITE_REF
    READ_FN = 1 << 3
    WRITE_FN = 1 << 4
    RW_FN = READ_FN | WRITE_FN
    READ_MASK = READ_VALUE | READ_REF | READ_FN
    WRITE_MASK = WRITE_REF | WRITE_FN


@dataclass(eq=False)
class BitRef:
    """One bit inside a mutable byte buffer; bit 0 is the least significant."""

    buffer: MutableSequence[int]
    bit: int = 0
    offset: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.bit <= 7:
            raise ValueError(f"bit index must be in 0..7, got {self.bit}")
        if not 0 <= self.offset < len(self.buffer):
            raise IndexError(f"offset {self.offset} outside buffer")

    def get(self) -> bool:
        """Return the current state of the bit."""
        return bool((self.buffer[self.offset] >> self.bit) & 1)

    def set(self, value: object) -> None:
        """Set the bit if ``value`` is truthy, otherwise clear it."""
        mask = 1 << self.bit
        if value:
            self.buffer[self.offset] |= mask
        else:
            self.buffer[self.offset] &= ~mask & 0xFF


WriteFn = Callable[[bool], Optional[Union[ModbusStatus, int]]]


@dataclass(frozen=True)
class CoilDescriptor:
    """A single Modbus coil or discrete input and how it is accessed."""

    address: int
    access: CoilAccess
    value: bool = False
    read_ref: Optional[BitRef] = None
    read_fn: Optional[Callable[[], object]] = None
    write_ref: Optional[BitRef] = None
    write_fn: Optional[WriteFn] = None
    read_lock: Optional[Callable[[], object]] = None
    write_lock: Optional[Callable[[], object]] = None
    post_write: Optional[Callable[[], None]] = None


def _address(coil: CoilDescriptor) -> int:
    return coil.address


def find_coil(
    coils: Optional[Sequence[CoilDescriptor]], address: int
) -> Optional[CoilDescriptor]:
    """Find the coil at ``address`` in a list sorted by address, or None."""
    if not coils:
        return None
    if len(coils) > _BSEARCH_THRESHOLD:
        ix = bisect_left(coils, address, key=_address)
        if ix < len(coils) and coils[ix].address == address:
            return coils[ix]
        return None
    return next((coil for coil in coils if coil.address == address), None)


def read_coil(coil: Optional[CoilDescriptor]) -> bool:
    """Read a coil's state.

    Raises ModbusError(ILLEGAL_DATA_ADDR) if the coil is missing, locked or
    has no usable read method.
    """
    failure = ModbusError(ModbusStatus.ILLEGAL_DATA_ADDR)
    if coil is None:
        raise failure
    if coil.read_lock is not None and coil.read_lock():
        raise failure

    mode = coil.access & CoilAccess.READ_MASK
    if mode == CoilAccess.READ_VALUE:
        return bool(coil.value)
    if mode == CoilAccess.READ_REF and coil.read_ref is not None:
        return coil.read_ref.get()
    if mode == CoilAccess.READ_FN and coil.read_fn is not None:
        return bool(coil.read_fn())
    raise failure


def write_allowed(coil: Optional[CoilDescriptor]) -> bool:
    """Return whether the coil exists and is not write-locked."""
    if coil is None:
        return False
    if coil.write_lock is not None and coil.write_lock():
        return False
    return True


def write_coil(coil: Optional[CoilDescriptor], value: object) -> None:
    """Write a coil's state without checking locks.

    Raises ModbusError(DEV_FAIL) if there is no usable write method, or the
    status returned by a write function that fails.
    """
    failure = ModbusError(ModbusStatus.DEV_FAIL)
    if coil is None:
        raise failure

    mode = coil.access & CoilAccess.WRITE_MASK
    if mode == CoilAccess.WRITE_REF:
        if coil.write_ref is None:
            raise failure
        coil.write_ref.set(value)
        return
    if mode == CoilAccess.WRITE_FN:
        if coil.write_fn is None:
            raise failure
        status = coil.write_fn(bool(value))
        if status is not None and ModbusStatus(status) is not ModbusStatus.OK:
            raise ModbusError(status)
        return
    raise failure