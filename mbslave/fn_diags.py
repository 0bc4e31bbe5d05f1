"""Handlers for the diagnostic and communication-event function codes."""

from __future__ import annotations

import enum
from typing import Callable, Dict, Union

from .endian import NumberKind, from_be, to_be
from .errors import ModbusError, ModbusStatus
from .instance import CommEvent, Instance

__all__ = [
    "DiagSubfunction",
    "diagnostics",
    "comm_event_counter",
    "comm_event_log",
]

BytesLike = Union[bytes, bytearray, memoryview]

_CLEAR_LOG = 0xFF00


class DiagSubfunction(enum.IntEnum):
    """Sub-function codes of the Diagnostics (0x08) function."""

    LOOPBACK = 0x00
    RESTART_COMMS_OPT = 0x01
    REG = 0x02
    ASCII_DELIM = 0x03
    FORCE_LISTEN = 0x04
    CLR_CNTS_N_DIAG_REG = 0x0A
    BUS_MSG_COUNT = 0x0B
    BUS_COMM_ERR_COUNT = 0x0C
    BUS_EXCEPTION_COUNT = 0x0D
    MSG_COUNT = 0x0E
    NO_RESP_MSG_COUNT = 0x0F
    NAK_COUNT = 0x10
    BUSY_COUNT = 0x11
    BUS_OVERRUN_COUNT = 0x12
    CLR_OVERRUN = 0x14


def _u16(buf: bytes, pos: int) -> int:
    return int(from_be(buf[pos:pos + 2], NumberKind.U16))


def _word(value: int) -> bytes:
    return to_be(int(value) & 0xFFFF, NumberKind.U16)


def _reset_comm_counters(inst: Instance) -> None:
    state = inst.state
    state.comm_event_counter = 0
    state.bus_msg_counter = 0
    state.bus_comm_err_counter = 0
    state.exception_counter = 0
    state.msg_counter = 0
    state.no_resp_counter = 0
    state.nak_counter = 0
    state.busy_counter = 0
    state.bus_char_overrun_counter = 0


def _require_zero_data(req: bytes) -> None:
    if len(req) != 5 or _u16(req, 3) != 0:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)


def _loopback(inst: Instance, req: bytes) -> bytes:
    return req


def _restart_comms(inst: Instance, req: bytes) -> bytes:
    if len(req) != 5:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    value = _u16(req, 3)
    if value not in (0x0000, _CLEAR_LOG):
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)

    if inst.serial.request_restart is not None:
        inst.serial.request_restart()
    inst.state.is_listen_only = False
    _reset_comm_counters(inst)

    if value == _CLEAR_LOG:
        inst.state.events.clear()
    else:
        inst.add_comm_event(CommEvent.COMM_RESTART)

    return req[:3] + _word(value)


def _read_diag_register(inst: Instance, req: bytes) -> bytes:
    _require_zero_data(req)
    reader = inst.serial.read_diagnostics
    value = reader() if reader is not None else 0
    return req[:3] + _word(value)


def _change_ascii_delimiter(inst: Instance, req: bytes) -> bytes:
    if len(req) != 5 or req[3] > 127 or req[4] != 0:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    inst.state.ascii_delimiter = req[3]
    return req[:3] + bytes([req[3], 0])


def _force_listen_only(inst: Instance, req: bytes) -> bytes:
    _require_zero_data(req)
    inst.state.is_listen_only = True
    inst.add_comm_event(CommEvent.ENTERED_LISTEN_ONLY)
    return req[:3]


def _clear_counters(inst: Instance, req: bytes) -> bytes:
    _require_zero_data(req)
    _reset_comm_counters(inst)
    if inst.serial.reset_diagnostics is not None:
        inst.serial.reset_diagnostics()
    return req[:3] + bytes(2)


def _clear_overrun(inst: Instance, req: bytes) -> bytes:
    _require_zero_data(req)
    inst.state.bus_char_overrun_counter = 0
    return req[:3] + bytes(2)


def _counter_reader(name: str) -> Callable[[Instance, bytes], bytes]:
    def read(inst: Instance, req: bytes) -> bytes:
        _require_zero_data(req)
        return req[:3] + _word(getattr(inst.state, name))

    return read


_HANDLERS: Dict[DiagSubfunction, Callable[[Instance, bytes], bytes]] = {
    DiagSubfunction.LOOPBACK: _loopback,
    DiagSubfunction.RESTART_COMMS_OPT: _restart_comms,
    DiagSubfunction.REG: _read_diag_register,
    DiagSubfunction.ASCII_DELIM: _change_ascii_delimiter,
    DiagSubfunction.FORCE_LISTEN: _force_listen_only,
    DiagSubfunction.CLR_CNTS_N_DIAG_REG: _clear_counters,
    DiagSubfunction.BUS_MSG_COUNT: _counter_reader("bus_msg_counter"),
    DiagSubfunction.BUS_COMM_ERR_COUNT: _counter_reader("bus_comm_err_counter"),
    DiagSubfunction.BUS_EXCEPTION_COUNT: _counter_reader("exception_counter"),
    DiagSubfunction.MSG_COUNT: _counter_reader("msg_counter"),
    DiagSubfunction.NO_RESP_MSG_COUNT: _counter_reader("no_resp_counter"),
    DiagSubfunction.NAK_COUNT: _counter_reader("nak_counter"),
    DiagSubfunction.BUSY_COUNT: _counter_reader("busy_counter"),
    DiagSubfunction.BUS_OVERRUN_COUNT: _counter_reader("bus_char_overrun_counter"),
    DiagSubfunction.CLR_OVERRUN: _clear_overrun,
}


def _check_call(inst: Instance, req: BytesLike) -> bytes:
    if inst is None or req is None:
        raise ModbusError(ModbusStatus.DEV_FAIL)
    return bytes(req)


def diagnostics(inst: Instance, req: BytesLike) -> bytes:
    """Handle Diagnostics (0x08); the response echoes the sub-function code."""
    req = _check_call(inst, req)
    if len(req) < 3:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    try:
        subfunction = DiagSubfunction(_u16(req, 1))
    except ValueError:
        raise ModbusError(ModbusStatus.ILLEGAL_FN) from None
    return _HANDLERS[subfunction](inst, req)


def comm_event_counter(inst: Instance, req: BytesLike) -> bytes:
    """Handle Get Comm Event Counter (0x0B)."""
    req = _check_call(inst, req)
    if len(req) != 1:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    state = inst.state
    return req[:1] + _word(state.status) + _word(state.comm_event_counter)


def comm_event_log(inst: Instance, req: BytesLike) -> bytes:
    """Handle Get Comm Event Log (0x0C); events are listed newest first."""
    req = _check_call(inst, req)
    if len(req) != 1:
        raise ModbusError(ModbusStatus.ILLEGAL_DATA_VAL)
    state = inst.state
    events = bytes(inst.event_log())
    return (
        req[:1]
        + bytes([(6 + len(events)) & 0xFF])
        + _word(state.status)
        + _word(state.comm_event_counter)
        + _word(state.bus_msg_counter)
        + events
    )