"""Modbus slave instance: data maps, serial configuration and comm state."""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional, Sequence

from .coil import CoilDescriptor

__all__ = [
    "EVENT_LOG_LEN",
    "CommEvent",
    "SerialConfig",
    "CommState",
    "Instance",
]

EVENT_LOG_LEN = 64
"""Number of entries kept in the communication event log."""


class CommEvent(enum.IntFlag):
    """Bytes stored in the communication event log."""

    COMM_RESTART = 0x00
    ENTERED_LISTEN_ONLY = 0x04

    RECV_COMM_ERR = 0x02
    RECV_CHAR_OVERRUN = 0x10
    RECV_LISTEN_MODE = 0x20
    RECV_BROADCAST = 0x40
    IS_RECV = 0x80


@dataclass
class SerialConfig:
    """Settings and hooks used only by the serial (RTU/ASCII) transports."""

    slave_addr: int = 1
    enable_def_resp: bool = False
    request_restart: Optional[Callable[[], None]] = None
    read_diagnostics: Optional[Callable[[], int]] = None
    reset_diagnostics: Optional[Callable[[], None]] = None
    read_exception_status: Optional[Callable[[], int]] = None


def _new_event_log() -> Deque[int]:
    return deque(maxlen=EVENT_LOG_LEN)


@dataclass
class CommState:
    """Runtime diagnostic counters, flags and the event log."""

    status: int = 0
    comm_event_counter: int = 0
    bus_msg_counter: int = 0
    bus_comm_err_counter: int = 0
    exception_counter: int = 0
    msg_counter: int = 0
    no_resp_counter: int = 0
    nak_counter: int = 0
    busy_counter: int = 0
    bus_char_overrun_counter: int = 0
    is_listen_only: bool = False
    ascii_delimiter: int = ord("\n")
    events: Deque[int] = field(default_factory=_new_event_log)


@dataclass
class Instance:
    """A Modbus slave: its coil maps, callbacks, configuration and state."""

    coils: Sequence[CoilDescriptor] = ()
    disc_inputs: Sequence[CoilDescriptor] = ()
    commit_coils_write: Optional[Callable[["Instance"], None]] = None
    serial: SerialConfig = field(default_factory=SerialConfig)
    state: CommState = field(default_factory=CommState)

    def add_comm_event(self, event: int) -> None:
        """Append one event byte to the log, dropping the oldest when full."""
        self.state.events.append(int(event) & 0xFF)

    def event_log(self) -> List[int]:
        """Return the logged event bytes, newest first."""
        return list(reversed(self.state.events))