"""Modbus ASCII framing: ':' start, hex-encoded address, PDU and LRC, CR and delimiter."""

from __future__ import annotations

from typing import Optional, Union

from .adu_rtu import ADDR_BROADCAST, ADDR_DEFAULT_RESP, PduHandler
from .instance import CommEvent, Instance

__all__ = [
    "ASCII_HEADER_SIZE",
    "ASCII_SIZE_MIN",
    "ASCII_SIZE_MAX",
    "ASCII_START_CHAR",
    "lrc",
    "handle_ascii_request",
]

BytesLike = Union[bytes, bytearray, memoryview]

_PDU_SIZE_MAX = 253

ASCII_HEADER_SIZE = 7
"""Start char, two address chars, two LRC chars, CR and delimiter."""
ASCII_SIZE_MIN = ASCII_HEADER_SIZE + 2
"""Header plus a two-character function code."""
ASCII_SIZE_MAX = ASCII_HEADER_SIZE + _PDU_SIZE_MAX * 2
"""Header plus a full PDU in hex."""
ASCII_START_CHAR = ord(":")

_CR = ord("\r")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def lrc(data: BytesLike) -> int:
    """Return the Modbus longitudinal redundancy check of ``data``."""
    return -sum(bytes(data)) & 0xFF


def _encode_frame(inst: Instance, body: bytes) -> bytes:
    payload = body + bytes([lrc(body)])
    return (
        bytes([ASCII_START_CHAR])
        + payload.hex().upper().encode("ascii")
        + bytes([_CR, inst.state.ascii_delimiter & 0xFF])
    )


def handle_ascii_request(
    inst: Instance, req: BytesLike, handler: PduHandler
) -> Optional[bytes]:
    """Handle one ASCII frame and return the response frame, or None."""
    req = bytes(req)
    if not ASCII_SIZE_MIN <= len(req) <= ASCII_SIZE_MAX:
        return None

    state = inst.state
    state.bus_msg_counter += 1

    event = CommEvent(0)
    if state.is_listen_only:
        event |= CommEvent.RECV_LISTEN_MODE

    def note_event() -> None:
        if event:
            inst.add_comm_event(CommEvent.IS_RECV | event)

    well_formed = (
        req[0] == ASCII_START_CHAR
        and req[-2] == _CR
        and req[-1] == state.ascii_delimiter
        and (len(req) - 1) % 2 == 0
    )
    hex_part = req[1:-2]
    if not well_formed or not all(c in _HEX_DIGITS for c in hex_part):
        note_event()
        return None

    binary = bytes.fromhex(hex_part.decode("ascii"))

    # The LRC is checked before the address so bus-wide errors are counted.
    if binary[-1] != lrc(binary[:-1]):
        state.bus_comm_err_counter += 1
        event |= CommEvent.RECV_COMM_ERR
        inst.add_comm_event(CommEvent.IS_RECV | event)
        return None

    address = binary[0]
    addressed = (
        address == inst.serial.slave_addr
        or address == ADDR_BROADCAST
        or (inst.serial.enable_def_resp and address == ADDR_DEFAULT_RESP)
    )
    if not addressed:
        note_event()
        return None

    if address == ADDR_BROADCAST:
        event |= CommEvent.RECV_BROADCAST
    note_event()

    pdu = handler(inst, binary[1:-1])
    if not pdu or address == ADDR_BROADCAST:
        state.no_resp_counter += 1
        return None

    return _encode_frame(inst, bytes([address]) + bytes(pdu))