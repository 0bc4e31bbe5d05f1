"""Modbus RTU framing: slave address, PDU and CRC-16."""

from __future__ import annotations

from typing import Callable, Optional, Union

from .crc import crc16
from .endian import NumberKind, from_le, to_le
from .instance import CommEvent, Instance

__all__ = [
    "ADU_SIZE_MIN",
    "ADU_SIZE_MAX",
    "SLAVE_ADDR_MIN",
    "SLAVE_ADDR_MAX",
    "ADDR_BROADCAST",
    "ADDR_DEFAULT_RESP",
    "PduHandler",
    "handle_rtu_request",
]

BytesLike = Union[bytes, bytearray, memoryview]

ADU_SIZE_MIN = 4
"""Slave address, function code and two CRC bytes."""
ADU_SIZE_MAX = 256
"""Slave address, a full 253-byte PDU and two CRC bytes."""

SLAVE_ADDR_MIN = 1
SLAVE_ADDR_MAX = 247
ADDR_BROADCAST = 0
"""All slaves act on the request but none reply."""
ADDR_DEFAULT_RESP = 248
"""Non-standard address every slave answers when enabled."""

PduHandler = Callable[[Instance, bytes], Optional[bytes]]
"""Takes a request PDU and returns the response PDU, or nothing for no reply."""


def handle_rtu_request(
    inst: Instance, req: BytesLike, handler: PduHandler
) -> Optional[bytes]:
    """Handle one RTU frame and return the response frame, or None."""
    req = bytes(req)
    if not ADU_SIZE_MIN <= len(req) <= ADU_SIZE_MAX:
        return None

    state = inst.state
    state.bus_msg_counter += 1

    event = CommEvent(0)
    if state.is_listen_only:
        event |= CommEvent.RECV_LISTEN_MODE

    # The CRC is checked before the address so bus-wide errors are counted.
    received_crc = int(from_le(req[-2:], NumberKind.U16))
    if received_crc != crc16(req[:-2]):
        state.bus_comm_err_counter += 1
        inst.add_comm_event(CommEvent.IS_RECV | event | CommEvent.RECV_COMM_ERR)
        return None

    address = req[0]
    addressed = (
        address == inst.serial.slave_addr
        or address == ADDR_BROADCAST
        or (inst.serial.enable_def_resp and address == ADDR_DEFAULT_RESP)
    )
    if not addressed:
        if event:
            inst.add_comm_event(CommEvent.IS_RECV | event)
        return None

    if address == ADDR_BROADCAST:
        event |= CommEvent.RECV_BROADCAST
    if event:
        inst.add_comm_event(CommEvent.IS_RECV | event)

    pdu = handler(inst, req[1:-2])
    if not pdu or address == ADDR_BROADCAST:
        state.no_resp_counter += 1
        return None

    body = bytes([address]) + bytes(pdu)
    return body + to_le(crc16(body), NumberKind.U16)