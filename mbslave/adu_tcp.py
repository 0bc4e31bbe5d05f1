"""Modbus TCP framing: MBAP header followed by the PDU."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .adu_rtu import PduHandler
from .endian import NumberKind, from_be, to_be
from .instance import Instance

__all__ = [
    "MBAP_SIZE",
    "TCP_PROTOCOL_ID",
    "TCP_ADU_SIZE_MAX",
    "TCP_PORT",
    "MbapHeader",
    "handle_tcp_request",
]

BytesLike = Union[bytes, bytearray, memoryview]

_PDU_SIZE_MAX = 253

MBAP_SIZE = 7
"""Transaction id, protocol id, length (two bytes each) and unit id."""
TCP_PROTOCOL_ID = 0
TCP_ADU_SIZE_MAX = MBAP_SIZE + _PDU_SIZE_MAX
TCP_PORT = 502


def _u16(buf: bytes, pos: int) -> int:
    return int(from_be(buf[pos:pos + 2], NumberKind.U16))


@dataclass(frozen=True)
class MbapHeader:
    """Modbus Application Protocol header.

    ``length`` counts the bytes that follow it: the unit id and the PDU.
    """

    transaction_id: int
    protocol_id: int
    length: int
    unit_id: int

    def __post_init__(self) -> None:
        for name in ("transaction_id", "protocol_id", "length"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{name} must be in 0..0xFFFF, got {value}")
        if not 0 <= self.unit_id <= 0xFF:
            raise ValueError(f"unit_id must be in 0..0xFF, got {self.unit_id}")

    @classmethod
    def parse(cls, data: BytesLike) -> "MbapHeader":
        """Read a header from the first seven bytes of ``data``."""
        data = bytes(data)
        if len(data) < MBAP_SIZE:
            raise ValueError(f"MBAP header needs {MBAP_SIZE} bytes, got {len(data)}")
        return cls(_u16(data, 0), _u16(data, 2), _u16(data, 4), data[6])

    def to_bytes(self) -> bytes:
        """Encode the header as seven wire bytes."""
        return (
            to_be(self.transaction_id, NumberKind.U16)
            + to_be(self.protocol_id, NumberKind.U16)
            + to_be(self.length, NumberKind.U16)
            + bytes([self.unit_id])
        )


def handle_tcp_request(
    inst: Instance, req: BytesLike, handler: PduHandler
) -> Optional[bytes]:
    """Handle one Modbus TCP request and return the response, or None.

    The transaction and unit ids are echoed back in the response header.
    """
    req = bytes(req)
    if len(req) < MBAP_SIZE + 1:
        return None

    header = MbapHeader.parse(req)
    if header.protocol_id != TCP_PROTOCOL_ID:
        return None

    pdu_len = header.length - 1
    if pdu_len < 0 or MBAP_SIZE + pdu_len > len(req):
        return None

    pdu = handler(inst, req[MBAP_SIZE:MBAP_SIZE + pdu_len])
    if not pdu:
        return None

    pdu = bytes(pdu)
    res_header = MbapHeader(
        header.transaction_id, header.protocol_id, 1 + len(pdu), header.unit_id
    )
    return res_header.to_bytes() + pdu