# mbslave

Building blocks for a Modbus slave (server) device, in pure Python with no
dependencies outside the standard library.

- `mbslave.adu_rtu`, `mbslave.adu_ascii`, `mbslave.adu_tcp`: framing for
  Modbus RTU (CRC-16), Modbus ASCII (LRC) and Modbus TCP (MBAP header)
- `mbslave.coil`: coil and discrete input descriptors. They are read and
  written through a constant value, a bit in a byte buffer or a callback, and
  can have read and write locks.
- `mbslave.fn_coils`, `mbslave.fn_serial`, `mbslave.fn_diags`: handlers for
  the coil function codes, Read Exception Status and the serial diagnostics
  functions
- `mbslave.instance`: the slave `Instance` with its coil maps, serial
  settings, counters and comm event log
- `mbslave.errors`: `ModbusStatus` codes and `ModbusError`
- `mbslave.endian`, `mbslave.crc`: byte order helpers and the Modbus CRC-16

## Installation

```
pip install mbslave
```

## Coils

Each coil is a `CoilDescriptor`. The `access` flag selects how it is read and
written: `CoilAccess.READ_VALUE` uses `value`, `READ_REF`/`WRITE_REF`
(or `RW_REF`) use a `BitRef` into a mutable byte buffer, and
`READ_FN`/`WRITE_FN` (or `RW_FN`) call `read_fn`/`write_fn`. Coil maps must be
sorted by address in ascending order.

```python
from mbslave.coil import BitRef, CoilAccess, CoilDescriptor, find_coil, read_coil, write_coil

state = bytearray(1)
coils = [
    CoilDescriptor(address=0, access=CoilAccess.RW_REF,
                   read_ref=BitRef(state, bit=0), write_ref=BitRef(state, bit=0)),
    CoilDescriptor(address=1, access=CoilAccess.READ_VALUE, value=True),
]

coil = find_coil(coils, 0)
write_coil(coil, True)
assert read_coil(coil) is True
assert state == bytearray(b"\x01")
```

`find_coil` returns `None` for an unknown address. `read_coil` raises
`ModbusError` with `ModbusStatus.ILLEGAL_DATA_ADDR` when the coil is missing,
read-locked or has no usable read method. `write_allowed` checks the write
lock. `write_coil` raises `ModbusStatus.DEV_FAIL` when there is no usable write
method, or the status a failing `write_fn` returns.

## Function handlers

Every handler takes a request PDU with the function code first and returns the
response PDU as bytes. A failure raises `ModbusError`, whose `code` is the
Modbus exception code to send back.

- `fn_coils.read_coils(inst, coils, req)`: Read Coils (0x01) and Read Discrete
  Inputs (0x02). Missing coils after the first read as 0.
- `fn_coils.write_coil(inst, coils, req)`: Write Single Coil (0x05)
- `fn_coils.write_coils(inst, coils, req)`: Write Multiple Coils (0x0F).
  Every target is checked before any is written.
- `fn_serial.read_exception_status(inst, req)`: Read Exception Status (0x07),
  served by `inst.serial.read_exception_status`
- `fn_diags.diagnostics(inst, req)`: Diagnostics (0x08), with the
  sub-functions listed in `DiagSubfunction`
- `fn_diags.comm_event_counter(inst, req)` and `fn_diags.comm_event_log(inst, req)`:
  Get Comm Event Counter (0x0B) and Get Comm Event Log (0x0C)

Coil writes call each coil's `post_write`, and then the instance's
`commit_coils_write` once.

## Framing

`handle_rtu_request`, `handle_ascii_request` and `handle_tcp_request` each
take an `Instance`, a complete received frame and a `handler`. The handler
maps a request PDU to a response PDU, or to `None` for no reply. Each returns
the framed response, or `None` when the frame goes unanswered. That covers a
wrong size, a bad checksum, another slave's address and broadcasts (address
0). Address 248 is answered when `inst.serial.enable_def_resp` is set.

The serial framers keep `inst.state` up to date: the bus message, bus
communication error and no-response counters, and the comm event log
(`Instance.event_log()`, newest first, at most `EVENT_LOG_LEN` entries). The
ASCII framer ends frames with CR and `inst.state.ascii_delimiter`, which
Diagnostics sub-function 0x03 can change. The TCP framer echoes the
transaction and unit ids. `MbapHeader.parse` and `MbapHeader.to_bytes`
convert the MBAP header.

```python
from mbslave.adu_rtu import handle_rtu_request
from mbslave.errors import ModbusError, ModbusStatus
from mbslave.fn_coils import read_coils, write_coil, write_coils
from mbslave.instance import Instance, SerialConfig

def handler(inst, pdu):
    fc = pdu[0]
    try:
        if fc == 0x01:
            return read_coils(inst, inst.coils, pdu)
        if fc == 0x02:
            return read_coils(inst, inst.disc_inputs, pdu)
        if fc == 0x05:
            return write_coil(inst, inst.coils, pdu)
        if fc == 0x0F:
            return write_coils(inst, inst.coils, pdu)
        raise ModbusError(ModbusStatus.ILLEGAL_FN)
    except ModbusError as exc:
        return bytes([fc | 0x80, exc.code])

inst = Instance(coils=coils, serial=SerialConfig(slave_addr=1))
response = handle_rtu_request(inst, frame, handler)
```

`crc.crc16(data)` returns the Modbus CRC-16 and `adu_ascii.lrc(data)` returns
the Modbus ASCII checksum.

## What the package does not do

- There are no holding or input registers, only coils and discrete inputs.
- There is no built-in function-code dispatcher. The `handler` given to the
  framers is yours to write. Turning a `ModbusError` into an exception
  response, keeping the message and exception counters, and staying silent in
  listen-only mode are all up to that handler.
- There is no serial port or TCP server. The package handles frames you have
  already received and returns the bytes to send.