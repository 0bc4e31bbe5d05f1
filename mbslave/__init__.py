"""Modbus slave building blocks: RTU, ASCII and TCP framing, coils and diagnostics."""

__version__ = "0.1.0"

__all__ = [
    "adu_ascii",
    "adu_rtu",
    "adu_tcp",
    "coil",
    "crc",
    "endian",
    "errors",
    "fn_coils",
    "fn_diags",
    "fn_serial",
    "instance",
]