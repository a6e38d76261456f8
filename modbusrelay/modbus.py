"""Modbus-TCP packet inspection and hex formatting for the relay log."""

from __future__ import annotations

MBAP_HEADER_SIZE = 7
MAX_HEX_BYTES = 32

READ_HOLDING_REGISTERS = 0x03
WRITE_SINGLE_REGISTER = 0x06
WRITE_MULTIPLE_REGISTERS = 0x10

_FUNCTION_NAMES = {
    READ_HOLDING_REGISTERS: "Read Holding Registers",
    WRITE_SINGLE_REGISTER: "Write Single Register",
    WRITE_MULTIPLE_REGISTERS: "Write Multiple Registers",
}


def _word(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 2], "big")


def function_name(code: int) -> str:
    """Return a readable name for a Modbus function code."""
    return _FUNCTION_NAMES.get(code, f"Function 0x{code:02X}")


def analyze_packet(data: bytes) -> str:
    """Describe a Modbus-TCP frame; empty string if it is shorter than the MBAP header."""
    data = bytes(data)
    if len(data) < MBAP_HEADER_SIZE:
        return ""

    transaction_id = _word(data, 0)
    length = _word(data, 4)
    unit_id = data[6]
    parts = [f"Modbus-TCP: TrID={transaction_id:04X}, Length={length}, UnitID={unit_id}"]

    if len(data) >= 8:
        code = data[7]
        parts.append(f"Function={function_name(code)}")
        if code == READ_HOLDING_REGISTERS and len(data) >= 12:
            parts.append(f"StartAddr=0x{_word(data, 8):04X}, Count={_word(data, 10)}")
        elif code == WRITE_SINGLE_REGISTER and len(data) >= 12:
            parts.append(f"RegAddr=0x{_word(data, 8):04X}, Value=0x{_word(data, 10):04X}")
        elif code == WRITE_MULTIPLE_REGISTERS and len(data) >= 13:
            parts.append(
                f"StartAddr=0x{_word(data, 8):04X}, Count={_word(data, 10)}, Bytes={data[12]}"
            )

    return ", ".join(parts)


def hex_dump(prefix: str, data: bytes) -> str:
    """Format data as upper-case hex after a prefix, showing at most 32 bytes."""
    data = bytes(data)
    shown = "".join(f"{byte:02X} " for byte in data[:MAX_HEX_BYTES])
    ellipsis = "... " if len(data) > MAX_HEX_BYTES else ""
    return f"{prefix}{shown}{ellipsis} [{len(data)}바이트]"