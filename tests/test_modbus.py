import pytest

from modbusrelay.modbus import analyze_packet, function_name, hex_dump


def test_short_packet_gives_empty_string():
    assert analyze_packet(b"\x00\x01\x00\x00\x00\x06") == ""


def test_read_holding_registers_full_description():
    packet = bytes([0x00, 0x01, 0x00, 0x00, 0x00, 0x06, 0x01, 0x03, 0x00, 0x10, 0x00, 0x02])
    assert analyze_packet(packet) == (
        "Modbus-TCP: TrID=0001, Length=6, UnitID=1, "
        "Function=Read Holding Registers, StartAddr=0x0010, Count=2"
    )


def test_header_only_has_no_function():
    result = analyze_packet(bytes([0x12, 0x34, 0x00, 0x00, 0x00, 0x01, 0x07]))
    assert result.startswith("Modbus-TCP: TrID=1234")
    assert "Function" not in result


def test_write_single_register_fields():
    packet = bytes([0, 5, 0, 0, 0, 6, 2, 0x06, 0x00, 0x01, 0xBE, 0xEF])
    result = analyze_packet(packet)
    assert "Write Single Register" in result
    assert "RegAddr=0x0001" in result
    assert "Value=0xBEEF" in result
    assert "UnitID=2" in result


def test_write_multiple_registers_fields():
    packet = bytes([0, 9, 0, 0, 0, 11, 1, 0x10, 0x00, 0x20, 0x00, 0x02, 0x04, 0, 1, 0, 2])
    result = analyze_packet(packet)
    assert "Write Multiple Registers" in result
    assert "StartAddr=0x0020" in result
    assert "Bytes=4" in result


def test_truncated_read_has_function_but_no_addresses():
    packet = bytes([0, 1, 0, 0, 0, 6, 1, 0x03, 0x00, 0x10])
    result = analyze_packet(packet)
    assert "Read Holding Registers" in result
    assert "StartAddr" not in result


@pytest.mark.parametrize(
    "code, name",
    [
        (0x03, "Read Holding Registers"),
        (0x06, "Write Single Register"),
        (0x10, "Write Multiple Registers"),
    ],
)
def test_known_function_names(code, name):
    assert function_name(code) == name


def test_unknown_function_name_uses_hex_code():
    assert function_name(0x2B) == "Function 0x2B"


def test_hex_dump_short():
    assert hex_dump("p: ", b"\x01\xab") == "p: 01 AB  [2바이트]"


def test_hex_dump_truncates_after_32_bytes():
    data = bytes(range(40))
    result = hex_dump("x ", data)
    assert "... " in result
    assert result.endswith(f"[{len(data)}바이트]")
    body = result[len("x "):result.index("...")]
    assert bytes.fromhex(body) == data[:32]


def test_hex_dump_round_trips_bytes():
    data = bytes([0xFF, 0x00, 0x7F, 0x80])
    result = hex_dump("", data)
    body = result[:result.index("[")]
    assert bytes.fromhex(body) == data
    assert "..." not in result