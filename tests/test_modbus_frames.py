import pytest

from fieldlink.checksum import crc16, high_byte, low_byte
from fieldlink.modbus_frames import (
    FunctionCode,
    ModbusError,
    ModbusStatus,
    build_request,
    remaining_length,
    unpack_words,
    verify_crc,
)


def _frame(*body: int) -> bytes:
    check = crc16(body)
    return bytes(body) + bytes([low_byte(check), high_byte(check)])


def test_read_holding_registers_wire_bytes():
    adu = build_request(1, FunctionCode.READ_HOLDING_REGISTERS, read_address=0, read_quantity=10)
    assert adu == bytes.fromhex("01030000000AC5CD")


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(function=FunctionCode.READ_COILS, read_address=0x13, read_quantity=0x25),
        dict(function=FunctionCode.WRITE_SINGLE_COIL, write_address=0xAC, write_quantity=0xFF00),
        dict(function=FunctionCode.WRITE_MULTIPLE_COILS, write_address=0x13, write_quantity=10, words=[0x01CD]),
        dict(function=FunctionCode.WRITE_MULTIPLE_REGISTERS, write_address=1, write_quantity=2, words=[0xA, 0x102]),
        dict(function=FunctionCode.MASK_WRITE_REGISTER, write_address=4, words=[0xF2, 0x25]),
    ],
)
def test_built_requests_pass_crc_check(kwargs):
    adu = build_request(17, **kwargs)
    body = verify_crc(adu)
    assert body == adu[:-2]
    assert body[0] == 17
    assert body[1] == kwargs["function"]


def test_read_request_layout():
    adu = build_request(5, FunctionCode.READ_INPUT_REGISTERS, read_address=0x1234, read_quantity=0x0056)
    assert adu[:6] == bytes([5, 0x04, 0x12, 0x34, 0x00, 0x56])
    assert len(adu) == 8


def test_single_coil_on_carries_ff00():
    adu = build_request(1, FunctionCode.WRITE_SINGLE_COIL, write_address=0x00AC, write_quantity=0xFF00)
    assert adu[2:6] == bytes([0x00, 0xAC, 0xFF, 0x00])


def test_single_register_uses_first_word():
    adu = build_request(1, FunctionCode.WRITE_SINGLE_REGISTER, write_address=1, words=[0xBEEF])
    assert adu[2:6] == bytes([0x00, 0x01, 0xBE, 0xEF])


def test_multiple_coils_packs_low_byte_first():
    adu = build_request(1, FunctionCode.WRITE_MULTIPLE_COILS, write_address=0x13, write_quantity=10, words=[0x01CD])
    assert adu[2:6] == bytes([0x00, 0x13, 0x00, 10])
    assert adu[6] == 2
    assert adu[7:9] == bytes([0xCD, 0x01])
    assert len(adu) == 11


def test_multiple_coils_missing_words_are_zero():
    adu = build_request(1, FunctionCode.WRITE_MULTIPLE_COILS, write_quantity=17)
    assert adu[6] == 3
    assert adu[7:10] == bytes(3)


def test_multiple_registers_packs_high_byte_first():
    adu = build_request(1, FunctionCode.WRITE_MULTIPLE_REGISTERS, write_address=1, write_quantity=2, words=[0x1234, 0xABCD])
    assert adu[2:7] == bytes([0x00, 0x01, 0x00, 0x02, 4])
    assert adu[7:11] == bytes([0x12, 0x34, 0xAB, 0xCD])


def test_mask_write_layout():
    adu = build_request(1, FunctionCode.MASK_WRITE_REGISTER, write_address=4, words=[0x00F2, 0x0025])
    assert adu[2:8] == bytes([0x00, 0x04, 0x00, 0xF2, 0x00, 0x25])


def test_read_write_multiple_layout():
    adu = build_request(
        1,
        FunctionCode.READ_WRITE_MULTIPLE_REGISTERS,
        read_address=3,
        read_quantity=6,
        write_address=0x0E,
        write_quantity=1,
        words=[0x00FF],
    )
    assert adu[2:6] == bytes([0x00, 0x03, 0x00, 0x06])
    assert adu[6:11] == bytes([0x00, 0x0E, 0x00, 0x01, 2])
    assert adu[11:13] == bytes([0x00, 0xFF])


def test_remaining_length_for_reads_is_byte_count():
    header = bytes([1, 0x03, 6, 0, 0])
    assert remaining_length(header, 1, FunctionCode.READ_HOLDING_REGISTERS) == 6


def test_remaining_length_for_writes_and_mask():
    assert remaining_length(bytes([1, 0x06, 0, 1, 0]), 1, FunctionCode.WRITE_SINGLE_REGISTER) == 3
    assert remaining_length(bytes([1, 0x16, 0, 4, 0]), 1, FunctionCode.MASK_WRITE_REGISTER) == 5


def test_remaining_length_wrong_slave():
    with pytest.raises(ModbusError) as info:
        remaining_length(bytes([2, 0x03, 2, 0, 0]), 1, FunctionCode.READ_HOLDING_REGISTERS)
    assert info.value.status == ModbusStatus.INVALID_SLAVE_ID


def test_remaining_length_wrong_function():
    with pytest.raises(ModbusError) as info:
        remaining_length(bytes([1, 0x04, 2, 0, 0]), 1, FunctionCode.READ_HOLDING_REGISTERS)
    assert info.value.code is ModbusStatus.INVALID_FUNCTION


def test_remaining_length_reports_slave_exception():
    with pytest.raises(ModbusError) as info:
        remaining_length(bytes([1, 0x83, 0x02, 0, 0]), 1, FunctionCode.READ_HOLDING_REGISTERS)
    assert info.value.status == ModbusStatus.ILLEGAL_DATA_ADDRESS


def test_verify_crc_rejects_corruption():
    adu = bytearray(_frame(1, 0x03, 2, 0x12, 0x34))
    adu[3] ^= 0x01
    with pytest.raises(ModbusError) as info:
        verify_crc(adu)
    assert info.value.status == ModbusStatus.INVALID_CRC


def test_verify_crc_too_short():
    with pytest.raises(ValueError):
        verify_crc(b"\x01\x03")


def test_unpack_register_words():
    adu = _frame(1, 0x03, 4, 0x12, 0x34, 0xAB, 0xCD)
    assert unpack_words(adu) == [0x1234, 0xABCD]


def test_unpack_coil_words_low_byte_first_with_padding():
    adu = _frame(1, 0x01, 3, 0xCD, 0x6B, 0x05)
    assert unpack_words(adu) == [0x6BCD, 0x0005]


def test_unpack_write_response_has_no_words():
    adu = _frame(1, 0x06, 0, 1, 0, 3)
    assert unpack_words(adu) == []


def test_unpack_short_response_raises():
    with pytest.raises(ValueError):
        unpack_words(bytes([1, 0x03, 4, 0x12]))