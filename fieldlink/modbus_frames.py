"""Building Modbus RTU requests and taking Modbus RTU responses apart."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

from fieldlink.checksum import crc16, high_byte, low_byte, make_word

MAX_BUFFER_SIZE = 64
"""Number of 16-bit words held by the transmit and response buffers."""

RESPONSE_TIMEOUT_MS = 2000
"""Time allowed for a complete response, in milliseconds."""

HEADER_LENGTH = 5
"""Bytes of a response needed before its length can be judged."""


class FunctionCode(IntEnum):
    """Modbus function codes."""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10
    MASK_WRITE_REGISTER = 0x16
    READ_WRITE_MULTIPLE_REGISTERS = 0x17


class ModbusStatus(IntEnum):
    """Outcome of a transaction: protocol exceptions and local failures."""

    SUCCESS = 0x00
    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SLAVE_DEVICE_FAILURE = 0x04
    INVALID_SLAVE_ID = 0xE0
    INVALID_FUNCTION = 0xE1
    RESPONSE_TIMED_OUT = 0xE2
    INVALID_CRC = 0xE3


class ModbusError(Exception):
    """A transaction failed; ``status`` holds the exception or failure code."""

    def __init__(self, status: int) -> None:
        self.status = int(status)
        try:
            label = ModbusStatus(self.status).name
        except ValueError:
            label = "exception"
        super().__init__(f"Modbus {label} (0x{self.status:02X})")

    @property
    def code(self) -> ModbusStatus | None:
        """The status as a known :class:`ModbusStatus`, if it is one."""
        try:
            return ModbusStatus(self.status)
        except ValueError:
            return None


_READS = frozenset(
    {
        FunctionCode.READ_COILS,
        FunctionCode.READ_DISCRETE_INPUTS,
        FunctionCode.READ_INPUT_REGISTERS,
        FunctionCode.READ_HOLDING_REGISTERS,
        FunctionCode.READ_WRITE_MULTIPLE_REGISTERS,
    }
)
_WRITES_WITH_ADDRESS = frozenset(
    {
        FunctionCode.WRITE_SINGLE_COIL,
        FunctionCode.MASK_WRITE_REGISTER,
        FunctionCode.WRITE_MULTIPLE_COILS,
        FunctionCode.WRITE_SINGLE_REGISTER,
        FunctionCode.WRITE_MULTIPLE_REGISTERS,
        FunctionCode.READ_WRITE_MULTIPLE_REGISTERS,
    }
)
_SIMPLE_WRITE_ECHOES = frozenset(
    {
        FunctionCode.WRITE_SINGLE_COIL,
        FunctionCode.WRITE_MULTIPLE_COILS,
        FunctionCode.WRITE_SINGLE_REGISTER,
        FunctionCode.WRITE_MULTIPLE_REGISTERS,
    }
)


def _word_bytes(value: int) -> tuple[int, int]:
    return high_byte(value), low_byte(value)


def build_request(
    slave: int,
    function: int,
    read_address: int = 0,
    read_quantity: int = 0,
    write_address: int = 0,
    write_quantity: int = 0,
    words: Sequence[int] = (),
) -> bytes:
    """Assemble a request ADU for ``function``, CRC included.

    ``words`` supplies the data to write; entries beyond its end count as zero.
    For a single coil, ``write_quantity`` carries the on/off value (0xFF00/0).
    """

    def word(index: int) -> int:
        return words[index] & 0xFFFF if index < len(words) else 0

    adu = bytearray([slave & 0xFF, function & 0xFF])

    if function in _READS:
        adu += bytes(_word_bytes(read_address))
        adu += bytes(_word_bytes(read_quantity))

    if function in _WRITES_WITH_ADDRESS:
        adu += bytes(_word_bytes(write_address))

    if function == FunctionCode.WRITE_SINGLE_COIL:
        adu += bytes(_word_bytes(write_quantity))
    elif function == FunctionCode.WRITE_SINGLE_REGISTER:
        adu += bytes(_word_bytes(word(0)))
    elif function == FunctionCode.WRITE_MULTIPLE_COILS:
        adu += bytes(_word_bytes(write_quantity))
        byte_count = low_byte(-(-(write_quantity & 0xFFFF) // 8))
        adu.append(byte_count)
        for index in range(byte_count):
            value = word(index >> 1)
            adu.append(high_byte(value) if index % 2 else low_byte(value))
    elif function in (
        FunctionCode.WRITE_MULTIPLE_REGISTERS,
        FunctionCode.READ_WRITE_MULTIPLE_REGISTERS,
    ):
        adu += bytes(_word_bytes(write_quantity))
        adu.append(low_byte(write_quantity << 1))
        for index in range(low_byte(write_quantity)):
            adu += bytes(_word_bytes(word(index)))
    elif function == FunctionCode.MASK_WRITE_REGISTER:
        adu += bytes(_word_bytes(word(0)))
        adu += bytes(_word_bytes(word(1)))

    check = crc16(adu)
    adu += bytes([low_byte(check), high_byte(check)])
    return bytes(adu)


def remaining_length(adu: Sequence[int], slave: int, function: int) -> int:
    """Judge the first five bytes of a response.

    Returns how many more bytes the response needs. Raises :class:`ModbusError`
    when the response is for another slave or function, or reports an exception.
    """
    if len(adu) < 3:
        raise ValueError("a response header needs at least three bytes")
    if adu[0] != (slave & 0xFF):
        raise ModbusError(ModbusStatus.INVALID_SLAVE_ID)
    if (adu[1] & 0x7F) != (function & 0xFF):
        raise ModbusError(ModbusStatus.INVALID_FUNCTION)
    if adu[1] & 0x80:
        raise ModbusError(adu[2])

    returned = adu[1]
    if returned in _READS:
        return adu[2]
    if returned in _SIMPLE_WRITE_ECHOES:
        return 3
    if returned == FunctionCode.MASK_WRITE_REGISTER:
        return 5
    return len(adu) - HEADER_LENGTH + 3 if len(adu) <= 8 else 0


def verify_crc(adu: Sequence[int]) -> bytes:
    """Check the trailing CRC of a response and return the ADU without it."""
    if len(adu) < HEADER_LENGTH:
        raise ValueError("a response needs at least five bytes to be checked")
    body = bytes(adu[:-2])
    check = crc16(body)
    if low_byte(check) != adu[-2] or high_byte(check) != adu[-1]:
        raise ModbusError(ModbusStatus.INVALID_CRC)
    return body


def unpack_words(adu: Sequence[int]) -> list[int]:
    """Words carried by a read response; empty for other functions.

    Coil and discrete-input bytes pair low byte first, with an odd last byte
    zero-padded; register bytes pair high byte first.
    """
    if len(adu) < 3:
        return []
    function = adu[1]
    if function not in _READS:
        return []
    count = adu[2]
    data = bytes(adu[3 : 3 + count])
    if len(data) < count:
        raise ValueError("response is shorter than its byte count")

    if function in (FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS):
        words = [make_word(high, low) for low, high in zip(data[0::2], data[1::2])]
        if count % 2:
            words.append(make_word(0, data[-1]))
        return words
    return [make_word(high, low) for high, low in zip(data[0::2], data[1::2])]