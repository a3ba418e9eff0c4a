"""Modbus RTU master that runs transactions over a serial-like stream."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Optional, Protocol

from fieldlink.checksum import high_word, low_word
from fieldlink.modbus_frames import (
    HEADER_LENGTH,
    MAX_BUFFER_SIZE,
    RESPONSE_TIMEOUT_MS,
    FunctionCode,
    ModbusError,
    ModbusStatus,
    build_request,
    remaining_length,
    unpack_words,
    verify_crc,
)

Callback = Callable[[], None]

_READ_FUNCTIONS = frozenset(
    {
        FunctionCode.READ_COILS,
        FunctionCode.READ_DISCRETE_INPUTS,
        FunctionCode.READ_HOLDING_REGISTERS,
        FunctionCode.READ_INPUT_REGISTERS,
        FunctionCode.READ_WRITE_MULTIPLE_REGISTERS,
    }
)


class SerialPort(Protocol):
    """The part of a serial port the master needs."""

    @property
    def in_waiting(self) -> int: ...

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> object: ...

    def flush(self) -> None: ...


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ModbusMaster:
    """Talks to one Modbus slave over a serial port.

    Failed transactions raise :class:`ModbusError`. Read functions return the
    words of the response, which also stay available through
    :meth:`get_response_buffer`, :meth:`available` and :meth:`receive`.
    """

    def __init__(
        self,
        serial: SerialPort,
        slave: int,
        timeout: float = RESPONSE_TIMEOUT_MS,
        clock: Callable[[], float] = _monotonic_ms,
        idle: Optional[Callback] = None,
        pre_transmission: Optional[Callback] = None,
        post_transmission: Optional[Callback] = None,
    ) -> None:
        self.serial = serial
        self.slave = slave & 0xFF
        self.timeout = timeout
        self.clock = clock
        self.idle = idle
        self.pre_transmission = pre_transmission
        self.post_transmission = post_transmission

        self._read_address = 0
        self._read_quantity = 0
        self._write_address = 0
        self._write_quantity = 0
        self._transmit = [0] * MAX_BUFFER_SIZE
        self._tx_index = 0
        self._tx_bits = 0
        self._response = [0] * MAX_BUFFER_SIZE
        self._rx_index = 0
        self._rx_length = 0

    # ----------------------------------------------------------- streaming

    def begin_transmission(self, address: int) -> None:
        """Start queueing data to write at ``address``."""
        self._write_address = address & 0xFFFF
        self._tx_index = 0
        self._tx_bits = 0

    def send_bit(self, value: bool) -> None:
        """Queue one coil state; bits fill each word from its low end."""
        bit = self._tx_bits % 16
        if (self._tx_bits >> 4) >= MAX_BUFFER_SIZE:
            return
        if bit == 0:
            self._transmit[self._tx_index] = 0
        if value:
            self._transmit[self._tx_index] |= 1 << bit
        else:
            self._transmit[self._tx_index] &= ~(1 << bit) & 0xFFFF
        self._tx_bits += 1
        self._tx_index = self._tx_bits >> 4

    def send(self, value: int) -> None:
        """Queue one 16-bit word."""
        if self._tx_index < MAX_BUFFER_SIZE:
            self._transmit[self._tx_index] = value & 0xFFFF
            self._tx_index += 1
            self._tx_bits = self._tx_index << 4

    def send_long(self, value: int) -> None:
        """Queue a 32-bit value as its low word followed by its high word."""
        self.send(low_word(value))
        self.send(high_word(value))

    def available(self) -> int:
        """Number of response words not yet taken with :meth:`receive`."""
        return self._rx_length - self._rx_index

    def receive(self) -> int:
        """Take the next response word."""
        if self._rx_index >= self._rx_length:
            raise IndexError("no response words left")
        value = self._response[self._rx_index]
        self._rx_index += 1
        return value

    # ------------------------------------------------------------- buffers

    def get_response_buffer(self, index: int) -> int:
        """Word ``index`` of the response buffer."""
        if not 0 <= index < MAX_BUFFER_SIZE:
            raise IndexError(f"response buffer index {index} out of range")
        return self._response[index]

    def clear_response_buffer(self) -> None:
        """Zero every word of the response buffer."""
        self._response = [0] * MAX_BUFFER_SIZE

    def set_transmit_buffer(self, index: int, value: int) -> None:
        """Place ``value`` at ``index`` of the transmit buffer."""
        if not 0 <= index < MAX_BUFFER_SIZE:
            raise ModbusError(ModbusStatus.ILLEGAL_DATA_ADDRESS)
        self._transmit[index] = value & 0xFFFF

    def clear_transmit_buffer(self) -> None:
        """Zero every word of the transmit buffer."""
        self._transmit = [0] * MAX_BUFFER_SIZE

    # ----------------------------------------------------------- functions

    def read_coils(self, address: int, quantity: int) -> list[int]:
        """Function 0x01: read coils, packed 16 per word from the low bit."""
        self._read_address, self._read_quantity = address, quantity
        return self._transaction(FunctionCode.READ_COILS)

    def read_discrete_inputs(self, address: int, quantity: int) -> list[int]:
        """Function 0x02: read discrete inputs, packed 16 per word."""
        self._read_address, self._read_quantity = address, quantity
        return self._transaction(FunctionCode.READ_DISCRETE_INPUTS)

    def read_holding_registers(self, address: int, quantity: int) -> list[int]:
        """Function 0x03: read holding registers."""
        self._read_address, self._read_quantity = address, quantity
        return self._transaction(FunctionCode.READ_HOLDING_REGISTERS)

    def read_input_registers(self, address: int, quantity: int) -> list[int]:
        """Function 0x04: read input registers; the quantity is taken as 8 bits."""
        self._read_address, self._read_quantity = address, quantity & 0xFF
        return self._transaction(FunctionCode.READ_INPUT_REGISTERS)

    def write_single_coil(self, address: int, state: bool) -> None:
        """Function 0x05: switch one coil on (any true state) or off."""
        self._write_address = address
        self._write_quantity = 0xFF00 if state else 0x0000
        self._transaction(FunctionCode.WRITE_SINGLE_COIL)

    def write_single_register(self, address: int, value: int) -> None:
        """Function 0x06: write one holding register."""
        self._write_address = address
        self._write_quantity = 0
        self._transmit[0] = value & 0xFFFF
        self._transaction(FunctionCode.WRITE_SINGLE_REGISTER)

    def write_multiple_coils(
        self, address: Optional[int] = None, quantity: Optional[int] = None
    ) -> None:
        """Function 0x0F: write coils from the transmit buffer.

        Without arguments, writes the bits queued since :meth:`begin_transmission`.
        """
        if address is not None:
            self._write_address = address
        self._write_quantity = self._tx_bits if quantity is None else quantity
        self._transaction(FunctionCode.WRITE_MULTIPLE_COILS)

    def write_multiple_registers(
        self, address: Optional[int] = None, quantity: Optional[int] = None
    ) -> None:
        """Function 0x10: write registers from the transmit buffer.

        Without arguments, writes the words queued since :meth:`begin_transmission`.
        """
        if address is not None:
            self._write_address = address
        self._write_quantity = self._tx_index if quantity is None else quantity
        self._transaction(FunctionCode.WRITE_MULTIPLE_REGISTERS)

    def mask_write_register(self, address: int, and_mask: int, or_mask: int) -> None:
        """Function 0x16: combine a register with an AND and an OR mask."""
        self._write_address = address
        self._transmit[0] = and_mask & 0xFFFF
        self._transmit[1] = or_mask & 0xFFFF
        self._transaction(FunctionCode.MASK_WRITE_REGISTER)

    def read_write_multiple_registers(
        self,
        read_address: int,
        read_quantity: int,
        write_address: Optional[int] = None,
        write_quantity: Optional[int] = None,
    ) -> list[int]:
        """Function 0x17: write registers, then read registers, in one request.

        Without a write quantity, writes the words queued since
        :meth:`begin_transmission`.
        """
        self._read_address, self._read_quantity = read_address, read_quantity
        if write_address is not None:
            self._write_address = write_address
        self._write_quantity = self._tx_index if write_quantity is None else write_quantity
        return self._transaction(FunctionCode.READ_WRITE_MULTIPLE_REGISTERS)

    # --------------------------------------------------------- transaction

    def _transaction(self, function: FunctionCode) -> list[int]:
        try:
            request = build_request(
                self.slave,
                function,
                read_address=self._read_address,
                read_quantity=self._read_quantity,
                write_address=self._write_address,
                write_quantity=self._write_quantity,
                words=self._transmit,
            )
            self._send_request(request)
            response = self._collect_response(function)
            if len(response) >= HEADER_LENGTH:
                verify_crc(response)
            return self._store_response(response)
        finally:
            self._tx_index = 0
            self._tx_bits = 0
            self._rx_index = 0

    def _send_request(self, request: bytes) -> None:
        while self.serial.in_waiting:
            self.serial.read(self.serial.in_waiting)
        if self.pre_transmission:
            self.pre_transmission()
        self.serial.write(request)
        self.serial.flush()
        if self.post_transmission:
            self.post_transmission()

    def _collect_response(self, function: FunctionCode) -> bytearray:
        response = bytearray()
        bytes_left = 8
        start = self.clock()
        while bytes_left:
            if self.serial.in_waiting:
                chunk = self.serial.read(1)
                if chunk:
                    response += chunk
                    bytes_left -= 1
                    if len(response) == HEADER_LENGTH:
                        bytes_left = remaining_length(response, self.slave, function)
            elif self.idle:
                self.idle()
            if self.clock() - start > self.timeout:
                raise ModbusError(ModbusStatus.RESPONSE_TIMED_OUT)
        return response

    def _store_response(self, response: bytearray) -> list[int]:
        if len(response) < 2 or response[1] not in _READ_FUNCTIONS:
            return []
        words = unpack_words(response)[:MAX_BUFFER_SIZE]
        if words:
            self._response[: len(words)] = words
            self._rx_length = len(words)
        return words