# fieldlink

Pure-Python building blocks for talking to small field devices, with no
runtime dependencies. It covers two areas:

- **Modbus RTU**: CRC-16 and word/byte helpers (`fieldlink.checksum`),
  request framing and response checks (`fieldlink.modbus_frames`), and a
  transaction engine, `ModbusMaster` (`fieldlink.modbus_master`).
- **Infrared remote codes**: protocol timings and tolerances
  (`fieldlink.ir_protocol`), encoders that turn codes into timed mark and
  space pulses (`fieldlink.ir_send`), and decoders that turn captured tick
  durations back into codes (`fieldlink.ir_decode`).

## Installation

```
pip install fieldlink
```

## Modbus RTU

### Framing

```python
from fieldlink.checksum import crc16
from fieldlink.modbus_frames import FunctionCode, build_request, verify_crc, unpack_words

frame = build_request(1, FunctionCode.READ_HOLDING_REGISTERS, read_address=0x0000, read_quantity=2)
assert crc16(frame) == 0          # the trailing CRC makes the whole frame check to zero
```

`build_request` assembles a request for any of the function codes in
`FunctionCode` (read coils, discrete inputs, holding and input registers;
write single coil or register; write multiple coils or registers; mask write
register; read/write multiple registers), CRC included.

For a response, `remaining_length(adu, slave, function)` judges the first
five bytes and says how many more are needed, `verify_crc(adu)` checks the
trailing CRC, and `unpack_words(adu)` returns the words of a read response.
Coil and discrete-input bytes are paired low byte first, with an odd last
byte zero-padded. Register bytes are paired high byte first.

### The master

`ModbusMaster` works over any object with pyserial-style `in_waiting`,
`read(size)`, `write(data)` and `flush()`. For example, a `serial.Serial`
you open yourself.

```python
from fieldlink.modbus_frames import ModbusError, ModbusStatus
from fieldlink.modbus_master import ModbusMaster

master = ModbusMaster(port, slave=1)

words = master.read_holding_registers(0x0000, 2)   # list of 16-bit words
first = master.get_response_buffer(0)

master.write_single_register(0x0010, 1234)
master.write_single_coil(0x0003, True)

master.begin_transmission(0x0020)
master.send(0x0001)
master.send_long(0x00020003)       # low word, then high word
master.write_multiple_registers()  # writes the three queued words

try:
    master.read_coils(0x0000, 16)
except ModbusError as error:
    if error.code is ModbusStatus.RESPONSE_TIMED_OUT:
        ...
```

Read functions return the response words. The words also stay in the
response buffer, and you can take them one by one with `available()` and
`receive()`. Write functions return nothing.

When a transaction fails, the master raises `ModbusError`. Its `status` is
either an exception code from the slave or one of the master's own checks:
`INVALID_SLAVE_ID`, `INVALID_FUNCTION`, `RESPONSE_TIMED_OUT` or
`INVALID_CRC`. Its `code` property gives the matching `ModbusStatus` when
there is one.

The constructor also takes these optional arguments:

- `timeout`, in milliseconds. The default is 2000.
- `clock`, a callable that returns milliseconds.
- `idle`, called while waiting for response bytes.
- `pre_transmission` and `post_transmission`, called around the write. Use
  them, for example, to switch an RS-485 driver.

## Infrared

```python
from fieldlink.ir_send import encode_nec
from fieldlink.ir_decode import decode
from fieldlink.ir_protocol import USEC_PER_TICK, DecodeType

signal = encode_nec(0x20DF10EF, 32)   # IRSignal: khz=38 and a tuple of Pulse(mark, duration)
print(signal.khz, signal.total_duration)

# A captured buffer: the gap before the code, then alternating mark and
# space widths in ticks of USEC_PER_TICK microseconds.
rawbuf = [100] + [d // USEC_PER_TICK for d in signal.durations[:-1]]
result = decode(rawbuf)
assert result.decode_type is DecodeType.NEC and result.value == 0x20DF10EF
```

Encoders: `encode_nec`, `encode_sony`, `encode_raw`, `encode_rc5`,
`encode_rc6`, `encode_panasonic`, `encode_jvc` (pass `repeat=True` to send
without the header), `encode_samsung`, `encode_sharp` and `encode_dish`.

Decoders: `decode_nec`, `decode_sony`, `decode_sanyo`, `decode_mitsubishi`,
`decode_rc5`, `decode_rc6`, `decode_panasonic`, `decode_lg`, `decode_jvc`,
`decode_samsung` and `decode_hash`. Each returns a `DecodeResults` or
`None`.

`decode` tries them in that order. `decode_hash` comes last because it
gives a 32-bit FNV hash for any buffer of six or more entries. Repeat codes
have `value == REPEAT`, and `is_repeat` is true for them.

## What the package does not do

It drives no hardware. It does not:

- open serial ports,
- modulate an infrared LED,
- sample an infrared detector.

A transmitter has to play an `IRSignal` itself. A capture loop has to record
the mark and space tick widths that the decoders take.

## Running the tests

```
pip install -e .[test]
pytest
```