"""Decoders that turn captured infrared tick durations into protocol values.

Every decoder takes the raw buffer recorded by a receiver: entry 0 is the gap
before the transmission, then alternating mark and space widths, in ticks of
``USEC_PER_TICK`` microseconds. A decoder returns a :class:`DecodeResults` when
the buffer holds its protocol and ``None`` otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

from fieldlink.ir_protocol import (
    JVC_BIT_MARK,
    JVC_BITS,
    JVC_HDR_MARK,
    JVC_HDR_SPACE,
    JVC_ONE_SPACE,
    JVC_ZERO_SPACE,
    LG_BIT_MARK,
    LG_BITS,
    LG_HDR_MARK,
    LG_HDR_SPACE,
    LG_ONE_SPACE,
    LG_ZERO_SPACE,
    MARK,
    MARK_EXCESS,
    MIN_RC5_SAMPLES,
    MIN_RC6_SAMPLES,
    MITSUBISHI_BITS,
    MITSUBISHI_HDR_SPACE,
    MITSUBISHI_ONE_MARK,
    MITSUBISHI_ZERO_MARK,
    NEC_BIT_MARK,
    NEC_BITS,
    NEC_HDR_MARK,
    NEC_HDR_SPACE,
    NEC_ONE_SPACE,
    NEC_RPT_SPACE,
    NEC_ZERO_SPACE,
    PANASONIC_BIT_MARK,
    PANASONIC_BITS,
    PANASONIC_HDR_MARK,
    PANASONIC_HDR_SPACE,
    PANASONIC_ONE_SPACE,
    PANASONIC_ZERO_SPACE,
    RC5_T1,
    RC6_HDR_MARK,
    RC6_HDR_SPACE,
    RC6_T1,
    REPEAT,
    SAMSUNG_BIT_MARK,
    SAMSUNG_BITS,
    SAMSUNG_HDR_MARK,
    SAMSUNG_HDR_SPACE,
    SAMSUNG_ONE_SPACE,
    SAMSUNG_RPT_SPACE,
    SAMSUNG_ZERO_SPACE,
    SANYO_BITS,
    SANYO_DOUBLE_SPACE_USECS,
    SANYO_HDR_MARK,
    SANYO_HDR_SPACE,
    SANYO_ONE_MARK,
    SANYO_ZERO_MARK,
    SONY_BITS,
    SONY_DOUBLE_SPACE_USECS,
    SONY_HDR_MARK,
    SONY_HDR_SPACE,
    SONY_ONE_MARK,
    SONY_ZERO_MARK,
    SPACE,
    DecodeResults,
    DecodeType,
    match,
    match_mark,
    match_space,
)

_U32 = 0xFFFFFFFF
_INVALID_LEVEL = -1
_MISSING = -1

FNV_PRIME_32 = 16777619
FNV_BASIS_32 = 2166136261

Decoder = Callable[[Sequence[int]], Optional[DecodeResults]]


def _at(buf: Sequence[int], index: int) -> int:
    """Entry ``index`` of the buffer, or a width that matches nothing past its end."""
    return buf[index] if 0 <= index < len(buf) else _MISSING


def _result(
    buf: Sequence[int],
    decode_type: DecodeType,
    value: int,
    bits: int,
    panasonic_address: int = 0,
) -> DecodeResults:
    return DecodeResults(
        decode_type=decode_type,
        value=value & _U32,
        bits=bits,
        panasonic_address=panasonic_address,
        rawbuf=tuple(buf),
    )


def _read_pulse_distance(
    buf: Sequence[int],
    offset: int,
    nbits: int,
    bit_mark: int,
    one_space: int,
    zero_space: int,
) -> Optional[tuple[int, int]]:
    """Read ``nbits`` mark/space pairs whose space width carries the bit."""
    data = 0
    for _ in range(nbits):
        if not match_mark(_at(buf, offset), bit_mark):
            return None
        offset += 1
        width = _at(buf, offset)
        if match_space(width, one_space):
            data = (data << 1) | 1
        elif match_space(width, zero_space):
            data <<= 1
        else:
            return None
        offset += 1
    return data, offset


def _read_pulse_width(
    buf: Sequence[int],
    offset: int,
    space: int,
    one_mark: int,
    zero_mark: int,
) -> Optional[tuple[int, int]]:
    """Read space/mark pairs whose mark width carries the bit, until a space fails."""
    data = 0
    while offset + 1 < len(buf):
        if not match_space(buf[offset], space):
            break
        offset += 1
        width = buf[offset]
        if match_mark(width, one_mark):
            data = (data << 1) | 1
        elif match_mark(width, zero_mark):
            data <<= 1
        else:
            return None
        offset += 1
    return data & _U32, offset


class _RCLevels:
    """Yields one bit-period level at a time from a biphase-coded buffer."""

    def __init__(self, buf: Sequence[int], t1: int, offset: int) -> None:
        self.buf = buf
        self.t1 = t1
        self.offset = offset
        self.used = 0

    def next(self) -> int:
        if self.offset >= len(self.buf):
            return SPACE
        width = self.buf[self.offset]
        level = MARK if self.offset % 2 else SPACE
        correction = MARK_EXCESS if level == MARK else -MARK_EXCESS
        for avail in (1, 2, 3):
            if match(width, avail * self.t1 + correction):
                break
        else:
            return _INVALID_LEVEL
        self.used += 1
        if self.used >= avail:
            self.used = 0
            self.offset += 1
        return level


def decode_nec(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a 32-bit NEC code or an NEC repeat."""
    buf = tuple(rawbuf)
    if not match_mark(_at(buf, 1), NEC_HDR_MARK):
        return None
    if (
        len(buf) == 4
        and match_space(_at(buf, 2), NEC_RPT_SPACE)
        and match_mark(_at(buf, 3), NEC_BIT_MARK)
    ):
        return _result(buf, DecodeType.NEC, REPEAT, 0)
    if len(buf) < 2 * NEC_BITS + 4:
        return None
    if not match_space(_at(buf, 2), NEC_HDR_SPACE):
        return None
    read = _read_pulse_distance(buf, 3, NEC_BITS, NEC_BIT_MARK, NEC_ONE_SPACE, NEC_ZERO_SPACE)
    if read is None:
        return None
    return _result(buf, DecodeType.NEC, read[0], NEC_BITS)


def decode_sony(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a Sony code of at least 12 bits.

    A short leading gap is reported as a repeat tagged as SANYO.
    """
    buf = tuple(rawbuf)
    if len(buf) < 2 * SONY_BITS + 2:
        return None
    if buf[0] < SONY_DOUBLE_SPACE_USECS:
        return _result(buf, DecodeType.SANYO, REPEAT, 0)
    if not match_mark(buf[1], SONY_HDR_MARK):
        return None
    read = _read_pulse_width(buf, 2, SONY_HDR_SPACE, SONY_ONE_MARK, SONY_ZERO_MARK)
    if read is None:
        return None
    data, offset = read
    bits = (offset - 1) // 2
    if bits < 12:
        return None
    return _result(buf, DecodeType.SONY, data, bits)


def decode_sanyo(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a Sanyo code: two header marks followed by Sony-like bits."""
    buf = tuple(rawbuf)
    if len(buf) < 2 * SANYO_BITS + 2:
        return None
    if buf[0] < SANYO_DOUBLE_SPACE_USECS:
        return _result(buf, DecodeType.SANYO, REPEAT, 0)
    if not match_mark(buf[1], SANYO_HDR_MARK):
        return None
    if not match_mark(buf[2], SANYO_HDR_MARK):
        return None
    read = _read_pulse_width(buf, 3, SANYO_HDR_SPACE, SANYO_ONE_MARK, SANYO_ZERO_MARK)
    if read is None:
        return None
    data, offset = read
    bits = (offset - 1) // 2
    if bits < 12:
        return None
    return _result(buf, DecodeType.SANYO, data, bits)


def decode_mitsubishi(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a Mitsubishi code of at least 16 bits."""
    buf = tuple(rawbuf)
    if len(buf) < 2 * MITSUBISHI_BITS + 2:
        return None
    if not match_mark(buf[1], MITSUBISHI_HDR_SPACE):
        return None
    data = 0
    offset = 2
    while offset + 1 < len(buf):
        width = buf[offset]
        if match_mark(width, MITSUBISHI_ONE_MARK):
            data = (data << 1) | 1
        elif match_mark(width, MITSUBISHI_ZERO_MARK):
            data <<= 1
        else:
            return None
        offset += 1
        if not match_space(buf[offset], MITSUBISHI_HDR_SPACE):
            break
        offset += 1
    bits = (offset - 1) // 2
    if bits < MITSUBISHI_BITS:
        return None
    return _result(buf, DecodeType.MITSUBISHI, data, bits)


def decode_rc5(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a biphase RC5 code; a 1 bit is space then mark."""
    buf = tuple(rawbuf)
    if len(buf) < MIN_RC5_SAMPLES + 2:
        return None
    levels = _RCLevels(buf, RC5_T1, offset=1)
    for expected in (MARK, SPACE, MARK):
        if levels.next() != expected:
            return None
    data = 0
    nbits = 0
    while levels.offset < len(buf):
        first = levels.next()
        second = levels.next()
        if first == SPACE and second == MARK:
            data = (data << 1) | 1
        elif first == MARK and second == SPACE:
            data <<= 1
        else:
            return None
        nbits += 1
    return _result(buf, DecodeType.RC5, data, nbits)


def decode_rc6(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a biphase RC6 code; a 1 bit is mark then space, bit 3 is double wide."""
    buf = tuple(rawbuf)
    if len(buf) < MIN_RC6_SAMPLES:
        return None
    if not match_mark(_at(buf, 1), RC6_HDR_MARK):
        return None
    if not match_space(_at(buf, 2), RC6_HDR_SPACE):
        return None
    levels = _RCLevels(buf, RC6_T1, offset=3)
    if levels.next() != MARK or levels.next() != SPACE:
        return None
    data = 0
    nbits = 0
    while levels.offset < len(buf):
        first = levels.next()
        if nbits == 3 and first != levels.next():
            return None
        second = levels.next()
        if nbits == 3 and second != levels.next():
            return None
        if first == MARK and second == SPACE:
            data = (data << 1) | 1
        elif first == SPACE and second == MARK:
            data <<= 1
        else:
            return None
        nbits += 1
    return _result(buf, DecodeType.RC6, data, nbits)


def decode_panasonic(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a 48-bit Panasonic code: a 16-bit address and a 32-bit value."""
    buf = tuple(rawbuf)
    if not match_mark(_at(buf, 1), PANASONIC_HDR_MARK):
        return None
    if not match_mark(_at(buf, 2), PANASONIC_HDR_SPACE):
        return None
    read = _read_pulse_distance(
        buf, 3, PANASONIC_BITS, PANASONIC_BIT_MARK, PANASONIC_ONE_SPACE, PANASONIC_ZERO_SPACE
    )
    if read is None:
        return None
    data = read[0]
    return _result(
        buf,
        DecodeType.PANASONIC,
        data & _U32,
        PANASONIC_BITS,
        panasonic_address=(data >> 32) & 0xFFFF,
    )


def decode_lg(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a 28-bit LG code with a trailing stop mark."""
    buf = tuple(rawbuf)
    if not match_mark(_at(buf, 1), LG_HDR_MARK):
        return None
    if len(buf) < 2 * LG_BITS + 1:
        return None
    if not match_space(_at(buf, 2), LG_HDR_SPACE):
        return None
    read = _read_pulse_distance(buf, 3, LG_BITS, LG_BIT_MARK, LG_ONE_SPACE, LG_ZERO_SPACE)
    if read is None:
        return None
    data, offset = read
    if not match_mark(_at(buf, offset), LG_BIT_MARK):
        return None
    return _result(buf, DecodeType.LG, data, LG_BITS)


def decode_jvc(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a 16-bit JVC code, or a JVC repeat sent without its header."""
    buf = tuple(rawbuf)
    if (
        len(buf) - 1 == 33
        and match_mark(_at(buf, 1), JVC_BIT_MARK)
        and match_mark(_at(buf, len(buf) - 1), JVC_BIT_MARK)
    ):
        return _result(buf, DecodeType.JVC, REPEAT, 0)
    if not match_mark(_at(buf, 1), JVC_HDR_MARK):
        return None
    if len(buf) < 2 * JVC_BITS + 1:
        return None
    if not match_space(_at(buf, 2), JVC_HDR_SPACE):
        return None
    read = _read_pulse_distance(buf, 3, JVC_BITS, JVC_BIT_MARK, JVC_ONE_SPACE, JVC_ZERO_SPACE)
    if read is None:
        return None
    data, offset = read
    if not match_mark(_at(buf, offset), JVC_BIT_MARK):
        return None
    return _result(buf, DecodeType.JVC, data, JVC_BITS)


def decode_samsung(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Decode a 32-bit Samsung code or a Samsung repeat."""
    buf = tuple(rawbuf)
    if not match_mark(_at(buf, 1), SAMSUNG_HDR_MARK):
        return None
    if (
        len(buf) == 4
        and match_space(_at(buf, 2), SAMSUNG_RPT_SPACE)
        and match_mark(_at(buf, 3), SAMSUNG_BIT_MARK)
    ):
        return _result(buf, DecodeType.SAMSUNG, REPEAT, 0)
    if len(buf) < 2 * SAMSUNG_BITS + 4:
        return None
    if not match_space(_at(buf, 2), SAMSUNG_HDR_SPACE):
        return None
    read = _read_pulse_distance(
        buf, 3, SAMSUNG_BITS, SAMSUNG_BIT_MARK, SAMSUNG_ONE_SPACE, SAMSUNG_ZERO_SPACE
    )
    if read is None:
        return None
    return _result(buf, DecodeType.SAMSUNG, read[0], SAMSUNG_BITS)


def compare(oldval: int, newval: int) -> int:
    """0 if ``newval`` is shorter, 1 if about equal, 2 if longer (20% tolerance)."""
    if newval < oldval * 0.8:
        return 0
    if oldval < newval * 0.8:
        return 2
    return 1


def decode_hash(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Hash any code of six or more samples into a 32-bit value.

    Each mark and space is compared with the previous one of its kind and the
    resulting shorter/equal/longer sequence is folded with FNV-1.
    """
    buf = tuple(rawbuf)
    if len(buf) < 6:
        return None
    value = FNV_BASIS_32
    for older, newer in zip(buf[1:], buf[3:]):
        value = ((value * FNV_PRIME_32) & _U32) ^ compare(older, newer)
    return _result(buf, DecodeType.UNKNOWN, value, 32)


_DECODERS: tuple[Decoder, ...] = (
    decode_nec,
    decode_sony,
    decode_sanyo,
    decode_mitsubishi,
    decode_rc5,
    decode_rc6,
    decode_panasonic,
    decode_lg,
    decode_jvc,
    decode_samsung,
    decode_hash,  # matches anything long enough, so it must come last
)


def decode(rawbuf: Sequence[int]) -> Optional[DecodeResults]:
    """Try every protocol in turn; ``None`` when nothing, not even the hash, applies."""
    buf = tuple(rawbuf)
    for decoder in _DECODERS:
        result = decoder(buf)
        if result is not None:
            return result
    return None