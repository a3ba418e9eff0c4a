"""Encoders that turn protocol values into timed infrared mark/space sequences.

An encoder returns an :class:`IRSignal`: the carrier frequency and the ordered
pulses a transmitter must emit. A mark is modulated carrier, a space is silence.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from fieldlink.ir_protocol import (
    DISH_BIT_MARK,
    DISH_HDR_MARK,
    DISH_HDR_SPACE,
    DISH_ONE_SPACE,
    DISH_TOP_BIT,
    DISH_ZERO_SPACE,
    JVC_BIT_MARK,
    JVC_HDR_MARK,
    JVC_HDR_SPACE,
    JVC_ONE_SPACE,
    JVC_ZERO_SPACE,
    NEC_BIT_MARK,
    NEC_HDR_MARK,
    NEC_HDR_SPACE,
    NEC_ONE_SPACE,
    NEC_ZERO_SPACE,
    PANASONIC_BIT_MARK,
    PANASONIC_HDR_MARK,
    PANASONIC_HDR_SPACE,
    PANASONIC_ONE_SPACE,
    PANASONIC_ZERO_SPACE,
    RC5_T1,
    RC6_HDR_MARK,
    RC6_HDR_SPACE,
    RC6_T1,
    SAMSUNG_BIT_MARK,
    SAMSUNG_HDR_MARK,
    SAMSUNG_HDR_SPACE,
    SAMSUNG_ONE_SPACE,
    SAMSUNG_ZERO_SPACE,
    SHARP_BIT_MARK,
    SHARP_ONE_SPACE,
    SHARP_TOGGLE_MASK,
    SHARP_ZERO_SPACE,
    SONY_HDR_MARK,
    SONY_HDR_SPACE,
    SONY_ONE_MARK,
    SONY_ZERO_MARK,
    TOPBIT,
)

_U32 = 0xFFFFFFFF
_SHARP_TOP_BIT = 0x4000
_PANASONIC_ADDRESS_TOP_BIT = 0x8000
SHARP_DELAY_US = 46_000
"""Pause after each half of a Sharp frame, in microseconds."""


@dataclass(frozen=True)
class Pulse:
    """One output interval: carrier on (mark) or off (space) for ``duration`` µs."""

    mark: bool
    duration: int


@dataclass(frozen=True)
class IRSignal:
    """A carrier frequency in kHz and the pulses to transmit on it."""

    khz: int
    pulses: tuple[Pulse, ...]

    @property
    def durations(self) -> tuple[int, ...]:
        """Pulse durations in order, in microseconds."""
        return tuple(pulse.duration for pulse in self.pulses)

    @property
    def total_duration(self) -> int:
        """Length of the whole signal in microseconds."""
        return sum(self.durations)


class _Builder:
    def __init__(self, khz: int) -> None:
        self.khz = khz
        self.pulses: list[Pulse] = []

    def mark(self, duration: int) -> None:
        self.pulses.append(Pulse(True, duration))

    def space(self, duration: int) -> None:
        self.pulses.append(Pulse(False, duration))

    def build(self) -> IRSignal:
        return IRSignal(self.khz, tuple(self.pulses))


def _check_nbits(nbits: int) -> None:
    if not 0 <= nbits <= 32:
        raise ValueError(f"bit count must be between 0 and 32, got {nbits}")


def _bits(value: int, count: int, top: int) -> Iterator[bool]:
    """Yield ``count`` bits, testing ``top`` and shifting left after each."""
    for _ in range(count):
        yield bool(value & top)
        value <<= 1


def _left_align(data: int, nbits: int) -> int:
    _check_nbits(nbits)
    return (data << (32 - nbits)) & _U32


def _pulse_distance(
    out: _Builder, bits: Iterable[bool], bit_mark: int, one_space: int, zero_space: int
) -> None:
    for bit in bits:
        out.mark(bit_mark)
        out.space(one_space if bit else zero_space)


def encode_nec(data: int, nbits: int) -> IRSignal:
    """NEC: header, then the top ``nbits`` of the 32-bit word, then a stop mark."""
    out = _Builder(38)
    out.mark(NEC_HDR_MARK)
    out.space(NEC_HDR_SPACE)
    _pulse_distance(out, _bits(data & _U32, nbits, TOPBIT), NEC_BIT_MARK, NEC_ONE_SPACE, NEC_ZERO_SPACE)
    out.mark(NEC_BIT_MARK)
    out.space(0)
    return out.build()


def encode_sony(data: int, nbits: int) -> IRSignal:
    """Sony: header, then the low ``nbits`` of ``data`` as mark widths."""
    word = _left_align(data, nbits)
    out = _Builder(40)
    out.mark(SONY_HDR_MARK)
    out.space(SONY_HDR_SPACE)
    for bit in _bits(word, nbits, TOPBIT):
        out.mark(SONY_ONE_MARK if bit else SONY_ZERO_MARK)
        out.space(SONY_HDR_SPACE)
    return out.build()


def encode_raw(durations: Iterable[int], khz: int) -> IRSignal:
    """Alternate marks and spaces from ``durations``, starting with a mark."""
    out = _Builder(khz)
    for index, duration in enumerate(durations):
        if index % 2:
            out.space(duration)
        else:
            out.mark(duration)
    out.space(0)
    return out.build()


def encode_rc5(data: int, nbits: int) -> IRSignal:
    """RC5 biphase: two start bits, then a 1 as space-mark and a 0 as mark-space."""
    word = _left_align(data, nbits)
    out = _Builder(36)
    out.mark(RC5_T1)
    out.space(RC5_T1)
    out.mark(RC5_T1)
    for bit in _bits(word, nbits, TOPBIT):
        if bit:
            out.space(RC5_T1)
            out.mark(RC5_T1)
        else:
            out.mark(RC5_T1)
            out.space(RC5_T1)
    out.space(0)
    return out.build()


def encode_rc6(data: int, nbits: int) -> IRSignal:
    """RC6 biphase: a 1 as mark-space, a 0 as space-mark; bit 3 is double wide.

    The caller is responsible for flipping the toggle bit.
    """
    word = _left_align(data, nbits)
    out = _Builder(36)
    out.mark(RC6_HDR_MARK)
    out.space(RC6_HDR_SPACE)
    out.mark(RC6_T1)
    out.space(RC6_T1)
    for index, bit in enumerate(_bits(word, nbits, TOPBIT)):
        width = 2 * RC6_T1 if index == 3 else RC6_T1
        if bit:
            out.mark(width)
            out.space(width)
        else:
            out.space(width)
            out.mark(width)
    out.space(0)
    return out.build()


def encode_panasonic(address: int, data: int) -> IRSignal:
    """Panasonic: a 16-bit address followed by a 32-bit value."""
    out = _Builder(35)
    out.mark(PANASONIC_HDR_MARK)
    out.space(PANASONIC_HDR_SPACE)
    _pulse_distance(
        out,
        _bits(address & 0xFFFF, 16, _PANASONIC_ADDRESS_TOP_BIT),
        PANASONIC_BIT_MARK,
        PANASONIC_ONE_SPACE,
        PANASONIC_ZERO_SPACE,
    )
    _pulse_distance(
        out,
        _bits(data & _U32, 32, TOPBIT),
        PANASONIC_BIT_MARK,
        PANASONIC_ONE_SPACE,
        PANASONIC_ZERO_SPACE,
    )
    out.mark(PANASONIC_BIT_MARK)
    out.space(0)
    return out.build()


def encode_jvc(data: int, nbits: int, repeat: bool = False) -> IRSignal:
    """JVC: a repeat is the same code sent without its header."""
    word = _left_align(data, nbits)
    out = _Builder(38)
    if not repeat:
        out.mark(JVC_HDR_MARK)
        out.space(JVC_HDR_SPACE)
    _pulse_distance(out, _bits(word, nbits, TOPBIT), JVC_BIT_MARK, JVC_ONE_SPACE, JVC_ZERO_SPACE)
    out.mark(JVC_BIT_MARK)
    out.space(0)
    return out.build()


def encode_samsung(data: int, nbits: int) -> IRSignal:
    """Samsung: like NEC with a different header."""
    out = _Builder(38)
    out.mark(SAMSUNG_HDR_MARK)
    out.space(SAMSUNG_HDR_SPACE)
    _pulse_distance(
        out, _bits(data & _U32, nbits, TOPBIT), SAMSUNG_BIT_MARK, SAMSUNG_ONE_SPACE, SAMSUNG_ZERO_SPACE
    )
    out.mark(SAMSUNG_BIT_MARK)
    out.space(0)
    return out.build()


def _sharp_half(out: _Builder, value: int, nbits: int) -> None:
    _pulse_distance(out, _bits(value, nbits, _SHARP_TOP_BIT), SHARP_BIT_MARK, SHARP_ONE_SPACE, SHARP_ZERO_SPACE)
    out.mark(SHARP_BIT_MARK)
    out.space(SHARP_ZERO_SPACE)
    out.space(SHARP_DELAY_US)


def encode_sharp(data: int, nbits: int) -> IRSignal:
    """Sharp: the code, then the code with its toggle bits inverted."""
    out = _Builder(38)
    _sharp_half(out, data, nbits)
    _sharp_half(out, data ^ SHARP_TOGGLE_MASK, nbits)
    return out.build()


def encode_dish(data: int, nbits: int) -> IRSignal:
    """DISH: header then bits read from bit 15 down; send it four times."""
    out = _Builder(56)
    out.mark(DISH_HDR_MARK)
    out.space(DISH_HDR_SPACE)
    _pulse_distance(out, _bits(data, nbits, DISH_TOP_BIT), DISH_BIT_MARK, DISH_ONE_SPACE, DISH_ZERO_SPACE)
    return out.build()