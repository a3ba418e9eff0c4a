"""Infrared remote protocol constants, tick tolerances and decode results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

USEC_PER_TICK = 50
"""Microseconds per receiver sampling tick."""

RAWBUF = 100
"""Capacity of the raw duration buffer."""

MARK_EXCESS = 100
"""Marks tend to be this many microseconds too long, spaces too short."""

SYSCLOCK = 16_000_000

TOLERANCE = 25
"""Percent tolerance when matching measured durations."""
LTOL = 1.0 - TOLERANCE / 100.0
UTOL = 1.0 + TOLERANCE / 100.0

GAP_US = 5000
"""Minimum gap between transmissions, in microseconds."""
GAP_TICKS = GAP_US // USEC_PER_TICK

# Detector output is active low.
MARK = 0
SPACE = 1

TOPBIT = 0x80000000

REPEAT = 0xFFFFFFFF
"""Decoded value reported for a repeat code."""

# Pulse parameters, in microseconds.
NEC_HDR_MARK = 9000
NEC_HDR_SPACE = 4500
NEC_BIT_MARK = 560
NEC_ONE_SPACE = 1600
NEC_ZERO_SPACE = 560
NEC_RPT_SPACE = 2250

SONY_HDR_MARK = 2400
SONY_HDR_SPACE = 600
SONY_ONE_MARK = 1200
SONY_ZERO_MARK = 600
SONY_RPT_LENGTH = 45000
SONY_DOUBLE_SPACE_USECS = 500

SANYO_HDR_MARK = 3500
SANYO_HDR_SPACE = 950
SANYO_ONE_MARK = 2400
SANYO_ZERO_MARK = 700
SANYO_DOUBLE_SPACE_USECS = 800
SANYO_RPT_LENGTH = 45000

MITSUBISHI_HDR_SPACE = 350
MITSUBISHI_ONE_MARK = 1950
MITSUBISHI_ZERO_MARK = 750

RC5_T1 = 889
RC5_RPT_LENGTH = 46000

RC6_HDR_MARK = 2666
RC6_HDR_SPACE = 889
RC6_T1 = 444
RC6_RPT_LENGTH = 46000

SHARP_BIT_MARK = 245
SHARP_ONE_SPACE = 1805
SHARP_ZERO_SPACE = 795
SHARP_GAP = 600000
SHARP_TOGGLE_MASK = 0x3FF
SHARP_RPT_SPACE = 3000

DISH_HDR_MARK = 400
DISH_HDR_SPACE = 6100
DISH_BIT_MARK = 400
DISH_ONE_SPACE = 1700
DISH_ZERO_SPACE = 2800
DISH_RPT_SPACE = 6200
DISH_TOP_BIT = 0x8000

PANASONIC_HDR_MARK = 3502
PANASONIC_HDR_SPACE = 1750
PANASONIC_BIT_MARK = 502
PANASONIC_ONE_SPACE = 1244
PANASONIC_ZERO_SPACE = 400

JVC_HDR_MARK = 8000
JVC_HDR_SPACE = 4000
JVC_BIT_MARK = 600
JVC_ONE_SPACE = 1600
JVC_ZERO_SPACE = 550
JVC_RPT_LENGTH = 60000

LG_HDR_MARK = 8000
LG_HDR_SPACE = 4000
LG_BIT_MARK = 600
LG_ONE_SPACE = 1600
LG_ZERO_SPACE = 550
LG_RPT_LENGTH = 60000

SAMSUNG_HDR_MARK = 5000
SAMSUNG_HDR_SPACE = 5000
SAMSUNG_BIT_MARK = 560
SAMSUNG_ONE_SPACE = 1600
SAMSUNG_ZERO_SPACE = 560
SAMSUNG_RPT_SPACE = 2250

# Bit counts.
SHARP_BITS = 15
DISH_BITS = 16
NEC_BITS = 32
SONY_BITS = 12
SANYO_BITS = 12
MITSUBISHI_BITS = 16
MIN_RC5_SAMPLES = 11
MIN_RC6_SAMPLES = 1
PANASONIC_BITS = 48
JVC_BITS = 16
LG_BITS = 28
SAMSUNG_BITS = 32


class DecodeType(IntEnum):
    """Protocol a received code was decoded as."""

    UNKNOWN = -1
    NEC = 1
    SONY = 2
    RC5 = 3
    RC6 = 4
    DISH = 5
    SHARP = 6
    PANASONIC = 7
    JVC = 8
    SANYO = 9
    MITSUBISHI = 10
    SAMSUNG = 11
    LG = 12


@dataclass
class DecodeResults:
    """Outcome of decoding a captured sequence of mark and space durations."""

    decode_type: DecodeType
    value: int
    bits: int
    panasonic_address: int = 0
    rawbuf: tuple[int, ...] = field(default_factory=tuple)

    @property
    def rawlen(self) -> int:
        """Number of recorded durations."""
        return len(self.rawbuf)

    @property
    def is_repeat(self) -> bool:
        """True when the result is a repeat code rather than a new value."""
        return self.value == REPEAT


def ticks_low(us: float) -> int:
    """Smallest tick count accepted for a duration of ``us`` microseconds."""
    return int(us * LTOL / USEC_PER_TICK)


def ticks_high(us: float) -> int:
    """Largest tick count accepted for a duration of ``us`` microseconds."""
    return int(us * UTOL / USEC_PER_TICK + 1)


def match(measured: int, desired: float) -> bool:
    """Whether a measured tick count lies within tolerance of ``desired`` microseconds."""
    return ticks_low(desired) <= measured <= ticks_high(desired)


def match_mark(measured_ticks: int, desired_us: float) -> bool:
    """Match a mark, allowing for the sensor stretching marks."""
    return match(measured_ticks, desired_us + MARK_EXCESS)


def match_space(measured_ticks: int, desired_us: float) -> bool:
    """Match a space, allowing for the sensor shortening spaces."""
    return match(measured_ticks, desired_us - MARK_EXCESS)