import pytest

from fieldlink.ir_decode import (
    decode_jvc,
    decode_nec,
    decode_panasonic,
    decode_rc5,
    decode_rc6,
    decode_samsung,
    decode_sony,
)
from fieldlink.ir_protocol import (
    DISH_HDR_MARK,
    JVC_BIT_MARK,
    JVC_HDR_MARK,
    NEC_HDR_MARK,
    NEC_HDR_SPACE,
    SHARP_TOGGLE_MASK,
    USEC_PER_TICK,
    DecodeType,
)
from fieldlink.ir_send import (
    IRSignal,
    Pulse,
    encode_dish,
    encode_jvc,
    encode_nec,
    encode_panasonic,
    encode_raw,
    encode_rc5,
    encode_rc6,
    encode_samsung,
    encode_sharp,
    encode_sony,
)


def to_rawbuf(signal: IRSignal, gap: int = 1000) -> list[int]:
    """Durations a receiver would capture: merged levels, in ticks, after a gap."""
    merged: list[list] = []
    for pulse in signal.pulses:
        if pulse.duration == 0:
            continue
        if merged and merged[-1][0] == pulse.mark:
            merged[-1][1] += pulse.duration
        else:
            merged.append([pulse.mark, pulse.duration])
    while merged and not merged[-1][0]:
        merged.pop()
    return [gap] + [int(us / USEC_PER_TICK + 0.5) for _, us in merged]


def test_nec_round_trip():
    result = decode_nec(to_rawbuf(encode_nec(0x20DF10EF, 32)))
    assert result is not None
    assert result.decode_type == DecodeType.NEC
    assert result.value == 0x20DF10EF
    assert result.bits == 32


def test_nec_starts_with_header_and_ends_with_zero_space():
    signal = encode_nec(0x1234, 32)
    assert signal.pulses[0] == Pulse(True, NEC_HDR_MARK)
    assert signal.pulses[1] == Pulse(False, NEC_HDR_SPACE)
    assert signal.pulses[-1] == Pulse(False, 0)
    assert len(signal.pulses) == 2 + 2 * 32 + 2


def test_nec_carrier_is_38khz():
    assert encode_nec(0, 32).khz == 38


def test_sony_round_trip():
    result = decode_sony(to_rawbuf(encode_sony(0xA90, 12)))
    assert result is not None
    assert result.decode_type == DecodeType.SONY
    assert result.value == 0xA90
    assert result.bits == 12


def test_samsung_round_trip():
    result = decode_samsung(to_rawbuf(encode_samsung(0xE0E040BF, 32)))
    assert result is not None
    assert result.decode_type == DecodeType.SAMSUNG
    assert result.value == 0xE0E040BF


def test_jvc_round_trip():
    result = decode_jvc(to_rawbuf(encode_jvc(0xC5E8, 16, False)))
    assert result is not None
    assert result.decode_type == DecodeType.JVC
    assert result.value == 0xC5E8


def test_jvc_repeat_skips_header():
    full = encode_jvc(0xC5E8, 16, False)
    repeat = encode_jvc(0xC5E8, 16, True)
    assert full.pulses[0].duration == JVC_HDR_MARK
    assert repeat.pulses[0].duration == JVC_BIT_MARK
    assert repeat.pulses == full.pulses[2:]


def test_panasonic_round_trip():
    result = decode_panasonic(to_rawbuf(encode_panasonic(0x4004, 0x0100BCBD)))
    assert result is not None
    assert result.decode_type == DecodeType.PANASONIC
    assert result.value == 0x0100BCBD
    assert result.panasonic_address == 0x4004


def test_rc5_round_trip():
    result = decode_rc5(to_rawbuf(encode_rc5(0xABC, 12)))
    assert result is not None
    assert result.decode_type == DecodeType.RC5
    assert result.value == 0xABC
    assert result.bits == 12


def test_rc6_round_trip():
    result = decode_rc6(to_rawbuf(encode_rc6(0xAB, 8)))
    assert result is not None
    assert result.decode_type == DecodeType.RC6
    assert result.value == 0xAB
    assert result.bits == 8


def test_rc6_trailer_bit_is_double_wide():
    signal = encode_rc6(0, 8)
    widths = {pulse.duration for pulse in signal.pulses[4:-1]}
    assert max(widths) == 2 * min(widths)


def test_raw_alternates_levels():
    signal = encode_raw([900, 450, 560, 1690], 38)
    assert [p.mark for p in signal.pulses] == [True, False, True, False, False]
    assert signal.durations == (900, 450, 560, 1690, 0)
    assert signal.total_duration == sum([900, 450, 560, 1690])


def test_sharp_second_half_is_inverted_code():
    data = 0x5AA5
    signal = encode_sharp(data, 15)
    half = len(signal.pulses) // 2
    inverted = encode_sharp(data ^ SHARP_TOGGLE_MASK, 15)
    assert signal.pulses[half:] == inverted.pulses[:half]
    assert signal.pulses[:half] != signal.pulses[half:]


def test_dish_has_no_stop_mark():
    signal = encode_dish(0x1C10, 16)
    assert signal.pulses[0].duration == DISH_HDR_MARK
    assert signal.pulses[-1].mark is False
    assert len(signal.pulses) == 2 + 2 * 16


def test_too_many_bits_rejected():
    with pytest.raises(ValueError):
        encode_sony(1, 33)