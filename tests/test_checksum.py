from functools import reduce

import pytest

from fieldlink.checksum import (
    crc16,
    crc16_update,
    high_byte,
    high_word,
    low_byte,
    low_word,
    make_word,
)


def test_crc16_standard_check_value():
    assert crc16(b"123456789") == 0x4B37


def test_crc16_of_nothing_is_initial_value():
    assert crc16(b"") == 0xFFFF


@pytest.mark.parametrize("data", [b"\x01", b"\x01\x03\x00\x00\x00\x0a", bytes(range(40))])
def test_crc16_matches_repeated_update(data):
    assert crc16(data) == reduce(crc16_update, data, 0xFFFF)


@pytest.mark.parametrize("data", [b"\x11", b"\x01\x03\x00\x00\x00\x0a", bytes(range(200))])
def test_appending_crc_little_endian_gives_zero_residue(data):
    value = crc16(data)
    framed = data + bytes([low_byte(value), high_byte(value)])
    assert crc16(framed) == 0


def test_crc16_update_stays_within_sixteen_bits():
    for byte in range(256):
        assert 0 <= crc16_update(0xFFFF, byte) <= 0xFFFF


def test_crc16_detects_single_byte_change():
    assert crc16(b"\x01\x03\x00\x00") != crc16(b"\x01\x03\x00\x01")


@pytest.mark.parametrize("value", [0, 1, 0xFFFF, 0x10000, 0x12345678, 0xFFFFFFFF])
def test_word_split_round_trip(value):
    assert (high_word(value) << 16) | low_word(value) == value


def test_word_split_values():
    assert low_word(0x12345678) == 0x5678
    assert high_word(0x12345678) == 0x1234


@pytest.mark.parametrize("value", [0, 0x00FF, 0xFF00, 0x1234, 0xFFFF])
def test_byte_split_round_trip(value):
    assert make_word(high_byte(value), low_byte(value)) == value


def test_byte_split_values():
    assert high_byte(0xABCD) == 0xAB
    assert low_byte(0xABCD) == 0xCD
    assert make_word(0xAB, 0xCD) == 0xABCD