"""CRC-16 (Modbus polynomial) and helpers for splitting and joining words."""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce

CRC16_POLYNOMIAL = 0xA001
"""Reflected form of x^16 + x^15 + x^2 + 1."""

CRC16_INITIAL = 0xFFFF


def crc16_update(crc: int, byte: int) -> int:
    """Fold one byte into a running CRC-16 (polynomial 0xA001)."""
    crc = (crc ^ (byte & 0xFF)) & 0xFFFF
    for _ in range(8):
        if crc & 1:
            crc = (crc >> 1) ^ CRC16_POLYNOMIAL
        else:
            crc >>= 1
    return crc


def crc16(data: Iterable[int]) -> int:
    """CRC-16 of a byte sequence, starting from 0xFFFF."""
    return reduce(crc16_update, data, CRC16_INITIAL)


def low_word(value: int) -> int:
    """Low 16 bits of a 32-bit value."""
    return value & 0xFFFF


def high_word(value: int) -> int:
    """High 16 bits of a 32-bit value."""
    return (value >> 16) & 0xFFFF


def low_byte(value: int) -> int:
    """Low 8 bits of a value."""
    return value & 0xFF


def high_byte(value: int) -> int:
    """Bits 8-15 of a value."""
    return (value >> 8) & 0xFF


def make_word(high: int, low: int) -> int:
    """Join a high and a low byte into a 16-bit word."""
    return ((high & 0xFF) << 8) | (low & 0xFF)