"""Modbus RTU framing and master, CRC-16, and infrared remote code encoders and decoders."""

__version__ = "0.1.0"