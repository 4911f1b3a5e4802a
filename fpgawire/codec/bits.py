"""Bit-level cursors over byte buffers.

Fields are packed least-significant-bit first: bit 0 of a field lands in the
lowest free bit of the buffer, and the buffer is filled byte by byte in
ascending order.
"""

import struct
from fractions import Fraction


class BitReader:
    """Sequentially reads arbitrary-width fields from a byte buffer.

    Reading past the end of the buffer yields zero bits instead of failing.
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._position = 0

    @property
    def bit_position(self) -> int:
        return self._position

    def read_bool(self) -> bool:
        byte_index, bit_index = divmod(self._position, 8)
        self._position += 1
        if byte_index >= len(self._data):
            return False
        return bool(self._data[byte_index] & (1 << bit_index))

    def read_uint(self, bit_count: int) -> int:
        value = 0
        for i in range(bit_count):
            if self.read_bool():
                value |= 1 << i
        return value

    def read_int(self, bit_count: int) -> int:
        raw = self.read_uint(bit_count)
        if bit_count and raw & (1 << (bit_count - 1)):
            raw -= 1 << bit_count
        return raw

    def read_float32(self) -> float:
        return struct.unpack("<f", self.read_uint(32).to_bytes(4, "little"))[0]

    def read_float64(self) -> float:
        return struct.unpack("<d", self.read_uint(64).to_bytes(8, "little"))[0]

    def read_fixed_point(self, word_length: int, signed: bool, delta: Fraction) -> Fraction:
        """Read a scaled integer and return its exact value."""
        raw = self.read_int(word_length) if signed else self.read_uint(word_length)
        return raw * delta


class BitWriter:
    """Sequentially writes arbitrary-width fields into a growing byte buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._position = 0

    @property
    def bit_length(self) -> int:
        return self._position

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def write_bool(self, value: bool) -> None:
        byte_index, bit_index = divmod(self._position, 8)
        if byte_index >= len(self._buffer):
            self._buffer.extend(bytes(byte_index + 1 - len(self._buffer)))
        if value:
            self._buffer[byte_index] |= 1 << bit_index
        self._position += 1

    def write_uint(self, value: int, bit_count: int) -> None:
        for i in range(bit_count):
            self.write_bool(bool(value & (1 << i)))

    def write_int(self, value: int, bit_count: int) -> None:
        # Masking turns negative values into their two's complement pattern
        self.write_uint(value & ((1 << bit_count) - 1), bit_count)

    def write_float32(self, value: float) -> None:
        self.write_uint(int.from_bytes(struct.pack("<f", value), "little"), 32)

    def write_float64(self, value: float) -> None:
        self.write_uint(int.from_bytes(struct.pack("<d", value), "little"), 64)

    def write_fixed_point(
        self, value: Fraction, word_length: int, signed: bool, delta: Fraction
    ) -> None:
        """Quantize an exact value to a multiple of delta and write it."""
        raw = round(Fraction(value) / delta)
        if signed:
            self.write_int(raw, word_length)
        else:
            self.write_uint(raw, word_length)
