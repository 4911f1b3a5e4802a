"""Alignment and byte-order transforms between codec buffers and transfer units.

The codec produces values right-aligned and LSB-first in byte 0. Hardware
expects them left-aligned within their transfer unit: a run of 32-bit
register words, or one DMA FIFO element. FIFO elements of composite types
additionally have the bytes of every 4-byte group reversed.
"""

import struct
from collections.abc import Sequence

REGISTER_WORD_BITS = 32


def _shift_left(data: bytes, bits: int, size: int) -> bytes:
    value = (int.from_bytes(data, "little") << bits) & ((1 << (size * 8)) - 1)
    return value.to_bytes(size, "little")


def _shift_right(data: bytes, bits: int, size: int) -> bytes:
    value = (int.from_bytes(data, "little") >> bits) & ((1 << (size * 8)) - 1)
    return value.to_bytes(size, "little")


def unit_count(value_bits: int, unit_bits: int = REGISTER_WORD_BITS) -> int:
    """Number of transfer units needed to carry a value."""
    return (value_bits + unit_bits - 1) // unit_bits


def align_for_register_write(
    data: bytes, value_bits: int, unit_bits: int = REGISTER_WORD_BITS
) -> bytes:
    """Left-align a packed value within the register words that carry it."""
    transfer_bits = unit_count(value_bits, unit_bits) * unit_bits
    return _shift_left(data, transfer_bits - value_bits, transfer_bits // 8)


def align_for_register_read(
    data: bytes, value_bits: int, unit_bits: int = REGISTER_WORD_BITS
) -> bytes:
    """Right-align raw register bytes so the value starts at bit 0."""
    transfer_bits = len(data) * 8
    if value_bits > transfer_bits:
        raise ValueError(f"{value_bits}-bit value does not fit in {len(data)} register bytes")
    return _shift_right(data, transfer_bits - value_bits, (value_bits + 7) // 8)


def swap_stream_endianness(data: bytes, element_bytes: int) -> bytes:
    """Reverse the bytes of every 4-byte group within each element.

    The buffer holds whole elements of element_bytes bytes; a short final
    group of an element is reversed on its own. Elements of 1 or 2 bytes are
    returned unchanged. Applying the swap twice restores the input.
    """
    if element_bytes <= 2:
        return bytes(data)
    if len(data) % element_bytes:
        raise ValueError(
            f"Buffer length {len(data)} is not a multiple of the {element_bytes}-byte element size"
        )

    swapped = bytearray()
    for element in range(0, len(data), element_bytes):
        for start in range(element, element + element_bytes, 4):
            swapped.extend(reversed(data[start : min(start + 4, element + element_bytes)]))
    return bytes(swapped)


def align_and_swap_for_stream_write(data: bytes, value_bits: int, element_bytes: int) -> bytes:
    """Left-align a packed value within one FIFO element, then swap byte order."""
    shift = element_bytes * 8 - value_bits
    if shift < 0:
        raise ValueError(f"{value_bits}-bit value does not fit in a {element_bytes}-byte element")
    return swap_stream_endianness(_shift_left(data, shift, element_bytes), element_bytes)


def unswap_and_align_for_stream_read(data: bytes, value_bits: int, element_bytes: int) -> bytes:
    """Undo the byte swap of one FIFO element, then right-align its value."""
    shift = element_bytes * 8 - value_bits
    if shift < 0:
        raise ValueError(f"{value_bits}-bit value does not fit in a {element_bytes}-byte element")
    swapped = swap_stream_endianness(data[:element_bytes], element_bytes)
    return _shift_right(swapped, shift, (value_bits + 7) // 8)


def bytes_to_words(data: bytes) -> list[int]:
    """Split a buffer into little-endian 32-bit words."""
    if len(data) % 4:
        raise ValueError(f"Buffer length {len(data)} is not a multiple of 4")
    return list(struct.unpack(f"<{len(data) // 4}I", data))


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Join 32-bit words into a little-endian buffer."""
    return struct.pack(f"<{len(words)}I", *words)
