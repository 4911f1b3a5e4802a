"""Transfer size and layout calculation for registers and FIFOs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dataclasses_json import DataClassJsonMixin

from ..codec.alignment import REGISTER_WORD_BITS, unit_count
from ..codec.types import FixedPoint, TypeDescriptor, is_composite

if TYPE_CHECKING:
    from .builder import Bitfile, FifoDefinition, RegisterDefinition

# FIFOs of fixed-point type travel as U64 unless the bitfile says otherwise
DEFAULT_FXP_TRANSFER_SIZE = 8


def register_word_count(descriptor: TypeDescriptor) -> int:
    """Number of 32-bit words that carry a register value."""
    return unit_count(descriptor.bit_width, REGISTER_WORD_BITS)


def infer_transfer_size(descriptor: TypeDescriptor, declared: int | None = None) -> int:
    """Bytes per FIFO element: the declared size, else derived from the type."""
    if declared is not None:
        return declared
    if isinstance(descriptor, FixedPoint):
        return DEFAULT_FXP_TRANSFER_SIZE
    return (descriptor.bit_width + 7) // 8


@dataclass(frozen=True)
class RegisterLayout(DataClassJsonMixin):
    """How a register value is carried in 32-bit words.

    shift is the left shift applied on write (and undone on read); it is
    zero for scalar registers, which are transferred directly.
    """

    name: str
    offset: int
    type: str
    bits: int
    words: int
    shift: int
    composite: bool
    indicator: bool


@dataclass(frozen=True)
class FifoLayout(DataClassJsonMixin):
    """How a FIFO value is carried in one DMA element."""

    name: str
    number: int
    type: str
    bits: int
    element_bytes: int
    shift: int
    swapped: bool


@dataclass(frozen=True)
class BitfileLayout(DataClassJsonMixin):
    """Layout information for every register and FIFO of a bitfile."""

    signature: str
    base_address: int
    registers: list[RegisterLayout]
    fifos: list[FifoLayout]


def register_layout(definition: RegisterDefinition) -> RegisterLayout:
    descriptor = definition.descriptor
    words = register_word_count(descriptor)
    composite = is_composite(descriptor)
    return RegisterLayout(
        name=definition.name,
        offset=definition.offset,
        type=str(descriptor),
        bits=descriptor.bit_width,
        words=words,
        shift=words * REGISTER_WORD_BITS - descriptor.bit_width if composite else 0,
        composite=composite,
        indicator=definition.indicator,
    )


def fifo_layout(definition: FifoDefinition) -> FifoLayout:
    descriptor = definition.descriptor
    element_bytes = definition.transfer_size_bytes
    composite = is_composite(descriptor)
    return FifoLayout(
        name=definition.name,
        number=definition.number,
        type=str(descriptor),
        bits=descriptor.bit_width,
        element_bytes=element_bytes,
        shift=element_bytes * 8 - descriptor.bit_width if composite else 0,
        swapped=composite and element_bytes > 2,
    )


def calculate_layout(bitfile: Bitfile) -> BitfileLayout:
    """Calculate layout information for a whole bitfile."""
    return BitfileLayout(
        signature=bitfile.signature,
        base_address=bitfile.base_address,
        registers=[register_layout(r) for r in bitfile.registers.values()],
        fifos=[fifo_layout(f) for f in bitfile.fifos.values()],
    )
