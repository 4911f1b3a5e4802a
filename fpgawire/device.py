"""Typed register and FIFO access over an FPGA transport."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol

from .bitfile.builder import Bitfile, FifoDefinition, RegisterDefinition
from .bitfile.sizes import register_word_count
from .codec.serialization import (
    coerce_primitive,
    pack_fifo_elements,
    pack_register_words,
    unpack_fifo_elements,
    unpack_register_words,
)
from .codec.types import Opaque, Primitive, PrimitiveKind, TypeDescriptor

logger = logging.getLogger(__name__)

# Set on a register offset when the access may time out
REGISTER_TIMEOUT_FLAG = 0x80000000


class AccessError(RuntimeError):
    """Raised when a register or FIFO cannot be accessed as requested."""


class ResourceNotFoundError(AccessError):
    """Raised when a register or FIFO name is not in the bitfile."""


class TypeMismatchError(AccessError):
    """Raised when a handle is requested as a type it does not have."""


class Transport(Protocol):
    """Raw access to an open FPGA session.

    Implementations wrap the vendor driver and own the session, its
    timeouts and its status codes. Scalar registers and FIFOs of primitive
    type are transferred as native values; everything else travels as
    32-bit register words or as raw FIFO element bytes.
    """

    def read_register(self, offset: int, kind: PrimitiveKind) -> bool | int | float: ...

    def write_register(self, offset: int, kind: PrimitiveKind, value: bool | int | float) -> None: ...

    def read_register_words(self, offset: int, count: int) -> Sequence[int]: ...

    def write_register_words(self, offset: int, words: Sequence[int]) -> None: ...

    def read_fifo(
        self, number: int, kind: PrimitiveKind, count: int, timeout_ms: int
    ) -> tuple[Sequence[Any], int]: ...

    def write_fifo(
        self, number: int, kind: PrimitiveKind, values: Sequence[Any], timeout_ms: int
    ) -> int: ...

    def read_fifo_composite(
        self, number: int, element_bytes: int, count: int, timeout_ms: int
    ) -> tuple[bytes, int]: ...

    def write_fifo_composite(
        self, number: int, data: bytes, element_bytes: int, count: int, timeout_ms: int
    ) -> int: ...


@dataclass(frozen=True)
class FifoReadResult:
    """Elements read from a FIFO and the number still waiting."""

    data: list[Any]
    elements_remaining: int


class Register:
    """A control or indicator register."""

    def __init__(self, transport: Transport, definition: RegisterDefinition) -> None:
        self._transport = transport
        self.definition = definition
        self.offset = definition.offset
        if definition.access_may_timeout:
            self.offset |= REGISTER_TIMEOUT_FLAG

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def descriptor(self) -> TypeDescriptor:
        return self.definition.descriptor

    def read(self) -> Any:
        """Read the current value of the register."""
        descriptor = self.descriptor
        if isinstance(descriptor, Primitive):
            return self._transport.read_register(self.offset, descriptor.kind)
        if isinstance(descriptor, Opaque):
            return ""

        words = self._transport.read_register_words(self.offset, register_word_count(descriptor))
        return unpack_register_words(descriptor, words)

    def write(self, value: Any) -> None:
        """Write a value to the register."""
        descriptor = self.descriptor
        if isinstance(descriptor, Primitive):
            self._transport.write_register(
                self.offset, descriptor.kind, coerce_primitive(descriptor, value)
            )
            return
        if isinstance(descriptor, Opaque):
            return

        words = pack_register_words(descriptor, value)
        logger.debug("Writing %s to register '%s'", [f"{w:#010x}" for w in words], self.name)
        self._transport.write_register_words(self.offset, words)


class Fifo:
    """A DMA FIFO."""

    def __init__(self, transport: Transport, definition: FifoDefinition) -> None:
        self._transport = transport
        self.definition = definition

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def number(self) -> int:
        return self.definition.number

    @property
    def descriptor(self) -> TypeDescriptor:
        return self.definition.descriptor

    def read(self, count: int, timeout_ms: int = 0) -> FifoReadResult:
        """Read count elements from the FIFO."""
        descriptor = self.descriptor
        if isinstance(descriptor, Primitive):
            data, remaining = self._transport.read_fifo(
                self.number, descriptor.kind, count, timeout_ms
            )
            return FifoReadResult(list(data), remaining)

        element_bytes = self.definition.transfer_size_bytes
        raw, remaining = self._transport.read_fifo_composite(
            self.number, element_bytes, count, timeout_ms
        )
        return FifoReadResult(unpack_fifo_elements(descriptor, raw, element_bytes), remaining)

    def write(self, values: Sequence[Any], timeout_ms: int = 0) -> int:
        """Write values to the FIFO.

        Returns:
            The number of empty elements remaining in the FIFO.
        """
        descriptor = self.descriptor
        if isinstance(descriptor, Primitive):
            native = [coerce_primitive(descriptor, value) for value in values]
            return self._transport.write_fifo(self.number, descriptor.kind, native, timeout_ms)

        element_bytes = self.definition.transfer_size_bytes
        data = pack_fifo_elements(descriptor, values, element_bytes)
        logger.debug("Writing %d elements to FIFO '%s'", len(values), self.name)
        return self._transport.write_fifo_composite(
            self.number, data, element_bytes, len(values), timeout_ms
        )


def _check_expected(kind: str, name: str, descriptor: TypeDescriptor, expected: Any) -> None:
    if expected is None:
        return
    if isinstance(expected, type):
        matches = expected is descriptor.host_type
        requested = expected.__name__
    else:
        matches = expected == descriptor
        requested = str(expected)
    if not matches:
        raise TypeMismatchError(
            f"{kind} '{name}' is of type {descriptor} ({descriptor.host_type.__name__}), "
            f"but was requested as {requested}"
        )


class Device:
    """Typed access to the registers and FIFOs of a bitfile.

    Every handle is created once, up front. Lookups never change state, so a
    Device can be shared between threads whenever its transport can.

    Example:
        device = Device(load_bitfile("accelerator.lvbitx"), transport)
        gain = device.register("Gain", FxpValue)
        gain.write(FxpValue(Decimal("1.5")))
        samples = device.fifo("Samples").read(128).data
    """

    def __init__(self, bitfile: Bitfile, transport: Transport) -> None:
        self.bitfile = bitfile
        self._registers = MappingProxyType(
            {name: Register(transport, d) for name, d in bitfile.registers.items()}
        )
        self._fifos = MappingProxyType(
            {name: Fifo(transport, d) for name, d in bitfile.fifos.items()}
        )

    @property
    def registers(self) -> Mapping[str, Register]:
        return self._registers

    @property
    def fifos(self) -> Mapping[str, Fifo]:
        return self._fifos

    def register(self, name: str, expected: Any = None) -> Register:
        """Look up a register, optionally checking its type.

        Args:
            name: The register name from the bitfile.
            expected: A host type (int, FxpValue, dict...) or a descriptor.

        Raises:
            ResourceNotFoundError: if the bitfile has no such register.
            TypeMismatchError: if the register's type does not match expected.
        """
        try:
            handle = self._registers[name]
        except KeyError:
            raise ResourceNotFoundError(f"Register '{name}' not found in bitfile") from None
        _check_expected("Register", name, handle.descriptor, expected)
        return handle

    def fifo(self, name: str, expected: Any = None) -> Fifo:
        """Look up a FIFO, optionally checking its element type."""
        try:
            handle = self._fifos[name]
        except KeyError:
            raise ResourceNotFoundError(f"FIFO '{name}' not found in bitfile") from None
        _check_expected("FIFO", name, handle.descriptor, expected)
        return handle
