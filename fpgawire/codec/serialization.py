"""Serialization and deserialization of host values for FPGA types."""

import logging
import numbers
import operator
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from fractions import Fraction
from typing import Any, assert_never

from .alignment import (
    align_and_swap_for_stream_write,
    align_for_register_read,
    align_for_register_write,
    bytes_to_words,
    unit_count,
    unswap_and_align_for_stream_read,
    words_to_bytes,
)
from .bits import BitReader, BitWriter
from .types import (
    Array,
    Cluster,
    FixedPoint,
    FxpOverflowValue,
    FxpValue,
    Opaque,
    Primitive,
    PrimitiveKind,
    TypeDescriptor,
    is_composite,
    to_decimal,
)

logger = logging.getLogger(__name__)


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class MissingFieldError(SerializationError):
    """Raised when a cluster value lacks one of its named fields."""


class ArrayLengthMismatchError(SerializationError):
    """Raised when an array value has the wrong number of elements."""


def _with_context(error: SerializationError, context: str) -> SerializationError:
    return type(error)(f"{context}: {error}")


def coerce_primitive(descriptor: Primitive, value: Any) -> bool | int | float:
    """Validate a host value for a scalar type and convert it to bool, int or float."""
    if descriptor.kind == PrimitiveKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        try:
            flag = operator.index(value)
        except TypeError:
            raise SerializationError(
                f"{descriptor} expects a bool, got {type(value).__name__}"
            ) from None
        if flag not in (0, 1):
            raise SerializationError(f"{flag} is not a valid {descriptor} value")
        return bool(flag)

    if descriptor.is_float:
        if not isinstance(value, (numbers.Real, Decimal)):
            raise SerializationError(
                f"{descriptor} expects a real number, got {type(value).__name__}"
            )
        return float(value)

    try:
        number = operator.index(value)
    except TypeError:
        raise SerializationError(
            f"{descriptor} expects an integer, got {type(value).__name__}"
        ) from None

    if not descriptor.minimum <= number <= descriptor.maximum:
        raise SerializationError(
            f"{number} is out of range for {descriptor} "
            f"[{descriptor.minimum}, {descriptor.maximum}]"
        )
    return number


def coerce_fixed_point(descriptor: FixedPoint, value: Any) -> tuple[bool, Fraction]:
    """Split a host value into (overflow, exact value), clamped to the type's range.

    Accepts FxpValue, FxpOverflowValue or a bare real number; a bare number
    carries no overflow status.
    """
    overflow = False
    if isinstance(value, FxpOverflowValue):
        overflow, value = value.overflow, value.value
    elif isinstance(value, FxpValue):
        value = value.value

    if isinstance(value, str) or not isinstance(value, (numbers.Real, Decimal)):
        raise SerializationError(f"{descriptor} expects a real number, got {type(value).__name__}")
    try:
        exact = Fraction(value)
    except (ValueError, OverflowError) as e:
        raise SerializationError(f"{descriptor} cannot represent {value!r}") from e

    clamped = min(max(exact, descriptor.minimum), descriptor.maximum)
    if clamped != exact:
        logger.debug("Coerced %s to %s to fit %s", value, to_decimal(clamped), descriptor)
    return bool(overflow), clamped


def pack_into(descriptor: TypeDescriptor, value: Any, writer: BitWriter) -> None:
    """Pack a host value into an existing writer."""
    if isinstance(descriptor, Primitive):
        number = coerce_primitive(descriptor, value)
        if descriptor.kind == PrimitiveKind.BOOLEAN:
            writer.write_bool(bool(number))
        elif descriptor.is_float:
            try:
                if descriptor.bit_width == 32:
                    writer.write_float32(number)
                else:
                    writer.write_float64(number)
            except OverflowError as e:
                raise SerializationError(f"{number} is out of range for {descriptor}") from e
        elif descriptor.signed:
            writer.write_int(int(number), descriptor.bit_width)
        else:
            writer.write_uint(int(number), descriptor.bit_width)

    elif isinstance(descriptor, FixedPoint):
        overflow, exact = coerce_fixed_point(descriptor, value)
        if descriptor.has_overflow_flag:
            writer.write_bool(overflow)
        writer.write_fixed_point(
            exact, descriptor.word_length, descriptor.signed, descriptor.delta
        )

    elif isinstance(descriptor, Array):
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise SerializationError(f"{descriptor} expects a sequence, got {type(value).__name__}")
        if len(value) != descriptor.count:
            raise ArrayLengthMismatchError(
                f"Array length mismatch for {descriptor}: expected {descriptor.count}, "
                f"got {len(value)}"
            )
        # The first element occupies the most significant bits, so it is written last
        for index in range(descriptor.count - 1, -1, -1):
            try:
                pack_into(descriptor.element, value[index], writer)
            except SerializationError as e:
                raise _with_context(e, f"element {index}") from e

    elif isinstance(descriptor, Cluster):
        if not isinstance(value, Mapping):
            raise SerializationError(f"Cluster expects a mapping, got {type(value).__name__}")
        for member in descriptor.fields:
            if not member.is_host_facing:
                writer.write_uint(0, member.type.bit_width)
                continue
            if member.name not in value:
                raise MissingFieldError(f"Cluster value is missing field '{member.name}'")
            try:
                pack_into(member.type, value[member.name], writer)
            except SerializationError as e:
                raise _with_context(e, f"field '{member.name}'") from e

    elif isinstance(descriptor, Opaque):
        pass

    else:
        assert_never(descriptor)


def unpack_from(descriptor: TypeDescriptor, reader: BitReader) -> Any:
    """Unpack one host value from an existing reader."""
    if isinstance(descriptor, Primitive):
        if descriptor.kind == PrimitiveKind.BOOLEAN:
            return reader.read_bool()
        if descriptor.is_float:
            return reader.read_float32() if descriptor.bit_width == 32 else reader.read_float64()
        if descriptor.signed:
            return reader.read_int(descriptor.bit_width)
        return reader.read_uint(descriptor.bit_width)

    if isinstance(descriptor, FixedPoint):
        overflow = reader.read_bool() if descriptor.has_overflow_flag else False
        value = to_decimal(
            reader.read_fixed_point(descriptor.word_length, descriptor.signed, descriptor.delta)
        )
        if descriptor.has_overflow_flag:
            return FxpOverflowValue(overflow, value)
        return FxpValue(value)

    if isinstance(descriptor, Array):
        items = [unpack_from(descriptor.element, reader) for _ in range(descriptor.count)]
        items.reverse()
        return items

    if isinstance(descriptor, Cluster):
        result: dict[str, Any] = {}
        for member in descriptor.fields:
            if member.is_host_facing:
                result[member.name] = unpack_from(member.type, reader)
            else:
                reader.read_uint(member.type.bit_width)
        return result

    if isinstance(descriptor, Opaque):
        return ""

    assert_never(descriptor)


def pack(descriptor: TypeDescriptor, value: Any) -> bytes:
    """Pack a host value into ceil(bit_width / 8) bytes, LSB-first."""
    writer = BitWriter()
    pack_into(descriptor, value, writer)
    return writer.getvalue()


def unpack(descriptor: TypeDescriptor, data: bytes | bytearray | memoryview) -> Any:
    """Unpack a host value from an LSB-first buffer."""
    return unpack_from(descriptor, BitReader(data))


def pack_register_words(descriptor: TypeDescriptor, value: Any) -> list[int]:
    """Pack a value into the 32-bit words of a composite register."""
    data = align_for_register_write(pack(descriptor, value), descriptor.bit_width)
    return bytes_to_words(data)


def unpack_register_words(descriptor: TypeDescriptor, words: Sequence[int]) -> Any:
    """Unpack a value from the 32-bit words of a composite register."""
    expected = unit_count(descriptor.bit_width)
    if len(words) != expected:
        raise SerializationError(
            f"{descriptor} is carried in {expected} register words, got {len(words)}"
        )
    data = align_for_register_read(words_to_bytes(words), descriptor.bit_width)
    return unpack(descriptor, data)


def _check_element_bytes(element_bytes: int) -> None:
    if element_bytes < 1:
        raise SerializationError(f"FIFO element size must be positive, got {element_bytes}")


def pack_fifo_element(descriptor: TypeDescriptor, value: Any, element_bytes: int) -> bytes:
    """Pack a value into one FIFO element of element_bytes bytes."""
    _check_element_bytes(element_bytes)
    data = pack(descriptor, value)
    if is_composite(descriptor):
        return align_and_swap_for_stream_write(data, descriptor.bit_width, element_bytes)

    if len(data) > element_bytes:
        raise SerializationError(f"{descriptor} does not fit in a {element_bytes}-byte element")
    return data.ljust(element_bytes, b"\x00")


def pack_fifo_elements(
    descriptor: TypeDescriptor, values: Iterable[Any], element_bytes: int
) -> bytes:
    """Pack values into a contiguous buffer of FIFO elements."""
    buffer = bytearray()
    for index, value in enumerate(values):
        try:
            buffer.extend(pack_fifo_element(descriptor, value, element_bytes))
        except SerializationError as e:
            raise _with_context(e, f"FIFO element {index}") from e
    return bytes(buffer)


def unpack_fifo_elements(
    descriptor: TypeDescriptor, data: bytes | bytearray | memoryview, element_bytes: int
) -> list[Any]:
    """Unpack every element of a contiguous FIFO buffer."""
    _check_element_bytes(element_bytes)
    if len(data) % element_bytes:
        raise SerializationError(
            f"Buffer length {len(data)} is not a multiple of the {element_bytes}-byte element size"
        )

    data = bytes(data)
    values = []
    for start in range(0, len(data), element_bytes):
        element = data[start : start + element_bytes]
        if is_composite(descriptor):
            element = unswap_and_align_for_stream_read(element, descriptor.bit_width, element_bytes)
        values.append(unpack(descriptor, element))
    return values
