"""Build type descriptors and register/FIFO tables from bitfile documents.

A definition whose type cannot be built is logged and left out; the rest of
the bitfile is still usable.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..codec.types import (
    Array,
    Cluster,
    ClusterField,
    DescriptorError,
    DuplicateFieldError,
    FixedPoint,
    Opaque,
    Primitive,
    PrimitiveKind,
    TypeDescriptor,
    UnsupportedTypeError,
)
from .lvbitx import read_bitfile
from .sizes import infer_transfer_size
from .types import BitfileDocument, TypeNode

logger = logging.getLogger(__name__)

# Enums travel as their underlying integer
PRIMITIVE_TAGS: dict[str, PrimitiveKind] = {kind.value: kind for kind in PrimitiveKind} | {
    "EnumU8": PrimitiveKind.U8,
    "EnumI8": PrimitiveKind.I8,
    "EnumU16": PrimitiveKind.U16,
    "EnumI16": PrimitiveKind.I16,
    "EnumU32": PrimitiveKind.U32,
    "EnumI32": PrimitiveKind.I32,
}


@dataclass(frozen=True)
class RegisterDefinition:
    """A control or indicator register with its resolved type."""

    name: str
    offset: int
    descriptor: TypeDescriptor
    indicator: bool = False
    access_may_timeout: bool = False


@dataclass(frozen=True)
class FifoDefinition:
    """A DMA FIFO with its resolved element type and element size."""

    name: str
    number: int
    descriptor: TypeDescriptor
    transfer_size_bytes: int


@dataclass(frozen=True)
class Bitfile:
    """Read-only register and FIFO tables of a bitfile."""

    signature: str
    base_address: int
    registers: Mapping[str, RegisterDefinition]
    fifos: Mapping[str, FifoDefinition]


def _attribute(node: TypeNode, key: str) -> str:
    if key not in node.attributes:
        raise DescriptorError(f"{node.tag} is missing {key}")
    return node.attributes[key]


def _attribute_int(node: TypeNode, key: str) -> int:
    text = _attribute(node, key)
    try:
        return int(text)
    except ValueError:
        raise DescriptorError(f"{node.tag} {key} is not an integer: {text!r}") from None


def _attribute_flag(node: TypeNode, key: str) -> bool:
    return node.attributes.get(key, "").lower() == "true"


def build_type(node: TypeNode) -> TypeDescriptor:
    """Build a descriptor from a type tree, depth first.

    Raises:
        UnsupportedTypeError: for complex fixed point and unknown tags.
        DuplicateFieldError: when a cluster repeats a field name.
        DescriptorError: for malformed nodes.
    """
    tag = node.tag

    if tag in PRIMITIVE_TAGS:
        return Primitive(PRIMITIVE_TAGS[tag])

    if tag == "FXP":
        return FixedPoint(
            signed=_attribute_flag(node, "Signed"),
            word_length=_attribute_int(node, "WordLength"),
            integer_word_length=_attribute_int(node, "IntegerWordLength"),
            has_overflow_flag=_attribute_flag(node, "IncludeOverflowStatus"),
        )

    if tag == "Array":
        if len(node.children) != 1:
            raise DescriptorError(
                f"Array '{node.name}' needs exactly one element type, got {len(node.children)}"
            )
        return Array(build_type(node.children[0]), _attribute_int(node, "Size"))

    if tag == "Cluster":
        fields = tuple(ClusterField(child.name, build_type(child)) for child in node.children)
        try:
            return Cluster(fields)
        except DuplicateFieldError as e:
            raise DuplicateFieldError(f"Cluster '{node.name}': {e}") from e

    if tag == "String":
        return Opaque()

    if tag == "CFXP":
        raise UnsupportedTypeError("Complex fixed point (CFXP) is not supported")

    raise UnsupportedTypeError(f"Unknown data type tag: {tag}")


def _try_build(kind: str, name: str, node: TypeNode) -> TypeDescriptor | None:
    try:
        return build_type(node)
    except DescriptorError as e:
        logger.warning("Skipping %s '%s': %s", kind, name, e)
        return None


def build_types(nodes: Mapping[str, TypeNode]) -> dict[str, TypeDescriptor]:
    """Build a descriptor for every named type tree, leaving out the ones that fail."""
    descriptors = {}
    for name, node in nodes.items():
        descriptor = _try_build("type", name, node)
        if descriptor is not None:
            descriptors[name] = descriptor
    return descriptors


def build_bitfile(document: BitfileDocument) -> Bitfile:
    """Resolve every register and FIFO of a document.

    Internal registers are skipped; when a name repeats, the first entry wins.
    """
    registers: dict[str, RegisterDefinition] = {}
    for node in document.registers:
        if node.internal or node.name in registers:
            continue
        descriptor = _try_build("register", node.name, node.datatype)
        if descriptor is None:
            continue
        registers[node.name] = RegisterDefinition(
            name=node.name,
            offset=node.offset,
            descriptor=descriptor,
            indicator=node.indicator,
            access_may_timeout=node.access_may_timeout,
        )

    fifos: dict[str, FifoDefinition] = {}
    for channel in document.channels:
        if channel.name in fifos:
            continue
        descriptor = _try_build("FIFO", channel.name, channel.datatype)
        if descriptor is None:
            continue
        transfer_size = infer_transfer_size(descriptor, channel.transfer_size_bytes)
        if transfer_size < 1:
            logger.warning("Skipping FIFO '%s': %s has no element data", channel.name, descriptor)
            continue
        fifos[channel.name] = FifoDefinition(
            name=channel.name,
            number=channel.number,
            descriptor=descriptor,
            transfer_size_bytes=transfer_size,
        )

    logger.debug("Built %d registers and %d FIFOs", len(registers), len(fifos))
    return Bitfile(
        signature=document.signature,
        base_address=document.base_address,
        registers=MappingProxyType(registers),
        fifos=MappingProxyType(fifos),
    )


def load_bitfile(path: str | os.PathLike[str]) -> Bitfile:
    """Read a bitfile from disk and resolve its registers and FIFOs."""
    return build_bitfile(read_bitfile(path))
