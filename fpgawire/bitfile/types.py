"""Type-tree and document node definitions read from bitfiles."""

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin


@dataclass
class TypeNode(DataClassJsonMixin):
    """Represents one node of a hardware type tree.

    The tag is the bitfile element name (``U8``, ``FXP``, ``Cluster``...).
    Scalar settings such as ``WordLength`` or ``Size`` are kept as strings in
    attributes; element types of arrays and members of clusters are children.
    """

    tag: str
    name: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["TypeNode"] = field(default_factory=list)


@dataclass
class RegisterNode(DataClassJsonMixin):
    """Represents a register (control or indicator) entry."""

    name: str
    offset: int
    datatype: TypeNode
    indicator: bool
    internal: bool
    access_may_timeout: bool


@dataclass
class ChannelNode(DataClassJsonMixin):
    """Represents a DMA channel (FIFO) entry.

    transfer_size_bytes is None when the bitfile does not declare it.
    """

    name: str
    number: int
    datatype: TypeNode
    transfer_size_bytes: int | None


@dataclass
class BitfileDocument(DataClassJsonMixin):
    """Represents the parts of a bitfile the codec needs."""

    signature: str
    base_address: int
    registers: list[RegisterNode]
    channels: list[ChannelNode]
