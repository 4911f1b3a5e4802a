"""Runtime type descriptors for FPGA register and FIFO data.

These dataclasses describe the bit layout of hardware types. A descriptor
tree is built once from a bitfile and shared, read-only, by every register
and FIFO handle that uses it.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from fractions import Fraction


class DescriptorError(RuntimeError):
    """Raised when a type descriptor cannot be constructed."""


class UnsupportedTypeError(DescriptorError):
    """Raised for hardware type tags that have no descriptor."""


class DuplicateFieldError(DescriptorError):
    """Raised when a cluster declares the same field name twice."""


class PrimitiveKind(StrEnum):
    """Scalar kinds, named after their bitfile tags."""

    BOOLEAN = "Boolean"
    I8 = "I8"
    U8 = "U8"
    I16 = "I16"
    U16 = "U16"
    I32 = "I32"
    U32 = "U32"
    I64 = "I64"
    U64 = "U64"
    SGL = "SGL"
    DBL = "DBL"


# kind -> (bit width, signed, float)
PRIMITIVE_LAYOUTS: dict[PrimitiveKind, tuple[int, bool, bool]] = {
    PrimitiveKind.BOOLEAN: (1, False, False),
    PrimitiveKind.I8: (8, True, False),
    PrimitiveKind.U8: (8, False, False),
    PrimitiveKind.I16: (16, True, False),
    PrimitiveKind.U16: (16, False, False),
    PrimitiveKind.I32: (32, True, False),
    PrimitiveKind.U32: (32, False, False),
    PrimitiveKind.I64: (64, True, False),
    PrimitiveKind.U64: (64, False, False),
    PrimitiveKind.SGL: (32, True, True),
    PrimitiveKind.DBL: (64, True, True),
}


@dataclass(frozen=True, slots=True)
class FxpValue:
    """A fixed-point value read from a type without an overflow bit."""

    value: Decimal

    def __float__(self) -> float:
        return float(self.value)


@dataclass(frozen=True, slots=True)
class FxpOverflowValue:
    """A fixed-point value together with its overflow status bit."""

    overflow: bool
    value: Decimal

    def __float__(self) -> float:
        return float(self.value)


def to_decimal(value: Fraction) -> Decimal:
    """Render a dyadic rational as an exact Decimal.

    Fixed-point scale factors are powers of two, so every value has a finite
    decimal expansion: n / 2**k == n * 5**k / 10**k.
    """
    k = value.denominator.bit_length() - 1
    if value.denominator != 1 << k:
        raise ValueError(f"{value} has no exact decimal representation")
    return Decimal(f"{value.numerator * 5**k}E-{k}")


@dataclass(frozen=True, slots=True)
class Primitive:
    """A boolean, integer or IEEE float scalar."""

    kind: PrimitiveKind
    bit_width: int = field(init=False)
    signed: bool = field(init=False)
    is_float: bool = field(init=False)

    def __post_init__(self) -> None:
        kind = PrimitiveKind(self.kind)
        bit_width, signed, is_float = PRIMITIVE_LAYOUTS[kind]
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "bit_width", bit_width)
        object.__setattr__(self, "signed", signed)
        object.__setattr__(self, "is_float", is_float)

    @property
    def host_type(self) -> type:
        if self.kind == PrimitiveKind.BOOLEAN:
            return bool
        return float if self.is_float else int

    @property
    def minimum(self) -> int:
        return -(1 << (self.bit_width - 1)) if self.signed else 0

    @property
    def maximum(self) -> int:
        return (1 << (self.bit_width - 1)) - 1 if self.signed else (1 << self.bit_width) - 1

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class FixedPoint:
    """A scaled integer with an optional leading overflow status bit.

    The represented value is ``raw * delta`` where
    ``delta = 2 ** (integer_word_length - word_length)``. Derived limits are
    exact rationals.
    """

    signed: bool
    word_length: int
    integer_word_length: int
    has_overflow_flag: bool = False
    delta: Fraction = field(init=False, repr=False)
    minimum: Fraction = field(init=False, repr=False)
    maximum: Fraction = field(init=False, repr=False)
    bit_width: int = field(init=False)

    def __post_init__(self) -> None:
        if self.word_length < 1:
            raise DescriptorError(f"FXP word length must be positive, got {self.word_length}")

        delta = Fraction(2) ** (self.integer_word_length - self.word_length)
        if self.signed:
            minimum = -(1 << (self.word_length - 1)) * delta
            maximum = ((1 << (self.word_length - 1)) - 1) * delta
        else:
            minimum = Fraction(0)
            maximum = ((1 << self.word_length) - 1) * delta

        object.__setattr__(self, "delta", delta)
        object.__setattr__(self, "minimum", minimum)
        object.__setattr__(self, "maximum", maximum)
        object.__setattr__(self, "bit_width", self.word_length + int(self.has_overflow_flag))

    @property
    def host_type(self) -> type:
        return FxpOverflowValue if self.has_overflow_flag else FxpValue

    def __str__(self) -> str:
        sign = "s" if self.signed else "u"
        overflow = ",overflow" if self.has_overflow_flag else ""
        return f"FXP<{sign},{self.word_length},{self.integer_word_length}{overflow}>"


@dataclass(frozen=True, slots=True)
class Array:
    """A fixed number of elements of one type."""

    element: "TypeDescriptor"
    count: int
    bit_width: int = field(init=False)

    def __post_init__(self) -> None:
        if self.count < 0:
            raise DescriptorError(f"Array size must not be negative, got {self.count}")
        object.__setattr__(self, "bit_width", self.element.bit_width * self.count)

    @property
    def host_type(self) -> type:
        return list

    def __str__(self) -> str:
        return f"Array<{self.element}>[{self.count}]"


@dataclass(frozen=True, slots=True)
class ClusterField:
    """A single, optionally named, member of a cluster."""

    name: str | None
    type: "TypeDescriptor"

    @property
    def is_host_facing(self) -> bool:
        """Whether the field appears in the host-side dict."""
        return bool(self.name) and not isinstance(self.type, Opaque)

    def __str__(self) -> str:
        if not self.name:
            return str(self.type)
        name = self.name if self.name.isidentifier() else json.dumps(self.name)
        return f"{name}: {self.type}"


@dataclass(frozen=True, slots=True)
class Cluster:
    """An ordered record of fields; the first field holds the lowest bits.

    Only fields with a name and a fixed-width type appear in the host dict.
    Unnamed fields and String fields, named or not, are left out: they are
    written as zero bits, skipped on read, and never clash on duplicate
    names. A cluster such as ``{status, code, source}`` therefore unpacks to
    ``{"status": ..., "code": ...}`` with no ``"source"`` key.
    """

    fields: tuple[ClusterField, ...]
    bit_width: int = field(init=False)

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        seen: set[str] = set()
        for member in fields:
            if not member.is_host_facing:
                continue
            if member.name in seen:
                raise DuplicateFieldError(f"Cluster contains duplicate field name '{member.name}'")
            seen.add(member.name)

        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "bit_width", sum(member.type.bit_width for member in fields))

    @property
    def host_fields(self) -> tuple[ClusterField, ...]:
        return tuple(member for member in self.fields if member.is_host_facing)

    @property
    def host_type(self) -> type:
        return dict

    def __str__(self) -> str:
        return "Cluster{" + ", ".join(str(member) for member in self.fields) + "}"


@dataclass(frozen=True, slots=True)
class Opaque:
    """A hardware type without a fixed-width binary form, such as a string.

    Occupies no bits; unpacks to an empty string.
    """

    bit_width: int = field(default=0, init=False)

    @property
    def host_type(self) -> type:
        return str

    def __str__(self) -> str:
        return "String"


TypeDescriptor = Primitive | FixedPoint | Array | Cluster | Opaque


def is_composite(descriptor: TypeDescriptor) -> bool:
    """Check if a type needs bit-level packing rather than a scalar transfer."""
    return isinstance(descriptor, (FixedPoint, Array, Cluster))
