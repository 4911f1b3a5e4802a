"""Tests for serialization"""

import struct
from decimal import Decimal

from pytest import raises

from fpgawire.codec.serialization import (
    ArrayLengthMismatchError,
    MissingFieldError,
    SerializationError,
    pack,
    pack_fifo_element,
    pack_fifo_elements,
    pack_register_words,
    unpack,
    unpack_fifo_elements,
    unpack_register_words,
)
from fpgawire.codec.types import (
    Array,
    Cluster,
    ClusterField,
    FixedPoint,
    FxpOverflowValue,
    FxpValue,
    Opaque,
    Primitive,
    PrimitiveKind,
)

BOOL = Primitive(PrimitiveKind.BOOLEAN)
I8 = Primitive(PrimitiveKind.I8)
U8 = Primitive(PrimitiveKind.U8)
I16 = Primitive(PrimitiveKind.I16)
I32 = Primitive(PrimitiveKind.I32)
SGL = Primitive(PrimitiveKind.SGL)
DBL = Primitive(PrimitiveKind.DBL)

PAIR = Cluster((ClusterField("a", U8), ClusterField("b", U8)))
STATUS = Cluster(
    (ClusterField("ok", BOOL), ClusterField("code", I32), ClusterField("source", Opaque()))
)


def describe_primitives():
    def packs_integers(expect):
        expect(pack(I8, -1)) == b"\xff"
        expect(pack(I16, 0x1234)) == b"\x34\x12"
        expect(pack(BOOL, True)) == b"\x01"

    def unpacks_signed_integers(expect):
        expect(unpack(I8, b"\x80")) == -128
        expect(unpack(I16, b"\xfe\xff")) == -2

    def packs_floats(expect):
        expect(pack(SGL, 1.5)) == struct.pack("<f", 1.5)
        expect(pack(DBL, Decimal("0.25"))) == struct.pack("<d", 0.25)
        expect(unpack(DBL, struct.pack("<d", -3.5))) == -3.5

    def rejects_out_of_range_integers(expect):
        with raises(SerializationError) as info:
            pack(I8, 200)

        expect(str(info.value)).includes("out of range")

    def rejects_non_integers():
        with raises(SerializationError):
            pack(U8, 1.5)
        with raises(SerializationError):
            pack(SGL, "1.5")

    def accepts_zero_and_one_as_booleans(expect):
        expect(pack(BOOL, 0)) == b"\x00"
        expect(pack(BOOL, 1)) == b"\x01"

    def rejects_other_boolean_values():
        with raises(SerializationError):
            pack(BOOL, "false")
        with raises(SerializationError):
            pack(BOOL, 2)
        with raises(SerializationError):
            pack(BOOL, None)

    def rejects_floats_too_large_for_single_precision():
        with raises(SerializationError):
            pack(SGL, 1e300)


def describe_fixed_point():
    def packs_exact_values(expect):
        fxp = FixedPoint(True, 16, 8)

        expect(pack(fxp, FxpValue(Decimal("1.5")))) == b"\x80\x01"
        expect(unpack(fxp, b"\x80\x01")) == FxpValue(Decimal("1.5"))

    def accepts_bare_numbers(expect):
        fxp = FixedPoint(True, 16, 8)

        expect(pack(fxp, 1.5)) == b"\x80\x01"
        expect(pack(fxp, Decimal("-0.5"))) == b"\x80\xff"

    def clamps_to_the_representable_range(expect):
        fxp = FixedPoint(False, 8, 8)

        expect(pack(fxp, 300)) == b"\xff"
        expect(pack(fxp, -5)) == b"\x00"
        expect(pack(FixedPoint(True, 8, 8), -1000)) == b"\x80"

    def reads_back_the_maximum_after_clamping(expect):
        fxp = FixedPoint(True, 16, 8)

        expect(unpack(fxp, pack(fxp, 1000))) == FxpValue(Decimal("127.99609375"))
        expect(unpack(fxp, pack(fxp, 1.0))) == FxpValue(Decimal(1))

    def rounds_to_the_nearest_step(expect):
        fxp = FixedPoint(False, 8, 7)

        expect(pack(fxp, Decimal("0.75"))) == b"\x02"
        expect(pack(fxp, Decimal("0.7"))) == b"\x01"

    def carries_the_overflow_bit_first(expect):
        fxp = FixedPoint(False, 8, 8, has_overflow_flag=True)

        expect(pack(fxp, FxpOverflowValue(True, Decimal(3)))) == b"\x07\x00"
        expect(unpack(fxp, b"\x07\x00")) == FxpOverflowValue(True, Decimal(3))
        expect(unpack(fxp, b"\x06\x00")) == FxpOverflowValue(False, Decimal(3))

    def rejects_non_numbers():
        with raises(SerializationError):
            pack(FixedPoint(True, 8, 8), "1.5")
        with raises(SerializationError):
            pack(FixedPoint(True, 8, 8), float("nan"))


def describe_arrays():
    def packs_the_first_element_into_the_high_bits(expect):
        expect(pack(Array(U8, 2), [0x11, 0x22])) == b"\x22\x11"

    def unpacks_in_host_order(expect):
        expect(unpack(Array(U8, 2), b"\x22\x11")) == [0x11, 0x22]

    def packs_sub_byte_elements(expect):
        expect(pack(Array(BOOL, 3), [True, False, False])) == b"\x04"
        expect(unpack(Array(BOOL, 3), b"\x04")) == [True, False, False]

    def rejects_the_wrong_length(expect):
        with raises(ArrayLengthMismatchError) as info:
            pack(Array(U8, 2), [1, 2, 3])

        expect(str(info.value)).includes("expected 2, got 3")

    def rejects_non_sequences():
        with raises(SerializationError):
            pack(Array(U8, 2), 12)


def describe_clusters():
    def packs_fields_in_declaration_order(expect):
        expect(pack(PAIR, {"a": 0x11, "b": 0x22})) == b"\x11\x22"
        expect(unpack(PAIR, b"\x11\x22")) == {"a": 0x11, "b": 0x22}

    def packs_mixed_widths(expect):
        cluster = Cluster((ClusterField("flag", BOOL), ClusterField("n", U8)))

        expect(pack(cluster, {"flag": True, "n": 3})) == b"\x07\x00"
        expect(unpack(cluster, b"\x07\x00")) == {"flag": True, "n": 3}

    def reads_floats_between_other_fields(expect):
        cluster = Cluster((ClusterField("x", SGL), ClusterField("y", U8)))
        value = {"x": 1.5, "y": 7}

        expect(unpack(cluster, pack(cluster, value))) == value

    def skips_opaque_and_unnamed_fields(expect):
        cluster = Cluster(
            (ClusterField("a", U8), ClusterField(None, U8), ClusterField("s", Opaque()))
        )

        expect(pack(cluster, {"a": 5})) == b"\x05\x00"
        expect(unpack(cluster, b"\x05\x09")) == {"a": 5}

    def leaves_named_strings_out_of_the_host_dict(expect):
        value = unpack(STATUS, pack(STATUS, {"ok": True, "code": 7, "source": "ignored"}))

        expect(value) == {"ok": True, "code": 7}
        expect([member.name for member in STATUS.host_fields]) == ["ok", "code"]

    def ignores_extra_keys(expect):
        expect(pack(PAIR, {"a": 1, "b": 2, "c": 3})) == b"\x01\x02"

    def rejects_missing_fields(expect):
        with raises(MissingFieldError) as info:
            pack(PAIR, {"a": 1})

        expect(str(info.value)).includes("'b'")

    def names_the_failing_path(expect):
        cluster = Cluster((ClusterField("a", Array(U8, 2)),))

        with raises(SerializationError) as info:
            pack(cluster, {"a": [1, 300]})

        expect(str(info.value)).includes("field 'a': element 1:")

    def keeps_the_error_type_when_nested():
        cluster = Cluster((ClusterField("a", Array(U8, 2)),))

        with raises(ArrayLengthMismatchError):
            pack(cluster, {"a": [1]})


def describe_register_words():
    def left_aligns_a_12_bit_value(expect):
        fxp = FixedPoint(False, 12, 4)

        expect(pack_register_words(fxp, FxpValue(Decimal(1)))) == [0x100 << 20]
        expect(unpack_register_words(fxp, [0x10000000])) == FxpValue(Decimal(1))

    def carries_arrays_in_the_high_bits(expect):
        expect(pack_register_words(Array(U8, 2), [0x11, 0x22])) == [0x11220000]

    def spreads_wide_clusters_over_several_words(expect):
        words = pack_register_words(STATUS, {"ok": True, "code": -1})

        expect(words) == [0x80000000, 0xFFFFFFFF]
        expect(unpack_register_words(STATUS, words)) == {"ok": True, "code": -1}

    def rejects_the_wrong_word_count():
        with raises(SerializationError):
            unpack_register_words(STATUS, [0])


def describe_fifo_elements():
    def swaps_composite_elements(expect):
        data = pack_fifo_elements(PAIR, [{"a": 0x11, "b": 0x22}, {"a": 1, "b": 2}], 4)

        expect(data) == b"\x22\x11\x00\x00\x02\x01\x00\x00"
        expect(unpack_fifo_elements(PAIR, data, 4)) == [
            {"a": 0x11, "b": 0x22},
            {"a": 1, "b": 2},
        ]

    def left_aligns_fixed_point_in_eight_bytes(expect):
        data = pack_fifo_element(FixedPoint(True, 16, 8), Decimal("1.5"), 8)

        expect(data) == b"\x00\x00\x00\x00\x01\x80\x00\x00"

    def does_not_swap_two_byte_elements(expect):
        expect(pack_fifo_element(Array(U8, 2), [0x11, 0x22], 2)) == b"\x22\x11"

    def stores_primitives_little_endian(expect):
        expect(pack_fifo_elements(I16, [-2, 1], 2)) == b"\xfe\xff\x01\x00"
        expect(pack_fifo_element(U8, 5, 4)) == b"\x05\x00\x00\x00"
        expect(unpack_fifo_elements(U8, b"\x05\x00\x00\x00", 4)) == [5]

    def names_the_failing_element(expect):
        with raises(SerializationError) as info:
            pack_fifo_elements(U8, [1, 256], 1)

        expect(str(info.value)).includes("FIFO element 1")

    def rejects_partial_elements():
        with raises(SerializationError):
            unpack_fifo_elements(PAIR, b"\x00\x00\x00", 4)

    def rejects_empty_elements():
        empty = Cluster((ClusterField("s", Opaque()),))

        with raises(SerializationError):
            unpack_fifo_elements(empty, b"", 0)
        with raises(SerializationError):
            pack_fifo_elements(empty, [{}], 0)
