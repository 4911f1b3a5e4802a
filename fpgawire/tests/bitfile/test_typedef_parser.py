"""Tests for the type notation parser"""

from pytest import raises

from fpgawire.bitfile.parser import TypeSyntaxError, parse_descriptor, parse_type
from fpgawire.bitfile.types import TypeNode
from fpgawire.codec.types import (
    Array,
    Cluster,
    ClusterField,
    DuplicateFieldError,
    FixedPoint,
    Opaque,
    Primitive,
    PrimitiveKind,
    UnsupportedTypeError,
)

U8 = Primitive(PrimitiveKind.U8)
I32 = Primitive(PrimitiveKind.I32)


def describe_parse_type():
    def parses_leaf_tags(expect):
        expect(parse_type("U8")) == TypeNode(tag="U8")

    def parses_fxp_attributes(expect):
        node = parse_type("FXP<u, 12, -4, overflow>")

        expect(node.tag) == "FXP"
        expect(node.attributes) == {
            "Signed": "false",
            "WordLength": "12",
            "IntegerWordLength": "-4",
            "IncludeOverflowStatus": "true",
        }

    def names_cluster_members(expect):
        node = parse_type('Cluster{a: U8, String, "x y": I32}')

        expect([child.name for child in node.children]) == ["a", None, "x y"]
        expect([child.tag for child in node.children]) == ["U8", "String", "I32"]

    def rejects_malformed_notation():
        with raises(TypeSyntaxError):
            parse_type("Array<U8>")
        with raises(TypeSyntaxError):
            parse_type("FXP<x,8,8>")
        with raises(TypeSyntaxError):
            parse_type("Cluster{a: }")


def describe_parse_descriptor():
    def builds_primitives(expect):
        expect(parse_descriptor("Boolean")) == Primitive(PrimitiveKind.BOOLEAN)
        expect(parse_descriptor("EnumU16")) == Primitive(PrimitiveKind.U16)

    def builds_fixed_point(expect):
        expect(parse_descriptor("FXP<s,16,8>")) == FixedPoint(True, 16, 8)
        expect(parse_descriptor("FXP<u,12,-4,overflow>")) == FixedPoint(False, 12, -4, True)

    def builds_nested_types(expect):
        descriptor = parse_descriptor('Cluster{a: Array<U8>[4], String, "x y": I32}')

        expect(descriptor) == Cluster(
            (
                ClusterField("a", Array(U8, 4)),
                ClusterField(None, Opaque()),
                ClusterField("x y", I32),
            )
        )

    def builds_empty_clusters(expect):
        expect(parse_descriptor("Cluster{}").bit_width) == 0

    def parses_what_str_renders(expect):
        descriptor = parse_descriptor(
            'Cluster{status: Boolean, gain: FXP<s,16,8,overflow>, "raw data": Array<I16>[3]}'
        )

        expect(parse_descriptor(str(descriptor))) == descriptor

    def rejects_unsupported_tags():
        with raises(UnsupportedTypeError):
            parse_descriptor("CFXP")
        with raises(UnsupportedTypeError):
            parse_descriptor("Waveform")

    def rejects_duplicate_fields(expect):
        with raises(DuplicateFieldError):
            parse_descriptor("Cluster{a: U8, a: I8}")
