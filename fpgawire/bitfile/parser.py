"""Parser for the compact type notation using Lark.

The notation mirrors what ``str()`` renders for a descriptor, so a type can
be written on a command line or in a test instead of in bitfile XML::

    Cluster{status: Boolean, code: I32, source: String, gain: FXP<s,16,8>}
"""

import json
import os
from typing import Any

from lark import Lark
from lark.exceptions import LarkError
from lark.visitors import Transformer

from ..codec.types import TypeDescriptor
from .builder import build_type
from .types import TypeNode

_g_parser: Lark | None = None


class TypeSyntaxError(RuntimeError):
    """Raised when a type notation string cannot be parsed."""


class TreeTransformer(Transformer):
    """Transform parse tree into type-tree nodes."""

    def leaf(self, args: list[Any]) -> TypeNode:
        return TypeNode(tag=str(args[0]))

    def fxp(self, args: list[Any]) -> TypeNode:
        sign, word_length, integer_word_length = args[:3]
        return TypeNode(
            tag="FXP",
            attributes={
                "Signed": "true" if sign == "s" else "false",
                "WordLength": str(int(word_length)),
                "IntegerWordLength": str(int(integer_word_length)),
                "IncludeOverflowStatus": "true" if len(args) > 3 else "false",
            },
        )

    def array(self, args: list[Any]) -> TypeNode:
        element, size = args
        return TypeNode(tag="Array", attributes={"Size": str(int(size))}, children=[element])

    def cluster(self, args: list[Any]) -> TypeNode:
        return TypeNode(tag="Cluster", children=list(args))

    def member(self, args: list[Any]) -> TypeNode:
        if len(args) == 2:
            name, node = args
            node.name = name
            return node
        return args[0]

    def field_name(self, args: list[Any]) -> str:
        token = args[0]
        if token.type == "ESCAPED_STRING":
            return json.loads(token)
        return str(token)


def parse_type(text: str) -> TypeNode:
    """Parse a type notation string into a type tree."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/typedef.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar)

    try:
        tree = _g_parser.parse(text)
    except LarkError as e:
        raise TypeSyntaxError(f"Invalid type notation {text!r}: {e}") from e

    return TreeTransformer().transform(tree)


def parse_descriptor(text: str) -> TypeDescriptor:
    """Parse a type notation string straight into a descriptor."""
    return build_type(parse_type(text))
