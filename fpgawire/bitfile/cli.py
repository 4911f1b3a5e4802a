"""Command-line interface for inspecting bitfiles and encoding values."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..codec.serialization import (
    SerializationError,
    pack,
    pack_fifo_elements,
    pack_register_words,
    unpack,
    unpack_fifo_elements,
    unpack_register_words,
)
from ..codec.types import (
    Array,
    Cluster,
    DescriptorError,
    FixedPoint,
    FxpOverflowValue,
    FxpValue,
    TypeDescriptor,
    is_composite,
)
from .builder import load_bitfile
from .lvbitx import BitfileError
from .parser import TypeSyntaxError, parse_descriptor
from .sizes import BitfileLayout, calculate_layout, infer_transfer_size

_USER_ERRORS = (
    BitfileError,
    DescriptorError,
    SerializationError,
    TypeSyntaxError,
    ValueError,
    OSError,
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """FPGA register and FIFO codec tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input bitfile")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display registers and FIFOs with their transfer layout."""
    try:
        layout = calculate_layout(load_bitfile(input_file))
    except _USER_ERRORS as e:
        raise click.ClickException(str(e)) from e

    if output_json:
        print(layout.to_json(indent=2))
    else:
        _output_plain(layout)


def _output_plain(layout: BitfileLayout) -> None:
    """Output bitfile layout using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Bitfile[/bold cyan]")
    summary = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    summary.add_column("Label", style="dim")
    summary.add_column("Value", style="white")
    summary.add_row("Signature", layout.signature)
    summary.add_row("Base address", f"{layout.base_address:#x}")
    console.print(summary)
    console.print()

    console.print("[bold cyan]Registers[/bold cyan]")
    registers = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    registers.add_column("Name", style="white")
    registers.add_column("Offset", style="green", justify="right")
    registers.add_column("Type", style="dim")
    registers.add_column("Bits", style="yellow", justify="right")
    registers.add_column("Words", style="yellow", justify="right")
    registers.add_column("Shift", justify="right")
    registers.add_column("Dir", style="dim")

    for register in layout.registers:
        registers.add_row(
            register.name,
            f"{register.offset:#x}",
            register.type,
            str(register.bits),
            str(register.words),
            str(register.shift) if register.composite else "",
            "out" if register.indicator else "in",
        )

    console.print(registers)
    console.print()

    console.print("[bold cyan]FIFOs[/bold cyan]")
    fifos = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    fifos.add_column("Name", style="white")
    fifos.add_column("Channel", style="green", justify="right")
    fifos.add_column("Type", style="dim")
    fifos.add_column("Bits", style="yellow", justify="right")
    fifos.add_column("Element", style="yellow", justify="right")
    fifos.add_column("Shift", justify="right")
    fifos.add_column("Swapped", style="dim")

    for fifo in layout.fifos:
        fifos.add_row(
            fifo.name,
            str(fifo.number),
            fifo.type,
            str(fifo.bits),
            f"{fifo.element_bytes} bytes",
            str(fifo.shift),
            "yes" if fifo.swapped else "no",
        )

    console.print(fifos)


def _resolve(
    type_text: str | None,
    input_file: str | None,
    name: str | None,
    fifo: bool,
    element_bytes: int | None,
) -> tuple[TypeDescriptor, int]:
    """Find the descriptor to work with and, for FIFOs, the element size."""
    if type_text is not None:
        descriptor = parse_descriptor(type_text)
        return descriptor, infer_transfer_size(descriptor, element_bytes)

    if input_file is None or name is None:
        raise click.UsageError("Pass either --type or both --input and --name")

    bitfile = load_bitfile(input_file)
    if fifo:
        if name not in bitfile.fifos:
            raise click.ClickException(f"FIFO '{name}' not found in {input_file}")
        definition = bitfile.fifos[name]
        return definition.descriptor, element_bytes or definition.transfer_size_bytes

    if name not in bitfile.registers:
        raise click.ClickException(f"Register '{name}' not found in {input_file}")
    return bitfile.registers[name].descriptor, 0


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise SerializationError(f"Expected a fixed-point number, got {value!r}") from None


def from_json(descriptor: TypeDescriptor, value: Any) -> Any:
    """Convert a decoded JSON value into the host value for a type."""
    if isinstance(descriptor, FixedPoint):
        if descriptor.has_overflow_flag and isinstance(value, dict):
            return FxpOverflowValue(bool(value.get("overflow")), _decimal(value.get("value")))
        return FxpValue(_decimal(value))
    if isinstance(descriptor, Array) and isinstance(value, list):
        return [from_json(descriptor.element, item) for item in value]
    if isinstance(descriptor, Cluster) and isinstance(value, dict):
        result = dict(value)
        for member in descriptor.host_fields:
            if member.name in value:
                result[member.name] = from_json(member.type, value[member.name])
        return result
    return value


def to_json(value: Any) -> Any:
    """Convert a host value into something json.dumps accepts."""
    if isinstance(value, FxpOverflowValue):
        return {"overflow": value.overflow, "value": str(value.value)}
    if isinstance(value, FxpValue):
        return str(value.value)
    if isinstance(value, list):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def _type_options(func):
    func = click.option("--element-bytes", type=int, default=None, help="FIFO element size")(func)
    func = click.option("--fifo", is_flag=True, help="Use the FIFO element layout")(func)
    func = click.option("--name", "-n", default=None, help="Register or FIFO name")(func)
    func = click.option("--input", "-i", "input_file", default=None, help="Input bitfile")(func)
    func = click.option("--type", "-t", "type_text", default=None, help="Type notation")(func)
    return func


@cli.command()
@_type_options
@click.argument("value")
def encode(
    type_text: str | None,
    input_file: str | None,
    name: str | None,
    fifo: bool,
    element_bytes: int | None,
    value: str,
) -> None:
    """Encode a JSON VALUE as register words or FIFO elements.

    With --fifo, VALUE is a JSON list with one entry per element.
    """
    try:
        descriptor, size = _resolve(type_text, input_file, name, fifo, element_bytes)
        host_value = json.loads(value, parse_float=Decimal)
        if fifo:
            if not isinstance(host_value, list):
                raise click.UsageError("--fifo expects a JSON list of elements")
            elements = [from_json(descriptor, item) for item in host_value]
            print(pack_fifo_elements(descriptor, elements, size).hex(" "))
        elif is_composite(descriptor):
            words = pack_register_words(descriptor, from_json(descriptor, host_value))
            print(" ".join(f"0x{word:08x}" for word in words))
        else:
            print(pack(descriptor, from_json(descriptor, host_value)).hex(" "))
    except _USER_ERRORS as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@_type_options
@click.argument("data", nargs=-1, required=True)
def decode(
    type_text: str | None,
    input_file: str | None,
    name: str | None,
    fifo: bool,
    element_bytes: int | None,
    data: tuple[str, ...],
) -> None:
    """Decode DATA and print the value as JSON.

    Composite registers take 32-bit words in hex; scalar registers and FIFOs
    take bytes in hex.
    """
    try:
        descriptor, size = _resolve(type_text, input_file, name, fifo, element_bytes)
        if fifo:
            value = unpack_fifo_elements(descriptor, bytes.fromhex("".join(data)), size)
        elif is_composite(descriptor):
            words = [int(token, 16) for token in data]
            if any(not 0 <= word <= 0xFFFFFFFF for word in words):
                raise click.UsageError("Register words must be 32-bit hex values")
            value = unpack_register_words(descriptor, words)
        else:
            value = unpack(descriptor, bytes.fromhex("".join(data)))
    except _USER_ERRORS as e:
        raise click.ClickException(str(e)) from e

    print(json.dumps(to_json(value)))


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
