"""Reader for .lvbitx bitfile documents."""

import logging
import os
from xml.etree import ElementTree

from .types import BitfileDocument, ChannelNode, RegisterNode, TypeNode

logger = logging.getLogger(__name__)

_NIFPGA_PATH = "Project/CompilationResultsTree/CompilationResults/NiFpga"


class BitfileError(RuntimeError):
    """Raised when a bitfile document cannot be read."""


def _required(element: ElementTree.Element, path: str) -> ElementTree.Element:
    found = element.find(path)
    if found is None:
        raise BitfileError(f"missing <{path}>")
    return found


def _text(element: ElementTree.Element, path: str) -> str:
    return (_required(element, path).text or "").strip()


def _int(element: ElementTree.Element, path: str) -> int:
    text = _text(element, path)
    try:
        return int(text)
    except ValueError:
        raise BitfileError(f"<{path}> is not an integer: {text!r}") from None


def _flag(element: ElementTree.Element, path: str) -> bool:
    return (element.findtext(path) or "").strip().lower() == "true"


def _datatype(element: ElementTree.Element, path: str) -> TypeNode:
    container = _required(element, path)
    if len(container) == 0:
        raise BitfileError(f"<{path}> has no type element")
    return type_node(container[0])


def type_node(element: ElementTree.Element) -> TypeNode:
    """Convert a type element (``<U8>``, ``<Cluster>``...) into a TypeNode tree."""
    node = TypeNode(tag=element.tag, name=(element.findtext("Name") or "").strip() or None)

    for child in element:
        if child.tag == "Name":
            continue
        if child.tag in ("TypeList", "Type"):
            node.children.extend(type_node(member) for member in child)
        elif len(child) == 0:
            node.attributes[child.tag] = (child.text or "").strip()

    return node


def _register_node(element: ElementTree.Element) -> RegisterNode:
    return RegisterNode(
        name=_text(element, "Name"),
        offset=_int(element, "Offset"),
        datatype=_datatype(element, "Datatype"),
        indicator=_flag(element, "Indicator"),
        internal=_flag(element, "Internal"),
        access_may_timeout=_flag(element, "AccessMayTimeout"),
    )


def _channel_node(element: ElementTree.Element) -> ChannelNode:
    name = element.get("name")
    if not name:
        raise BitfileError("missing name attribute")

    transfer_size = None
    if element.find("TransferSizeBytes") is not None:
        transfer_size = _int(element, "TransferSizeBytes")

    return ChannelNode(
        name=name,
        number=_int(element, "Number"),
        datatype=_datatype(element, "DataType"),
        transfer_size_bytes=transfer_size,
    )


def parse_bitfile(text: str | bytes) -> BitfileDocument:
    """Parse the contents of a bitfile.

    Register and channel entries that are missing required elements are
    skipped with a warning.
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise BitfileError(f"Malformed bitfile XML: {e}") from e

    signature = (root.findtext("SignatureRegister") or "").strip()
    if not signature:
        raise BitfileError("Bitfile missing SignatureRegister")

    try:
        base_address = int((root.findtext(f"{_NIFPGA_PATH}/BaseAddressOnDevice") or "0").strip())
    except ValueError:
        raise BitfileError("BaseAddressOnDevice is not an integer") from None

    registers = []
    for element in root.iterfind("VI/RegisterList/Register"):
        try:
            registers.append(_register_node(element))
        except BitfileError as e:
            logger.warning("Skipping register '%s': %s", element.findtext("Name"), e)

    channels = []
    for element in root.iterfind(f"{_NIFPGA_PATH}/DmaChannelAllocationList/Channel"):
        try:
            channels.append(_channel_node(element))
        except BitfileError as e:
            logger.warning("Skipping FIFO '%s': %s", element.get("name"), e)

    return BitfileDocument(
        signature=signature.upper(),
        base_address=base_address,
        registers=registers,
        channels=channels,
    )


def read_bitfile(path: str | os.PathLike[str]) -> BitfileDocument:
    """Read and parse a bitfile from disk."""
    with open(path, "rb") as f:
        return parse_bitfile(f.read())
