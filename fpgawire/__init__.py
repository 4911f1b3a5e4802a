"""fpgawire - Bit-exact codec for FPGA register and DMA FIFO data."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fpgawire")
except PackageNotFoundError:
    __version__ = "(local)"
