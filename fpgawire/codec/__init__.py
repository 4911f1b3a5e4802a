"""Bit-exact codec for FPGA register and FIFO data."""

from .alignment import REGISTER_WORD_BITS as REGISTER_WORD_BITS
from .alignment import align_and_swap_for_stream_write as align_and_swap_for_stream_write
from .alignment import align_for_register_read as align_for_register_read
from .alignment import align_for_register_write as align_for_register_write
from .alignment import swap_stream_endianness as swap_stream_endianness
from .alignment import unswap_and_align_for_stream_read as unswap_and_align_for_stream_read
from .bits import BitReader as BitReader
from .bits import BitWriter as BitWriter
from .serialization import ArrayLengthMismatchError as ArrayLengthMismatchError
from .serialization import MissingFieldError as MissingFieldError
from .serialization import SerializationError as SerializationError
from .serialization import pack as pack
from .serialization import pack_fifo_elements as pack_fifo_elements
from .serialization import pack_register_words as pack_register_words
from .serialization import unpack as unpack
from .serialization import unpack_fifo_elements as unpack_fifo_elements
from .serialization import unpack_register_words as unpack_register_words
from .types import *
