"""Bitfile reading and descriptor building."""

from .builder import Bitfile as Bitfile
from .builder import FifoDefinition as FifoDefinition
from .builder import RegisterDefinition as RegisterDefinition
from .builder import build_bitfile as build_bitfile
from .builder import build_type as build_type
from .builder import build_types as build_types
from .builder import load_bitfile as load_bitfile
from .lvbitx import BitfileError as BitfileError
from .lvbitx import parse_bitfile as parse_bitfile
from .lvbitx import read_bitfile as read_bitfile
from .parser import TypeSyntaxError as TypeSyntaxError
from .parser import parse_descriptor as parse_descriptor
from .parser import parse_type as parse_type
from .sizes import BitfileLayout as BitfileLayout
from .sizes import calculate_layout as calculate_layout
from .sizes import infer_transfer_size as infer_transfer_size
from .types import *
