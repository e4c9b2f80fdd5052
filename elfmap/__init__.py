"""
elfmap -- ELF Annotation Mapper
================================

elfmap decodes an ELF (Executable and Linkable Format) image into a
byte-exact annotation model: an ordered list of labelled field
descriptions ("members") and a list of named, possibly overlapping byte
ranges ("areas").  Binary inspectors use the model for hex-view
highlighting, field tooltips and jumping from a field to the bytes its
value designates.

Capabilities:
    - ELF32 / ELF64, little- and big-endian decoding
    - Header validation with offset-tagged failures
    - Program header (segment) and section header tables
    - Section-name string table bootstrap resolution
    - Symbol table decode with value-to-file-offset resolution
    - REL / RELA decode with x86 and amd64 relocation vocabularies
    - Rich console display and JSON report export

References:
    - TIS Committee. (1995). ELF Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
    - System V ABI AMD64 Architecture Processor Supplement.
"""

__version__ = "1.0.0"
__all__ = [
    "ELFParser",
    "parse_elf",
    "MapEngine",
    "ElfMap",
    "ParseFailure",
]

from elfmap.core.engine import MapEngine
from elfmap.core.models import ElfMap, ParseFailure
from elfmap.parsers.elf_parser import ELFParser, parse_elf
