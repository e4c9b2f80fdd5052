"""
elfmap Data Models
===================

Pydantic-based models for the annotation map produced by the ELF decoder.

Two families of model live here:

    - The *annotation* models, :class:`Member` and :class:`Area`, which are
      what a binary inspector consumes.
    - The *entity* models (:class:`ElfHeader`, :class:`Segment`,
      :class:`Section`, :class:`Symbol`, :class:`Relocation`), which record
      the decoded values together with the byte span of every field they
      were read from.  Members are derived from those spans once all cross
      references are known.

All decode models are frozen: once a decoder has returned them they are never
mutated.

References:
    - TIS Committee. (1995). Executable and Linkable Format (ELF) Specification.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from elfmap.core.errors import ErrorKind


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Endianness(str, enum.Enum):
    """Byte order of multi-byte fields."""
    LITTLE = "little"
    BIG = "big"


# ---------------------------------------------------------------------------
# Annotation models
# ---------------------------------------------------------------------------

class FieldSpan(BaseModel):
    """Byte range a single field was decoded from."""
    model_config = ConfigDict(frozen=True)

    address: int
    length: int


class Member(BaseModel):
    """A decoded field: its byte range, label and optional cross references.

    Attributes:
        address: Offset of the field's first byte.
        length: Number of bytes consumed by the field.
        label: Human-readable description of the field and its value.
        file_ref: File offset the field's value designates, if any.
        mem_ref: Virtual address the field's value designates, if any.
    """
    model_config = ConfigDict(frozen=True)

    address: int
    length: int
    label: str
    file_ref: Optional[int] = None
    mem_ref: Optional[int] = None

    @property
    def end(self) -> int:
        """Offset one past the field's last byte."""
        return self.address + self.length


class Area(BaseModel):
    """A named byte range used for region highlighting.  Areas may overlap."""
    model_config = ConfigDict(frozen=True)

    offset: int
    length: int
    label: str


# ---------------------------------------------------------------------------
# Entity models
# ---------------------------------------------------------------------------

class ElfHeader(BaseModel):
    """Parsed ELF identification and file header.

    ``string_table_offset`` is the file offset of the section-name string
    table's data, read directly from that section's header record before the
    section table itself is decoded.  It is ``None`` when the image has no
    section-name string table.
    """
    model_config = ConfigDict(frozen=True)

    register_size: int
    endianness: Endianness
    type: int
    arch: int
    version: int
    entry: int
    segment_table_offset: int
    section_table_offset: int
    flags: int
    header_size: int
    segment_entry_size: int
    segment_count: int
    section_entry_size: int
    section_count: int
    string_table_index: int
    string_table_offset: Optional[int] = None

    @property
    def bits(self) -> int:
        """Address width in bits (32 or 64)."""
        return self.register_size * 8


class Segment(BaseModel):
    """A program header entry."""
    model_config = ConfigDict(frozen=True)

    index: int
    type: int
    flags: int
    file_offset: int
    virtual_address: int
    physical_address: int
    file_size: int
    memory_size: int
    alignment: int
    spans: dict[str, FieldSpan] = Field(default_factory=dict, repr=False)


class Section(BaseModel):
    """A section header entry with its name resolved."""
    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    name_offset: int
    type: int
    flags: int
    address: int
    file_offset: int
    size: int
    link: int
    info: int
    alignment: int
    entry_size: int
    spans: dict[str, FieldSpan] = Field(default_factory=dict, repr=False)


class Symbol(BaseModel):
    """A ``.symtab`` entry.

    ``file_offset`` is the absolute file offset the symbol's value designates,
    computed from the owning section.  It is ``None`` for undefined and
    absolute symbols and for symbols whose section does not exist.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    name_offset: int
    value: int
    size: int
    info: int
    other: int
    section_index: int
    file_offset: Optional[int] = None
    spans: dict[str, FieldSpan] = Field(default_factory=dict, repr=False)


class Relocation(BaseModel):
    """A REL or RELA entry applying to one affected section.

    Attributes:
        table: Name of the relocation section (``.rel.text``, ``.rela.text``).
        affected_section: Name of the section being patched.
        offset: Patch location relative to the affected section.
        target_address: Absolute file offset of the patch location.
        symbol_index: Index into ``.symtab`` of the referenced symbol.
        type: Architecture-specific relocation type code.
        addend: Explicit addend (RELA only).
        file_ref: File offset of the referenced symbol plus the addend, or
            ``None`` when the symbol has no file backing.
    """
    model_config = ConfigDict(frozen=True)

    table: str
    index: int
    affected_section: str
    offset: int
    target_address: int
    info: int
    symbol_index: int
    type: int
    addend: Optional[int] = None
    file_ref: Optional[int] = None
    spans: dict[str, FieldSpan] = Field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------

class ElfMap(BaseModel):
    """Successful decode: the annotation lists plus the decoded entities."""
    model_config = ConfigDict(frozen=True)

    members: list[Member] = Field(default_factory=list)
    areas: list[Area] = Field(default_factory=list)
    header: ElfHeader
    segments: list[Segment] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    symbols: list[Symbol] = Field(default_factory=list)
    relocations: list[Relocation] = Field(default_factory=list)

    def section_named(self, name: str) -> Optional[Section]:
        """Return the first section called *name*, or ``None``."""
        from elfmap.parsers.sections import find_section

        return find_section(self.sections, name)


class ParseFailure(BaseModel):
    """Structural decode failure handed back to the caller as a value."""
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    offset: Optional[int] = None

    def __str__(self) -> str:
        return self.message


ParseResult = Union[ElfMap, ParseFailure]


class AnalysisReport(BaseModel):
    """Result of running the engine over one file.

    Exactly one of ``elf_map`` and ``failure`` is set.
    """
    path: str = ""
    size: int = 0
    sha256: str = ""
    analyzed_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    elf_map: Optional[ElfMap] = None
    failure: Optional[ParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.elf_map is not None
