"""
ELF Header Decoder
===================

Validates the identification preamble, detects the register width and byte
order, then decodes the remaining header fields whose width depends on the
register size.

Layout (offsets in bytes)::

    0x00  magic            7f 45 4c 46
    0x04  class            1 = 32-bit, 2 = 64-bit
    0x05  data             1 = little-endian, 2 = big-endian
    0x06  ident version    must be 1
    0x07  OS ABI           must be 0
    0x08  ABI version      must be 0
    0x09  padding          7 bytes
    0x10  e_type .. e_shstrndx   (address-typed fields are 4 or 8 bytes)

The preamble checks run before the offending byte is emitted as a member;
the format-version check runs after its field has been read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from elfmap.core.errors import ErrorKind, StructuralError
from elfmap.core.models import Area, ElfHeader, Endianness, FieldSpan, Member
from elfmap.parsers.formats import (
    ELF_MAGIC,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    EV_CURRENT,
    SHN_UNDEF,
    format_elf_type,
    format_machine,
)
from elfmap.parsers.primitives import (
    ByteBuffer,
    Cursor,
    FieldLabel,
    Layout,
    members_from_spans,
)

PADDING_OFFSET: int = 0x09
PADDING_LENGTH: int = 7
FIELDS_OFFSET: int = 0x10

# Offset of sh_offset inside a section header record
_SH_OFFSET_FIELD: dict[int, int] = {4: 16, 8: 24}


@dataclass
class HeaderDecode:
    """Output of :func:`decode_header`."""
    header: ElfHeader
    members: list[Member] = field(default_factory=list)
    areas: list[Area] = field(default_factory=list)


def _header_layout(reg: int) -> Layout:
    return (
        ("type", 2),
        ("arch", 2),
        ("version", 4),
        ("entry", reg),
        ("segment_table_offset", reg),
        ("section_table_offset", reg),
        ("flags", 4),
        ("header_size", 2),
        ("segment_entry_size", 2),
        ("segment_count", 2),
        ("section_entry_size", 2),
        ("section_count", 2),
        ("string_table_index", 2),
    )


def _ident_byte(buf: ByteBuffer, cursor: Cursor) -> tuple[int, int]:
    offset = cursor.pos
    return offset, buf.read_int(cursor, Endianness.LITTLE, 1)


def decode_header(buf: ByteBuffer) -> HeaderDecode:
    """Decode and validate the ELF header.

    Raises:
        StructuralError: The preamble or format version is invalid, or the
            buffer ends inside the header.
    """
    cursor = Cursor(0)
    members: list[Member] = []

    if len(buf) < len(ELF_MAGIC) or buf.read_hex(cursor, 4) != ELF_MAGIC.hex():
        raise StructuralError(ErrorKind.NOT_ELF, "Not an ELF file", 0)
    members.append(Member(address=0, length=4, label="ELF magic number"))

    offset, value = _ident_byte(buf, cursor)
    if value == ELFCLASS32:
        reg = 4
    elif value == ELFCLASS64:
        reg = 8
    else:
        raise StructuralError(
            ErrorKind.INVALID_CLASS,
            f"Invalid register size value at 0x{offset:x}",
            offset,
        )
    members.append(Member(address=offset, length=1, label=f"Register size ({reg * 8}-bit)"))

    offset, value = _ident_byte(buf, cursor)
    if value == ELFDATA2LSB:
        endianness = Endianness.LITTLE
    elif value == ELFDATA2MSB:
        endianness = Endianness.BIG
    else:
        raise StructuralError(
            ErrorKind.INVALID_ENDIANNESS,
            f"Invalid endianness value at 0x{offset:x}",
            offset,
        )
    members.append(Member(address=offset, length=1, label=f"Endianness ({endianness.value})"))

    for kind, expected, text, label in (
        (ErrorKind.INVALID_VERSION, 1, "Invalid ELF version, expected 1", "ELF version (0x01)"),
        (ErrorKind.INVALID_ABI_TYPE, 0, "Invalid ABI type, expected 0", "ELF ABI type (0x00)"),
        (ErrorKind.INVALID_ABI_VERSION, 0, "Invalid ABI version, expected 0", "ELF ABI version (0x00)"),
    ):
        offset, value = _ident_byte(buf, cursor)
        if value != expected:
            raise StructuralError(kind, f"{text} at 0x{offset:x}", offset)
        members.append(Member(address=offset, length=1, label=label))

    members.append(Member(address=PADDING_OFFSET, length=PADDING_LENGTH, label="Padding (zeros)"))

    cursor.seek(FIELDS_OFFSET)
    values, spans = buf.read_record(cursor, endianness, _header_layout(reg))

    if values["version"] != EV_CURRENT:
        offset = spans["version"].address
        raise StructuralError(
            ErrorKind.INVALID_FORMAT_VERSION,
            f"ELF version is {values['version']} when 1 was expected at 0x{offset:x}",
            offset,
        )

    header = ElfHeader(
        register_size=reg,
        endianness=endianness,
        string_table_offset=find_string_table_offset(buf, values, endianness, reg),
        **values,
    )
    members.extend(_header_members(header, spans))
    areas = [Area(offset=0, length=header.header_size, label="ELF header")]
    return HeaderDecode(header=header, members=members, areas=areas)


def find_string_table_offset(
    buf: ByteBuffer,
    values: dict[str, int],
    endianness: Endianness,
    reg: int,
) -> Optional[int]:
    """Read the section-name string table's file offset from its header.

    Section names cannot be resolved until this offset is known, so it is
    read straight out of the section header record, independently of the
    section table decoder.
    """
    index = values["string_table_index"]
    if (
        values["section_table_offset"] == 0
        or index == SHN_UNDEF
        or index >= values["section_count"]
    ):
        return None
    record = values["section_table_offset"] + index * values["section_entry_size"]
    return buf.read_int(Cursor(record + _SH_OFFSET_FIELD[reg]), endianness, reg)


def _header_members(header: ElfHeader, spans: dict[str, FieldSpan]) -> list[Member]:
    h = header
    labels: dict[str, FieldLabel] = {
        "type": (f"Type ({format_elf_type(h.type)})", None, None),
        "arch": (f"Architecture ({format_machine(h.arch)})", None, None),
        "version": (f"ELF version (0x{h.version:x})", None, None),
        "entry": (f"Entry point (0x{h.entry:x})", None, h.entry),
        "segment_table_offset": (
            "Segment headers start", h.segment_table_offset or None, None,
        ),
        "section_table_offset": (
            "Section headers start", h.section_table_offset or None, None,
        ),
        "flags": (f"ELF flags (0x{h.flags:x})", None, None),
        "header_size": ("ELF header size", h.header_size, None),
        "segment_entry_size": (
            f"Size of each segment header ({h.segment_entry_size})", None, None,
        ),
        "segment_count": (f"Number of segments ({h.segment_count})", None, None),
        "section_entry_size": (
            f"Size of each section header ({h.section_entry_size})", None, None,
        ),
        "section_count": (f"Number of sections ({h.section_count})", None, None),
        "string_table_index": (
            f"Section header strings index ({h.string_table_index})",
            h.section_table_offset + h.section_entry_size * h.string_table_index,
            None,
        ),
    }
    return members_from_spans(spans, labels)
