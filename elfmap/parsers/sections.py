"""
Section Table Decoder
======================

Decodes the section header table and resolves every section's name against
the section-name string table located by the header decoder.

Field order is the same for both classes; ``sh_flags`` and the
address-sized fields widen from 4 to 8 bytes in ELF64 while ``sh_name``,
``sh_type``, ``sh_link`` and ``sh_info`` stay 4 bytes wide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from elfmap.core.models import Area, ElfHeader, Member, Section
from elfmap.parsers.formats import format_section_flags, format_section_type
from elfmap.parsers.primitives import (
    ByteBuffer,
    Cursor,
    FieldLabel,
    Layout,
    members_from_spans,
)


def _section_layout(reg: int) -> Layout:
    return (
        ("name_offset", 4),
        ("type", 4),
        ("flags", reg),
        ("address", reg),
        ("file_offset", reg),
        ("size", reg),
        ("link", 4),
        ("info", 4),
        ("alignment", reg),
        ("entry_size", reg),
    )


@dataclass
class SectionDecode:
    sections: list[Section] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    areas: list[Area] = field(default_factory=list)


def decode_sections(buf: ByteBuffer, header: ElfHeader) -> SectionDecode:
    """Decode every section header listed by *header*.

    Emits one area per header slot and one content area per section with a
    non-zero file offset.
    """
    start = header.section_table_offset
    entry_size = header.section_entry_size
    count = header.section_count
    names_start = header.string_table_offset
    result = SectionDecode()
    if entry_size == 0 or count == 0:
        return result
    buf.check_table(start, count, entry_size)

    result.areas.append(Area(offset=start, length=entry_size * count, label="Section header table"))
    for i in range(count):
        result.areas.append(Area(
            offset=start + i * entry_size,
            length=entry_size,
            label=f"Section [{i}] header",
        ))

    layout = _section_layout(header.register_size)
    for i in range(count):
        values, spans = buf.read_record(Cursor(start + i * entry_size), header.endianness, layout)
        name_addr = _name_address(names_start, values["name_offset"])
        name = buf.read_cstring(name_addr) if name_addr is not None else ""
        section = Section(index=i, name=name, spans=spans, **values)
        result.sections.append(section)
        result.members.extend(members_from_spans(spans, _section_labels(section, name_addr)))

    for section in result.sections:
        if section.file_offset != 0:
            result.areas.append(Area(
                offset=section.file_offset,
                length=section.size,
                label=f'Section [{section.index}] "{section.name}"',
            ))
    return result


def _name_address(names_start: Optional[int], name_offset: int) -> Optional[int]:
    if names_start is None:
        return None
    return names_start + name_offset


def _section_labels(s: Section, name_addr: Optional[int]) -> dict[str, FieldLabel]:
    prefix = f"Section [{s.index}]"
    return {
        "name_offset": (
            f'{prefix} name offset (0x{s.name_offset:x}, "{s.name}")', name_addr, None,
        ),
        "type": (f"{prefix} type ({s.type}: {format_section_type(s.type)})", None, None),
        "flags": (f"{prefix} flags ({s.flags}: {format_section_flags(s.flags)})", None, None),
        "address": (f"{prefix} address", None, s.address),
        "file_offset": (f"{prefix} offset in file", s.file_offset, None),
        "size": (f"{prefix} size (0x{s.size:x})", None, None),
        "link": (f"{prefix} link (0x{s.link:x})", None, None),
        "info": (f"{prefix} info (0x{s.info:x})", None, None),
        "alignment": (f"{prefix} memory alignment (0x{s.alignment:x})", None, None),
        "entry_size": (f"{prefix} entry size (0x{s.entry_size:x})", None, None),
    }


def find_section(sections: list[Section], name: str) -> Optional[Section]:
    """Return the first section named *name*, or ``None``."""
    for section in sections:
        if section.name == name:
            return section
    return None
