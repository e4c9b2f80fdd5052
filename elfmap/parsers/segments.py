"""
Segment Table Decoder
======================

Decodes the program header table.  The field set is the same for both
classes but the order is not: ELF64 moves ``p_flags`` directly after
``p_type`` so the following address-sized fields stay 8-byte aligned.

    Elf32_Phdr: type, offset, vaddr, paddr, filesz, memsz, flags, align
    Elf64_Phdr: type, flags, offset, vaddr, paddr, filesz, memsz, align
"""

from __future__ import annotations

from dataclasses import dataclass, field

from elfmap.core.models import Area, ElfHeader, Member, Segment
from elfmap.parsers.formats import format_segment_flags, format_segment_type
from elfmap.parsers.primitives import (
    ByteBuffer,
    Cursor,
    FieldLabel,
    Layout,
    members_from_spans,
)


def _segment_layout(reg: int) -> Layout:
    if reg == 4:
        return (
            ("type", 4),
            ("file_offset", 4),
            ("virtual_address", 4),
            ("physical_address", 4),
            ("file_size", 4),
            ("memory_size", 4),
            ("flags", 4),
            ("alignment", 4),
        )
    return (
        ("type", 4),
        ("flags", 4),
        ("file_offset", 8),
        ("virtual_address", 8),
        ("physical_address", 8),
        ("file_size", 8),
        ("memory_size", 8),
        ("alignment", 8),
    )


@dataclass
class SegmentDecode:
    segments: list[Segment] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    areas: list[Area] = field(default_factory=list)


def decode_segments(buf: ByteBuffer, header: ElfHeader) -> SegmentDecode:
    """Decode every program header listed by *header*.

    Emits one area per header slot, then one area per segment's file-backed
    contents.  A segment whose file offset is zero has no content area.
    """
    start = header.segment_table_offset
    entry_size = header.segment_entry_size
    count = header.segment_count
    result = SegmentDecode()
    if entry_size == 0 or count == 0:
        return result
    buf.check_table(start, count, entry_size)

    result.areas.append(Area(offset=start, length=entry_size * count, label="Segment header table"))
    for i in range(count):
        result.areas.append(Area(
            offset=start + i * entry_size,
            length=entry_size,
            label=f"Segment [{i}] header",
        ))

    layout = _segment_layout(header.register_size)
    for i in range(count):
        values, spans = buf.read_record(Cursor(start + i * entry_size), header.endianness, layout)
        segment = Segment(index=i, spans=spans, **values)
        result.segments.append(segment)
        result.members.extend(members_from_spans(spans, _segment_labels(segment)))

    for segment in result.segments:
        if segment.file_offset != 0:
            result.areas.append(Area(
                offset=segment.file_offset,
                length=segment.file_size,
                label=f"Segment [{segment.index}]",
            ))
    return result


def _segment_labels(s: Segment) -> dict[str, FieldLabel]:
    prefix = f"Segment [{s.index}]"
    return {
        "type": (f"{prefix} type ({s.type}: {format_segment_type(s.type)})", None, None),
        "flags": (
            f"{prefix} flags (0x{s.flags:x}: {format_segment_flags(s.flags)})", None, None,
        ),
        "file_offset": (f"{prefix} offset in file", s.file_offset, None),
        "virtual_address": (f"{prefix} (virtual) memory location", None, s.virtual_address),
        "physical_address": (f"{prefix} (physical) memory location", None, s.physical_address),
        "file_size": (f"{prefix} size in file (0x{s.file_size:x})", None, None),
        "memory_size": (f"{prefix} size in memory (0x{s.memory_size:x})", None, None),
        "alignment": (f"{prefix} memory alignment (0x{s.alignment:x})", None, None),
    }
