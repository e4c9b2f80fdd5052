"""
Relocation Decoder
===================

For each configured *affected* section (``.text`` by default) the decoder
looks up the ``.rel<name>`` and ``.rela<name>`` companion sections and
decodes their entries.

    Elf32_Rel:  offset(4), info(4)            sym = info >> 8,  type = info & 0xff
    Elf64_Rel:  offset(8), info(8)            sym = info >> 32, type = info & 0xffffffff
    Elf*_Rela:  Elf*_Rel + addend (signed, same width as offset)

``offset`` is relative to the affected section.  The info member links to
the referenced symbol's file offset (plus the addend for RELA), and the
offset member links to the absolute patch location.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from elfmap.core.models import (
    Area,
    ElfHeader,
    Member,
    Relocation,
    Section,
    Symbol,
)
from elfmap.parsers.formats import format_relocation_type
from elfmap.parsers.primitives import (
    ByteBuffer,
    Cursor,
    FieldLabel,
    Layout,
    members_from_spans,
    to_signed,
)
from elfmap.parsers.sections import find_section

DEFAULT_AFFECTED_SECTIONS: tuple[str, ...] = (".text",)

# Width of the patched field highlighted at each relocation target
PATCH_WIDTH: int = 4

_COMPANION_PREFIXES: tuple[tuple[str, bool], ...] = (
    (".rel", False),
    (".rela", True),
)


def _relocation_layout(reg: int, with_addend: bool) -> Layout:
    layout: list[tuple[str, int]] = [("offset", reg), ("info", reg)]
    if with_addend:
        layout.append(("addend", reg))
    return layout


def split_info(info: int, reg: int) -> tuple[int, int]:
    """Split a packed ``r_info`` value into ``(symbol_index, type)``."""
    if reg == 4:
        return info >> 8, info & 0xFF
    return info >> 32, info & 0xFFFFFFFF


@dataclass
class RelocationDecode:
    relocations: list[Relocation] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    areas: list[Area] = field(default_factory=list)


def decode_relocations(
    buf: ByteBuffer,
    header: ElfHeader,
    sections: list[Section],
    symbols: list[Symbol],
    affected_sections: Iterable[str] = DEFAULT_AFFECTED_SECTIONS,
) -> RelocationDecode:
    """Decode the REL/RELA companions of every affected section present."""
    result = RelocationDecode()
    for name in affected_sections:
        affected = find_section(sections, name)
        if affected is None:
            continue
        for prefix, with_addend in _COMPANION_PREFIXES:
            table = find_section(sections, prefix + name)
            if table is None:
                continue
            _decode_table(buf, header, affected, table, with_addend, symbols, result)
    return result


def _decode_table(
    buf: ByteBuffer,
    header: ElfHeader,
    affected: Section,
    table: Section,
    with_addend: bool,
    symbols: list[Symbol],
    result: RelocationDecode,
) -> None:
    if table.entry_size == 0:
        return
    count = table.size // table.entry_size
    buf.check_table(table.file_offset, count, table.entry_size)
    reg = header.register_size
    layout = _relocation_layout(reg, with_addend)

    for i in range(count):
        slot = table.file_offset + i * table.entry_size
        values, spans = buf.read_record(Cursor(slot), header.endianness, layout)
        symbol_index, rel_type = split_info(values["info"], reg)
        addend = to_signed(values["addend"], reg) if with_addend else None

        relocation = Relocation(
            table=table.name,
            index=i,
            affected_section=affected.name,
            offset=values["offset"],
            target_address=affected.file_offset + values["offset"],
            info=values["info"],
            symbol_index=symbol_index,
            type=rel_type,
            addend=addend,
            file_ref=resolve_relocation_target(symbols, symbol_index, addend),
            spans=spans,
        )
        result.relocations.append(relocation)
        result.members.extend(members_from_spans(
            spans, _relocation_labels(relocation, header.arch, symbols),
        ))
        result.areas.append(Area(
            offset=slot,
            length=table.entry_size,
            label=f"{table.name} [{i}]",
        ))
        result.areas.append(Area(
            offset=relocation.target_address,
            length=PATCH_WIDTH,
            label=f"{table.name} [{i}] target",
        ))


def resolve_relocation_target(
    symbols: list[Symbol],
    symbol_index: int,
    addend: Optional[int],
) -> Optional[int]:
    """File offset of the referenced symbol plus *addend*, when it has one."""
    if symbol_index >= len(symbols):
        return None
    file_offset = symbols[symbol_index].file_offset
    if file_offset is None:
        return None
    return file_offset + (addend or 0)


def _relocation_labels(
    r: Relocation,
    machine: int,
    symbols: list[Symbol],
) -> dict[str, FieldLabel]:
    prefix = f"{r.table} [{r.index}]"
    if r.symbol_index < len(symbols):
        symbol = f'symbol {r.symbol_index} "{symbols[r.symbol_index].name}"'
    else:
        symbol = f"symbol {r.symbol_index}"
    mnemonic = format_relocation_type(machine, r.type)
    labels: dict[str, FieldLabel] = {
        "offset": (
            f"{prefix} offset (0x{r.offset:x} into {r.affected_section})",
            r.target_address,
            None,
        ),
        "info": (
            f"{prefix} info ({symbol}, type {r.type}: {mnemonic})",
            r.file_ref,
            None,
        ),
    }
    if r.addend is not None:
        labels["addend"] = (f"{prefix} addend ({r.addend})", None, None)
    return labels
