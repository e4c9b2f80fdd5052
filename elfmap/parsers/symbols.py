"""
Symbol Table Decoder
=====================

Decodes ``.symtab`` and resolves each symbol's value to the file offset it
designates.

Decoding runs in two phases.  The raw pass reads every entry's fields and
byte spans; the resolution pass works out each symbol's absolute file
offset from its owning section.  Only then are the frozen
:class:`~elfmap.core.models.Symbol` entities and their members built, so the
value member carries its file reference from the moment it exists.

    Elf32_Sym: name, value, size, info, other, shndx
    Elf64_Sym: name, info, other, shndx, value, size
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from elfmap.core.errors import ErrorKind, InconsistentTablesError
from elfmap.core.models import Area, ElfHeader, FieldSpan, Member, Section, Symbol
from elfmap.parsers.formats import (
    SHN_ABS,
    SHN_LORESERVE,
    SHN_UNDEF,
    format_symbol_info,
    format_symbol_other,
    format_symbol_section,
)
from elfmap.parsers.primitives import (
    ByteBuffer,
    Cursor,
    FieldLabel,
    Layout,
    members_from_spans,
)
from elfmap.parsers.sections import find_section

SYMTAB_NAME: str = ".symtab"
STRTAB_NAME: str = ".strtab"


def _symbol_layout(reg: int) -> Layout:
    if reg == 4:
        return (
            ("name_offset", 4),
            ("value", 4),
            ("size", 4),
            ("info", 1),
            ("other", 1),
            ("section_index", 2),
        )
    return (
        ("name_offset", 4),
        ("info", 1),
        ("other", 1),
        ("section_index", 2),
        ("value", 8),
        ("size", 8),
    )


@dataclass
class _RawSymbol:
    index: int
    name: str
    values: dict[str, int]
    spans: dict[str, FieldSpan]


@dataclass
class SymbolDecode:
    symbols: list[Symbol] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    areas: list[Area] = field(default_factory=list)


def decode_symbols(
    buf: ByteBuffer,
    header: ElfHeader,
    sections: list[Section],
) -> SymbolDecode:
    """Decode ``.symtab`` if the image has one.

    A missing ``.symtab`` is not an error; the image is simply stripped.

    Raises:
        InconsistentTablesError: ``.symtab`` exists but ``.strtab`` does not,
            so symbol names cannot be resolved.
    """
    result = SymbolDecode()
    symtab = find_section(sections, SYMTAB_NAME)
    if symtab is None:
        return result
    strtab = find_section(sections, STRTAB_NAME)
    if strtab is None:
        raise InconsistentTablesError(
            ErrorKind.MISSING_STRING_TABLE,
            "Have .symtab but no .strtab to resolve symbols' names",
            symtab.file_offset,
        )

    raw = _read_symbols(buf, header, symtab, strtab)

    for entry in raw:
        file_offset = resolve_symbol_offset(
            entry.values["section_index"], entry.values["value"], sections,
        )
        symbol = Symbol(
            index=entry.index,
            name=entry.name,
            file_offset=file_offset,
            spans=entry.spans,
            **entry.values,
        )
        result.symbols.append(symbol)
        result.members.extend(members_from_spans(
            entry.spans, _symbol_labels(symbol, strtab.file_offset, sections),
        ))
        result.areas.append(Area(
            offset=symtab.file_offset + entry.index * symtab.entry_size,
            length=symtab.entry_size,
            label=f'Symbol [{entry.index}] "{entry.name}"',
        ))
    return result


def _read_symbols(
    buf: ByteBuffer,
    header: ElfHeader,
    symtab: Section,
    strtab: Section,
) -> list[_RawSymbol]:
    if symtab.entry_size == 0:
        return []
    count = symtab.size // symtab.entry_size
    buf.check_table(symtab.file_offset, count, symtab.entry_size)
    layout = _symbol_layout(header.register_size)
    raw: list[_RawSymbol] = []
    for i in range(count):
        cursor = Cursor(symtab.file_offset + i * symtab.entry_size)
        values, spans = buf.read_record(cursor, header.endianness, layout)
        name = buf.read_cstring(strtab.file_offset + values["name_offset"])
        raw.append(_RawSymbol(index=i, name=name, values=values, spans=spans))
    return raw


def resolve_symbol_offset(
    section_index: int,
    value: int,
    sections: list[Section],
) -> Optional[int]:
    """Return the file offset a symbol's value designates, if it has one.

    Undefined (index 0) and absolute (``SHN_ABS``) symbols, symbols in the
    reserved index range and symbols naming a non-existent section have no
    file backing.
    """
    if section_index in (SHN_UNDEF, SHN_ABS) or section_index >= SHN_LORESERVE:
        return None
    if section_index >= len(sections):
        return None
    return sections[section_index].file_offset + value


def _symbol_labels(
    s: Symbol,
    names_start: int,
    sections: list[Section],
) -> dict[str, FieldLabel]:
    prefix = f"Symbol [{s.index}]"
    owner: Optional[str] = None
    if s.section_index < len(sections):
        owner = sections[s.section_index].name
    return {
        "name_offset": (
            f'{prefix} name offset (0x{s.name_offset:x}, "{s.name}")',
            names_start + s.name_offset,
            None,
        ),
        "value": (f"{prefix} value (i.e. address) = 0x{s.value:x}", s.file_offset, None),
        "size": (f"{prefix} size (0x{s.size:x})", None, None),
        "info": (
            f"{prefix} info (i.e. type) (0x{s.info:x}, {format_symbol_info(s.info)})",
            None,
            None,
        ),
        "other": (
            f"{prefix} other (i.e. visibility) (0x{s.other:x}, {format_symbol_other(s.other)})",
            None,
            None,
        ),
        "section_index": (
            f"{prefix} corresponding section "
            f"({format_symbol_section(s.section_index, owner)})",
            None,
            None,
        ),
    }
