"""Synthesises small ELF images with :mod:`struct` for the test-suite.

Layout produced by :func:`build_elf`::

    ELF header | program headers | section contents (8-aligned) | section headers

A null section is inserted at index 0 and a ``.shstrtab`` is appended as
the last section.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional

SHT_PROGBITS = 1
SHT_SYMTAB = 2
SHT_STRTAB = 3
SHT_RELA = 4
SHT_REL = 9

EM_386 = 0x03
EM_X86_64 = 0x3E
EM_AARCH64 = 0xB7

ET_REL = 1
ET_EXEC = 2


@dataclass
class SectionSpec:
    name: str
    type: int = SHT_PROGBITS
    data: bytes = b""
    flags: int = 0
    address: int = 0
    link: int = 0
    info: int = 0
    alignment: int = 1
    entry_size: int = 0


@dataclass
class SegmentSpec:
    type: int
    flags: int
    offset: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    align: int


@dataclass
class BuiltElf:
    data: bytes
    bits: int
    endian: str
    header_size: int
    segment_table_offset: int
    section_table_offset: int
    section_entry_size: int
    string_table_index: int
    section_offsets: dict[str, int] = field(default_factory=dict)
    name_offsets: dict[str, int] = field(default_factory=dict)

    def offset_of(self, name: str) -> int:
        return self.section_offsets[name]


def _prefix(endian: str) -> str:
    return "<" if endian == "little" else ">"


def _align(value: int, to: int = 8) -> int:
    return (value + to - 1) & ~(to - 1)


def make_strtab(names: list[str]) -> tuple[bytes, dict[str, int]]:
    """Return a string table and each name's offset in it."""
    blob = bytearray(b"\x00")
    offsets: dict[str, int] = {"": 0}
    for name in names:
        if name in offsets:
            continue
        offsets[name] = len(blob)
        blob += name.encode("latin-1") + b"\x00"
    return bytes(blob), offsets


def pack_symbol(
    bits: int,
    endian: str,
    *,
    name: int = 0,
    value: int = 0,
    size: int = 0,
    info: int = 0,
    other: int = 0,
    shndx: int = 0,
) -> bytes:
    p = _prefix(endian)
    if bits == 64:
        return struct.pack(p + "IBBHQQ", name, info, other, shndx, value, size)
    return struct.pack(p + "IIIBBH", name, value, size, info, other, shndx)


def symbol_entry_size(bits: int) -> int:
    return 24 if bits == 64 else 16


def pack_relocation(
    bits: int,
    endian: str,
    *,
    offset: int,
    symbol: int,
    type: int,
    addend: Optional[int] = None,
) -> bytes:
    p = _prefix(endian)
    if bits == 64:
        info = (symbol << 32) | type
        if addend is None:
            return struct.pack(p + "QQ", offset, info)
        return struct.pack(p + "QQq", offset, info, addend)
    info = (symbol << 8) | type
    if addend is None:
        return struct.pack(p + "II", offset, info)
    return struct.pack(p + "IIi", offset, info, addend)


def relocation_entry_size(bits: int, with_addend: bool) -> int:
    word = bits // 8
    return word * (3 if with_addend else 2)


def build_elf(
    *,
    bits: int = 64,
    endian: str = "little",
    machine: int = EM_X86_64,
    elf_type: int = ET_REL,
    entry: int = 0,
    sections: Optional[list[SectionSpec]] = None,
    segments: Optional[list[SegmentSpec]] = None,
    shstrndx: Optional[int] = None,
) -> BuiltElf:
    """Assemble an ELF image from section and segment descriptions."""
    p = _prefix(endian)
    word = bits // 8
    ehsize = 64 if bits == 64 else 52
    phentsize = 56 if bits == 64 else 32
    shentsize = 64 if bits == 64 else 40
    sections = list(sections or [])
    segments = list(segments or [])

    names = [s.name for s in sections] + [".shstrtab"]
    shstrtab, name_offsets = make_strtab(names)
    all_sections = (
        [SectionSpec(name="", type=0)]
        + sections
        + [SectionSpec(name=".shstrtab", type=SHT_STRTAB, data=shstrtab)]
    )

    phoff = ehsize if segments else 0
    pos = ehsize + phentsize * len(segments)

    body = bytearray()
    offsets: dict[str, int] = {}
    section_offsets: list[int] = [0]
    for spec in all_sections[1:]:
        start = _align(pos)
        body += b"\x00" * (start - pos) + spec.data
        pos = start + len(spec.data)
        offsets.setdefault(spec.name, start)
        section_offsets.append(start)

    shoff = _align(pos)
    body += b"\x00" * (shoff - pos)

    string_index = len(all_sections) - 1 if shstrndx is None else shstrndx

    ident = b"\x7fELF" + bytes([2 if bits == 64 else 1, 1 if endian == "little" else 2, 1, 0, 0]) + b"\x00" * 7
    fmt = p + ("HHIQQQIHHHHHH" if bits == 64 else "HHIIIIIHHHHHH")
    header = ident + struct.pack(
        fmt,
        elf_type,
        machine,
        1,
        entry,
        phoff,
        shoff,
        0,
        ehsize,
        phentsize if segments else 0,
        len(segments),
        shentsize,
        len(all_sections),
        string_index,
    )

    phdrs = bytearray()
    for seg in segments:
        if bits == 64:
            phdrs += struct.pack(
                p + "IIQQQQQQ",
                seg.type, seg.flags, seg.offset, seg.vaddr, seg.paddr,
                seg.filesz, seg.memsz, seg.align,
            )
        else:
            phdrs += struct.pack(
                p + "IIIIIIII",
                seg.type, seg.offset, seg.vaddr, seg.paddr, seg.filesz,
                seg.memsz, seg.flags, seg.align,
            )

    shdrs = bytearray()
    shdr_fmt = p + ("IIQQQQIIQQ" if bits == 64 else "IIIIIIIIII")
    for spec, offset in zip(all_sections, section_offsets):
        shdrs += struct.pack(
            shdr_fmt,
            name_offsets[spec.name],
            spec.type,
            spec.flags,
            spec.address,
            offset,
            len(spec.data),
            spec.link,
            spec.info,
            spec.alignment,
            spec.entry_size,
        )

    data = bytes(header) + bytes(phdrs) + bytes(body) + bytes(shdrs)
    assert len(header) == ehsize
    return BuiltElf(
        data=data,
        bits=bits,
        endian=endian,
        header_size=ehsize,
        segment_table_offset=phoff,
        section_table_offset=shoff,
        section_entry_size=shentsize,
        string_table_index=string_index,
        section_offsets=offsets,
        name_offsets=name_offsets,
    )


def patch_section_size(built: BuiltElf, index: int, size: int) -> bytes:
    """Return *built*'s image with section *index*'s ``sh_size`` replaced."""
    record = built.section_table_offset + index * built.section_entry_size
    if built.bits == 64:
        at, fmt = record + 32, "Q"
    else:
        at, fmt = record + 20, "I"
    data = bytearray(built.data)
    struct.pack_into(_prefix(built.endian) + fmt, data, at, size)
    return bytes(data)


def patch_section_count(built: BuiltElf, count: int) -> bytes:
    """Return *built*'s image with ``e_shnum`` replaced."""
    at = 0x3C if built.bits == 64 else 0x30
    data = bytearray(built.data)
    struct.pack_into(_prefix(built.endian) + "H", data, at, count)
    return bytes(data)


# ---------------------------------------------------------------------------
# A relocatable object resembling ``gcc -c hello.c`` output
# ---------------------------------------------------------------------------

TEXT = bytes.fromhex("554889e5e800000000488b0500000000905dc3") + b"\x90" * 13
DATA = b"\x00" * 8

# Symbol indices in :func:`build_relocatable_object`
SYM_FILE = 1
SYM_TEXT = 2
SYM_MAIN = 3
SYM_COUNTER = 4
SYM_PUTS = 5


def build_relocatable_object(
    bits: int = 64,
    endian: str = "little",
    *,
    machine: Optional[int] = None,
    with_strtab: bool = True,
    with_symtab: bool = True,
    rela: bool = True,
) -> BuiltElf:
    """``.text``, ``.data``, ``.symtab``, ``.strtab`` and ``.rel(a).text``.

    Section indices: 1 ``.text``, 2 ``.data``, 3 ``.symtab``, 4 ``.strtab``,
    5 the relocation table.

    Symbols: 0 null, 1 FILE "hello.c" (ABS), 2 SECTION ``.text``,
    3 FUNC GLOBAL "main" in ``.text``, 4 OBJECT GLOBAL "counter" at
    ``.data+4``, 5 NOTYPE GLOBAL "puts" (undefined).

    Relocations: [0] ``main`` + 2 at ``.text+5`` (type 1), [1] ``counter``
    - 4 at ``.text+12`` (type 2), [2] ``puts`` - 4 at ``.text+20`` (type 4).
    REL tables carry no addends.
    """
    if machine is None:
        machine = EM_X86_64 if bits == 64 else EM_386

    strtab, str_offsets = make_strtab(["hello.c", "main", "counter", "puts"])
    sym = symbol_entry_size(bits)
    symbols = b"".join([
        pack_symbol(bits, endian),
        pack_symbol(bits, endian, name=str_offsets["hello.c"], info=0x04, shndx=0xFFF1),
        pack_symbol(bits, endian, info=0x03, shndx=1),
        pack_symbol(bits, endian, name=str_offsets["main"], info=0x12, shndx=1, size=len(TEXT)),
        pack_symbol(bits, endian, name=str_offsets["counter"], value=4, size=4, info=0x11, shndx=2),
        pack_symbol(bits, endian, name=str_offsets["puts"], info=0x10, shndx=0),
    ])

    def reloc(offset: int, symbol: int, rtype: int, addend: int) -> bytes:
        return pack_relocation(
            bits, endian, offset=offset, symbol=symbol, type=rtype,
            addend=addend if rela else None,
        )

    relocs = reloc(5, SYM_MAIN, 1, 2) + reloc(12, SYM_COUNTER, 2, -4) + reloc(20, SYM_PUTS, 4, -4)

    sections: list[SectionSpec] = [
        SectionSpec(".text", SHT_PROGBITS, TEXT, flags=0x6, alignment=16),
        SectionSpec(".data", SHT_PROGBITS, DATA, flags=0x3, alignment=4),
    ]
    if with_symtab:
        sections.append(SectionSpec(
            ".symtab", SHT_SYMTAB, symbols, link=4, info=SYM_MAIN,
            alignment=8, entry_size=sym,
        ))
    if with_strtab:
        sections.append(SectionSpec(".strtab", SHT_STRTAB, strtab))
    sections.append(SectionSpec(
        ".rela.text" if rela else ".rel.text",
        SHT_RELA if rela else SHT_REL,
        relocs,
        flags=0x40,
        link=3,
        info=1,
        alignment=8,
        entry_size=relocation_entry_size(bits, rela),
    ))
    return build_elf(bits=bits, endian=endian, machine=machine, sections=sections)
