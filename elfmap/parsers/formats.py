"""
ELF Constants and Value Formatting
====================================

Lookup tables turning small integer codes into the human-readable text
used in member labels.  Every formatter is total: codes without a table
entry render as ``"unknown"`` (or ``"Unknown"`` for header fields) rather
than failing, so any syntactically valid image decodes completely.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V ABI, Intel386 Architecture Processor Supplement.
    - System V ABI, AMD64 Architecture Processor Supplement.
"""

from __future__ import annotations

import enum


# ---------------------------------------------------------------------------
# Identification
# ---------------------------------------------------------------------------

ELF_MAGIC: bytes = b"\x7fELF"

ELFCLASS32: int = 1
ELFCLASS64: int = 2

ELFDATA2LSB: int = 1  # Little-endian
ELFDATA2MSB: int = 2  # Big-endian

EV_CURRENT: int = 1


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

class ElfType(enum.IntEnum):
    NONE = 0
    REL = 1
    EXEC = 2
    DYN = 3
    CORE = 4


_ELF_TYPE_NAMES: dict[ElfType, str] = {
    ElfType.NONE: "None",
    ElfType.REL: "Relocatable",
    ElfType.EXEC: "Executable",
    ElfType.DYN: "Shared object",
    ElfType.CORE: "Core",
}


class Machine(enum.IntEnum):
    X86 = 0x03
    MIPS = 0x08
    ARM = 0x28
    AMD64 = 0x3E
    AARCH64 = 0xB7
    RISCV = 0xF3


_MACHINE_NAMES: dict[Machine, str] = {
    Machine.X86: "x86",
    Machine.MIPS: "MIPS",
    Machine.ARM: "ARM",
    Machine.AMD64: "amd64",
    Machine.AARCH64: "ARMv8",
    Machine.RISCV: "RISC-V",
}


# ---------------------------------------------------------------------------
# Program headers
# ---------------------------------------------------------------------------

class SegmentType(enum.IntEnum):
    NULL = 0
    LOAD = 1
    DYNAMIC = 2
    INTERP = 3
    NOTE = 4
    SHLIB = 5
    PHDR = 6
    TLS = 7


_SEGMENT_TYPE_NAMES: dict[SegmentType, str] = {
    SegmentType.NULL: "null",
    SegmentType.LOAD: "load",
    SegmentType.DYNAMIC: "dynamic",
    SegmentType.INTERP: "interp",
    SegmentType.NOTE: "note",
    SegmentType.SHLIB: "shlib (invalid)",
    SegmentType.PHDR: "program header",
    SegmentType.TLS: "TLS - thread local storage",
}


class SegmentFlag(enum.IntFlag):
    X = 0x1
    W = 0x2
    R = 0x4


_SEGMENT_FLAG_NAMES: tuple[tuple[int, str], ...] = (
    (SegmentFlag.X, "exec"),
    (SegmentFlag.W, "write"),
    (SegmentFlag.R, "read"),
)


# ---------------------------------------------------------------------------
# Section headers
# ---------------------------------------------------------------------------

class SectionType(enum.IntEnum):
    NULL = 0
    PROGBITS = 1
    SYMTAB = 2
    STRTAB = 3
    RELA = 4
    HASH = 5
    DYNAMIC = 6
    NOTE = 7
    NOBITS = 8
    REL = 9
    SHLIB = 10
    DYNSYM = 11


class SectionFlag(enum.IntFlag):
    WRITE = 0x1
    ALLOC = 0x2
    EXECINSTR = 0x4


_SECTION_FLAG_NAMES: tuple[tuple[int, str], ...] = (
    (SectionFlag.WRITE, "write"),
    (SectionFlag.ALLOC, "alloc"),
    (SectionFlag.EXECINSTR, "execinstr"),
)

# Special section indices
SHN_UNDEF: int = 0
SHN_LORESERVE: int = 0xFF00
SHN_HIPROC: int = 0xFF1F
SHN_ABS: int = 0xFFF1
SHN_COMMON: int = 0xFFF2
SHN_XINDEX: int = 0xFFFF

_RESERVED_INDEX_NAMES: dict[int, str] = {
    SHN_HIPROC: "HIPROC",
    SHN_ABS: "ABS",
    SHN_COMMON: "COMMON",
    SHN_XINDEX: "XINDEX/HIRESERVE",
}


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

class SymbolType(enum.IntEnum):
    NOTYPE = 0
    OBJECT = 1
    FUNC = 2
    SECTION = 3
    FILE = 4
    COMMON = 5
    TLS = 6
    NUM = 7


class SymbolBinding(enum.IntEnum):
    LOCAL = 0
    GLOBAL = 1
    WEAK = 2


class SymbolVisibility(enum.IntEnum):
    DEFAULT = 0
    INTERNAL = 1
    HIDDEN = 2
    PROTECTED = 3


# ---------------------------------------------------------------------------
# Relocations
# ---------------------------------------------------------------------------

class RelocationTypeI386(enum.IntEnum):
    R_386_NONE = 0
    R_386_32 = 1
    R_386_PC32 = 2
    R_386_GOT32 = 3
    R_386_PLT32 = 4
    R_386_COPY = 5
    R_386_GLOB_DAT = 6
    R_386_JMP_SLOT = 7
    R_386_RELATIVE = 8
    R_386_GOTOFF = 9
    R_386_GOTPC = 10
    R_386_32PLT = 11
    R_386_TLS_TPOFF = 14
    R_386_TLS_IE = 15
    R_386_TLS_GOTIE = 16
    R_386_TLS_LE = 17
    R_386_TLS_GD = 18
    R_386_TLS_LDM = 19
    R_386_16 = 20
    R_386_PC16 = 21
    R_386_8 = 22
    R_386_PC8 = 23
    R_386_TLS_GD_32 = 24
    R_386_TLS_GD_PUSH = 25
    R_386_TLS_GD_CALL = 26
    R_386_TLS_GD_POP = 27
    R_386_TLS_LDM_32 = 28
    R_386_TLS_LDM_PUSH = 29
    R_386_TLS_LDM_CALL = 30
    R_386_TLS_LDM_POP = 31
    R_386_TLS_LDO_32 = 32
    R_386_TLS_IE_32 = 33
    R_386_TLS_LE_32 = 34
    R_386_TLS_DTPMOD32 = 35
    R_386_TLS_DTPOFF32 = 36
    R_386_TLS_TPOFF32 = 37
    R_386_SIZE32 = 38
    R_386_TLS_GOTDESC = 39
    R_386_TLS_DESC_CALL = 40
    R_386_TLS_DESC = 41
    R_386_IRELATIVE = 42
    R_386_GOT32X = 43


class RelocationTypeAmd64(enum.IntEnum):
    R_X86_64_NONE = 0
    R_X86_64_64 = 1
    R_X86_64_PC32 = 2
    R_X86_64_GOT32 = 3
    R_X86_64_PLT32 = 4
    R_X86_64_COPY = 5
    R_X86_64_GLOB_DAT = 6
    R_X86_64_JUMP_SLOT = 7
    R_X86_64_RELATIVE = 8
    R_X86_64_GOTPCREL = 9
    R_X86_64_32 = 10
    R_X86_64_32S = 11
    R_X86_64_16 = 12
    R_X86_64_PC16 = 13
    R_X86_64_8 = 14
    R_X86_64_PC8 = 15
    R_X86_64_DTPMOD64 = 16
    R_X86_64_DTPOFF64 = 17
    R_X86_64_TPOFF64 = 18
    R_X86_64_TLSGD = 19
    R_X86_64_TLSLD = 20
    R_X86_64_DTPOFF32 = 21
    R_X86_64_GOTTPOFF = 22
    R_X86_64_TPOFF32 = 23
    R_X86_64_PC64 = 24
    R_X86_64_GOTOFF64 = 25
    R_X86_64_GOTPC32 = 26
    R_X86_64_GOT64 = 27
    R_X86_64_GOTPCREL64 = 28
    R_X86_64_GOTPC64 = 29
    R_X86_64_GOTPLT64 = 30
    R_X86_64_PLTOFF64 = 31
    R_X86_64_SIZE32 = 32
    R_X86_64_SIZE64 = 33
    R_X86_64_GOTPC32_TLSDESC = 34
    R_X86_64_TLSDESC_CALL = 35
    R_X86_64_TLSDESC = 36
    R_X86_64_IRELATIVE = 37
    R_X86_64_RELATIVE64 = 38
    R_X86_64_GOTPCRELX = 41
    R_X86_64_REX_GOTPCRELX = 42


_RELOCATION_TABLES: dict[int, type[enum.IntEnum]] = {
    Machine.X86: RelocationTypeI386,
    Machine.AMD64: RelocationTypeAmd64,
}


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

def _enum_name(enum_cls: type[enum.IntEnum], value: int) -> str | None:
    try:
        return enum_cls(value).name
    except ValueError:
        return None


def _format_mask(value: int, names: tuple[tuple[int, str], ...]) -> str:
    if value == 0:
        return "none"
    parts: list[str] = []
    known = 0
    for bit, name in names:
        known |= int(bit)
        if value & int(bit):
            parts.append(name)
    if value & ~known:
        parts.append("unknown")
    return "|".join(parts)


def format_elf_type(value: int) -> str:
    try:
        return _ELF_TYPE_NAMES[ElfType(value)]
    except ValueError:
        return "Unknown"


def format_machine(value: int) -> str:
    try:
        return _MACHINE_NAMES[Machine(value)]
    except ValueError:
        return "Unknown"


def format_segment_type(value: int) -> str:
    try:
        return _SEGMENT_TYPE_NAMES[SegmentType(value)]
    except ValueError:
        return "unknown"


def format_segment_flags(value: int) -> str:
    """Render program header flags, e.g. ``"exec|read"``."""
    return _format_mask(value, _SEGMENT_FLAG_NAMES)


def format_section_type(value: int) -> str:
    name = _enum_name(SectionType, value)
    return name.lower() if name else "unknown"


def format_section_flags(value: int) -> str:
    """Render section flags, e.g. ``"alloc|execinstr"``."""
    return _format_mask(value, _SECTION_FLAG_NAMES)


def format_symbol_info(value: int) -> str:
    """Render ``st_info`` as ``"<type>, <binding>"``.

    The type lives in the low nibble, the binding in the high nibble.  This
    differs from a plain symbol-type lookup of the whole byte: both halves
    are named, so ``0x12`` reads ``"FUNC, GLOBAL"`` rather than a bare type.
    """
    sym_type = _enum_name(SymbolType, value & 0xF) or "unknown"
    binding = _enum_name(SymbolBinding, value >> 4) or "unknown"
    return f"{sym_type}, {binding}"


def format_symbol_other(value: int) -> str:
    """Render ``st_other`` as a symbol visibility."""
    return _enum_name(SymbolVisibility, value) or "unknown"


def format_symbol_section(value: int, section_name: str | None = None) -> str:
    """Render a symbol's section index, honouring the reserved range."""
    if value >= SHN_LORESERVE:
        reserved = _RESERVED_INDEX_NAMES.get(value)
        return reserved if reserved else f"reserved index 0x{value:x}"
    if value == SHN_UNDEF:
        return "[0] undefined"
    if section_name is not None:
        return f'[{value}] "{section_name}"'
    return f"[{value}]"


def format_relocation_type(machine: int, value: int) -> str:
    """Return the relocation mnemonic for *value* on architecture *machine*."""
    table = _RELOCATION_TABLES.get(machine)
    if table is None:
        return f"<no relocation names for architecture 0x{machine:x}>"
    return _enum_name(table, value) or "unknown"
