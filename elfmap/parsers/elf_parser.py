"""
ELF Annotation Parser
======================

Runs the full decode pipeline over a raw ELF image and assembles the
annotation map:

    1. Header (validation, class/byte order, string-table bootstrap)
    2. Program headers (segments)
    3. Section headers (with names resolved)
    4. ``.symtab`` (value -> file offset resolution)
    5. REL/RELA tables of the affected sections

Each stage receives the outputs of the stages before it.  Structural
failures stop the pipeline and come back as a
:class:`~elfmap.core.models.ParseFailure` value; an inconsistent table
linkage raises :class:`~elfmap.core.errors.InconsistentTablesError`.

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - Linux man page: elf(5).
"""

from __future__ import annotations

from typing import Iterable, Optional

from shared.logger import ElfmapLogger

from elfmap.core.errors import StructuralError
from elfmap.core.models import ElfMap, ParseFailure, ParseResult
from elfmap.parsers.header import decode_header
from elfmap.parsers.primitives import CSTRING_LIMIT, ByteBuffer
from elfmap.parsers.relocations import DEFAULT_AFFECTED_SECTIONS, decode_relocations
from elfmap.parsers.sections import decode_sections
from elfmap.parsers.segments import decode_segments
from elfmap.parsers.symbols import decode_symbols

_silent_logger: Optional[ElfmapLogger] = None


def _default_logger() -> ElfmapLogger:
    """Shared silent logger for parsers built without one."""
    global _silent_logger
    if _silent_logger is None:
        _silent_logger = ElfmapLogger("parser", console_output=False)
    return _silent_logger


class ELFParser:
    """Byte-exact ELF decoder producing members and areas.

    Usage::

        parser = ELFParser(raw_bytes)
        result = parser.parse()
        if isinstance(result, ParseFailure):
            print(result.message)
        else:
            for member in result.members:
                print(hex(member.address), member.label)
    """

    def __init__(
        self,
        data: bytes,
        *,
        affected_sections: Iterable[str] = DEFAULT_AFFECTED_SECTIONS,
        cstring_limit: int = CSTRING_LIMIT,
        logger: Optional[ElfmapLogger] = None,
    ) -> None:
        """Initialise the parser.

        Args:
            data: Complete ELF file contents.
            affected_sections: Sections whose ``.rel``/``.rela`` companions
                are decoded.
            cstring_limit: Maximum characters read per string-table lookup.
            logger: Logger instance.  A shared silent one is used if not provided.
        """
        self._buf = ByteBuffer(data, cstring_limit=cstring_limit)
        self._affected_sections: tuple[str, ...] = tuple(affected_sections)
        self._logger: ElfmapLogger = logger or _default_logger()

    def parse(self) -> ParseResult:
        """Decode the image.

        Returns:
            An :class:`ElfMap` on success, a :class:`ParseFailure` when the
            image breaks a structural rule.

        Raises:
            InconsistentTablesError: ``.symtab`` is present without ``.strtab``.
        """
        with self._logger.operation("parse"):
            try:
                return self._decode()
            except StructuralError as exc:
                self._logger.warning("Decode failed: %s", exc.message)
                return ParseFailure(kind=exc.kind, message=exc.message, offset=exc.offset)

    def _decode(self) -> ElfMap:
        buf = self._buf
        log = self._logger

        head = decode_header(buf)
        header = head.header
        log.debug(
            "ELF%d %s-endian, machine 0x%x, %d segments, %d sections",
            header.bits, header.endianness.value, header.arch,
            header.segment_count, header.section_count,
        )

        seg = decode_segments(buf, header)
        sec = decode_sections(buf, header)
        sym = decode_symbols(buf, header, sec.sections)
        log.debug("Decoded %d symbols", len(sym.symbols))
        rel = decode_relocations(
            buf, header, sec.sections, sym.symbols, self._affected_sections,
        )
        log.debug("Decoded %d relocations", len(rel.relocations))

        return ElfMap(
            members=head.members + seg.members + sec.members + sym.members + rel.members,
            areas=head.areas + seg.areas + sec.areas + sym.areas + rel.areas,
            header=header,
            segments=seg.segments,
            sections=sec.sections,
            symbols=sym.symbols,
            relocations=rel.relocations,
        )


def parse_elf(
    data: bytes,
    affected_sections: Iterable[str] = DEFAULT_AFFECTED_SECTIONS,
) -> ParseResult:
    """Module-level convenience wrapper around :meth:`ELFParser.parse`."""
    return ELFParser(data, affected_sections=affected_sections).parse()
