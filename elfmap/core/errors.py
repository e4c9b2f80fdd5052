"""
elfmap Error Types
===================

Every decode failure is tagged with an :class:`ErrorKind`.  Two classes of
failure exist:

    - :class:`StructuralError` -- the image violates a fixed structural
      expectation (bad magic, unknown class byte, truncated read, ...).
      The parser converts these into a returned
      :class:`~elfmap.core.models.ParseFailure`.
    - :class:`InconsistentTablesError` -- the tables contradict each other
      in a way that makes name resolution impossible.  These are raised
      to the caller.

Misuse of the primitive readers (an unsupported integer width or byte
order) is a programming error and raises a :class:`ValueError` subclass.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Tag identifying which expectation a decode failure violated."""
    NOT_ELF = "not_elf"
    INVALID_CLASS = "invalid_class"
    INVALID_ENDIANNESS = "invalid_endianness"
    INVALID_VERSION = "invalid_version"
    INVALID_ABI_TYPE = "invalid_abi_type"
    INVALID_ABI_VERSION = "invalid_abi_version"
    INVALID_FORMAT_VERSION = "invalid_format_version"
    TRUNCATED = "truncated"
    MISSING_STRING_TABLE = "missing_string_table"


class ElfMapError(Exception):
    """Base class for all elfmap decode errors.

    Attributes:
        kind: The violated expectation.
        offset: Byte offset where the check failed, if one applies.
        message: Human-readable description suitable for direct display.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.offset = offset


class StructuralError(ElfMapError):
    """The image breaks a fixed structural rule of the ELF format."""


class InconsistentTablesError(ElfMapError):
    """Two tables of the image reference each other inconsistently."""


class TruncatedDataError(StructuralError):
    """A read ran past the end of the buffer."""

    def __init__(self, offset: int, size: int, available: int) -> None:
        super().__init__(
            ErrorKind.TRUNCATED,
            f"Unexpected end of data at 0x{offset:x} "
            f"(needed {size} bytes, {max(available - offset, 0)} left)",
            offset,
        )
        self.size = size


class InvalidReadSize(ValueError):
    """``read_int`` was asked for a width other than 1, 2, 4 or 8."""


class InvalidByteOrder(ValueError):
    """``read_int`` was given a byte order other than big or little."""
