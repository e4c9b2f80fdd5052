"""
Primitive Readers
==================

Endian-aware fixed-width integer reads, hex extraction and C-string reads
against an immutable byte buffer.

Position is held by an explicit :class:`Cursor` that the caller creates and
passes to every read, so ownership of "who may advance the position" is
always visible at the call site.  Table decoders seed a fresh cursor at the
start of every record they decode.

Every cursor read is bounds-checked and raises
:class:`~elfmap.core.errors.TruncatedDataError` instead of returning short
data.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from elfmap.core.errors import InvalidByteOrder, InvalidReadSize, TruncatedDataError
from elfmap.core.models import Endianness, FieldSpan, Member

_INT_SIZES: frozenset[int] = frozenset({1, 2, 4, 8})

# Default cap on characters returned by a string-table lookup
CSTRING_LIMIT: int = 256

# A record layout: ordered (field key, width in bytes) pairs
Layout = Sequence[tuple[str, int]]


class Cursor:
    """A mutable byte offset into a :class:`ByteBuffer`."""

    __slots__ = ("pos",)

    def __init__(self, pos: int = 0) -> None:
        self.pos = pos

    def seek(self, pos: int) -> None:
        """Jump to an absolute offset."""
        self.pos = pos

    def __repr__(self) -> str:
        return f"Cursor(0x{self.pos:x})"


class ByteBuffer:
    """Read-only view over the raw ELF image.

    Usage::

        buf = ByteBuffer(raw_bytes)
        cur = Cursor(0x10)
        e_type = buf.read_int(cur, "little", 2)
    """

    def __init__(self, data: bytes, *, cstring_limit: int = CSTRING_LIMIT) -> None:
        self._data: bytes = bytes(data)
        self._cstring_limit = cstring_limit

    def __len__(self) -> int:
        return len(self._data)

    @property
    def data(self) -> bytes:
        return self._data

    # ------------------------------------------------------------------ #
    #  Cursor reads
    # ------------------------------------------------------------------ #

    def read_bytes(self, cursor: Cursor, n: int) -> bytes:
        """Consume *n* bytes at the cursor and return them."""
        start = cursor.pos
        end = start + n
        if start < 0 or end > len(self._data):
            raise TruncatedDataError(start, n, len(self._data))
        cursor.pos = end
        return self._data[start:end]

    def read_hex(self, cursor: Cursor, n: int) -> str:
        """Consume *n* bytes and return them as a lowercase hex string."""
        return self.read_bytes(cursor, n).hex()

    def read_int(
        self,
        cursor: Cursor,
        endianness: Union[Endianness, str],
        size: int,
    ) -> int:
        """Consume an unsigned integer of *size* bytes.

        Args:
            cursor: Read position, advanced by *size*.
            endianness: ``"little"`` or ``"big"``.
            size: Field width; one of 1, 2, 4 or 8.

        Raises:
            InvalidReadSize: *size* is not a supported width.
            InvalidByteOrder: *endianness* is neither big nor little.
            TruncatedDataError: The field extends past the buffer.
        """
        if size not in _INT_SIZES:
            raise InvalidReadSize(f"Expected 1, 2, 4, or 8 as size but got {size}")
        try:
            order = Endianness(endianness)
        except ValueError:
            raise InvalidByteOrder(f"Invalid endianness {endianness!r}") from None
        return int.from_bytes(self.read_bytes(cursor, size), order.value)

    def read_record(
        self,
        cursor: Cursor,
        endianness: Endianness,
        layout: Layout,
    ) -> tuple[dict[str, int], dict[str, FieldSpan]]:
        """Read consecutive integer fields described by *layout*.

        Returns:
            ``(values, spans)`` -- both keyed by field name, in read order.
        """
        values: dict[str, int] = {}
        spans: dict[str, FieldSpan] = {}
        for key, size in layout:
            address = cursor.pos
            values[key] = self.read_int(cursor, endianness, size)
            spans[key] = FieldSpan(address=address, length=size)
        return values, spans

    def check_table(self, start: int, count: int, entry_size: int) -> None:
        """Ensure a table of *count* records of *entry_size* bytes fits.

        Raises:
            TruncatedDataError: The table extends past the buffer.
        """
        size = count * entry_size
        if start < 0 or start + size > len(self._data):
            raise TruncatedDataError(start, size, len(self._data))

    # ------------------------------------------------------------------ #
    #  Direct-address reads
    # ------------------------------------------------------------------ #

    def read_cstring(self, addr: int, limit: int | None = None) -> str:
        """Read a NUL-terminated string starting at *addr*.

        At most *limit* characters are returned (256 by default).  The scan
        also stops at the end of the buffer; an address outside the buffer
        yields an empty string.
        """
        limit = self._cstring_limit if limit is None else limit
        if addr < 0 or addr >= len(self._data):
            return ""
        end = self._data.find(b"\x00", addr, addr + limit)
        if end == -1:
            end = min(addr + limit, len(self._data))
        return self._data[addr:end].decode("latin-1")


def to_signed(value: int, size: int) -> int:
    """Reinterpret an unsigned *size*-byte integer as two's complement."""
    bits = size * 8
    if value >= 1 << (bits - 1):
        return value - (1 << bits)
    return value


# (label, file_ref, mem_ref) for one field
FieldLabel = tuple[str, Optional[int], Optional[int]]


def members_from_spans(
    spans: dict[str, FieldSpan],
    labels: dict[str, FieldLabel],
) -> list[Member]:
    """Build one :class:`Member` per span, in read order."""
    members: list[Member] = []
    for key, span in spans.items():
        label, file_ref, mem_ref = labels[key]
        members.append(Member(
            address=span.address,
            length=span.length,
            label=label,
            file_ref=file_ref,
            mem_ref=mem_ref,
        ))
    return members
