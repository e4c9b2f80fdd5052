"""
elfmap Console Output
======================

Rich-powered terminal display of an annotation map: a header summary panel,
the member table (address, length, label, cross references) and the area
table.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shared.console import ElfmapConsole

from elfmap.core.models import AnalysisReport, Area, ElfHeader, Member
from elfmap.parsers.formats import format_elf_type, format_machine


def _hex(value: Optional[int]) -> str:
    return "-" if value is None else f"0x{value:x}"


class ElfmapConsoleOutput:
    """Terminal renderer for :class:`AnalysisReport` objects.

    Usage::

        output = ElfmapConsoleOutput()
        output.display(report)
    """

    def __init__(
        self,
        console: ElfmapConsole | None = None,
        *,
        max_members: int = 200,
        show_areas: bool = True,
    ) -> None:
        """Initialise the renderer.

        Args:
            console: Optional console; a new one is created if not provided.
            max_members: Maximum member rows printed (0 for no limit).
            show_areas: Whether to print the area table.
        """
        self._console: ElfmapConsole = console or ElfmapConsole()
        self._max_members = max_members
        self._show_areas = show_areas

    def display(self, report: AnalysisReport) -> None:
        """Display the complete report."""
        self._console.section("elfmap -- ELF Annotation Map")

        if report.failure is not None:
            self._console.error(escape(report.failure.message))
            return
        if report.elf_map is None:
            return

        elf_map = report.elf_map
        self.display_header(report, elf_map.header)
        self.display_members(elf_map.members)
        if self._show_areas:
            self.display_areas(elf_map.areas)
        self._console.info(
            f"{len(elf_map.segments)} segments, {len(elf_map.sections)} sections, "
            f"{len(elf_map.symbols)} symbols, {len(elf_map.relocations)} relocations"
        )
        self._console.divider()

    def display_header(self, report: AnalysisReport, header: ElfHeader) -> None:
        lines: list[str] = [
            f"[bold]File:[/bold]         {escape(report.path)}",
            f"[bold]Size:[/bold]         {report.size:,} bytes",
            f"[bold]Class:[/bold]        ELF{header.bits} ({header.endianness.value}-endian)",
            f"[bold]Type:[/bold]         {format_elf_type(header.type)}",
            f"[bold]Machine:[/bold]      {format_machine(header.arch)} (0x{header.arch:x})",
            f"[bold]Entry Point:[/bold]  0x{header.entry:x}",
        ]
        if report.sha256:
            lines.append(f"[bold]SHA-256:[/bold]      {report.sha256}")

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]ELF Header[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_members(self, members: list[Member]) -> None:
        self._console.section("Members")

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        tbl.add_column("Address", style="elfmap.offset", justify="right")
        tbl.add_column("Len", justify="right")
        tbl.add_column("Label", ratio=1)
        tbl.add_column("File Ref", style="elfmap.ref", justify="right")
        tbl.add_column("Mem Ref", style="elfmap.ref", justify="right")

        shown = members if self._max_members <= 0 else members[: self._max_members]
        for m in shown:
            tbl.add_row(
                f"0x{m.address:x}",
                str(m.length),
                escape(m.label),
                _hex(m.file_ref),
                _hex(m.mem_ref),
            )

        self._console.rich.print(tbl)
        if len(shown) < len(members):
            self._console.info(
                f"Showing {len(shown)} of {len(members)} members. "
                f"Use --limit 0 or --json to see all of them."
            )
        self._console.blank()

    def display_areas(self, areas: list[Area]) -> None:
        self._console.section("Areas")
        self._console.table(
            "",
            ["Offset", "Length", "Label"],
            [(f"0x{a.offset:x}", f"0x{a.length:x}", escape(a.label)) for a in areas],
            styles=["elfmap.offset", "", ""],
        )
        self._console.blank()
