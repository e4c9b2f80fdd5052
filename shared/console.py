"""
elfmap Console Interface
=========================

Rich-powered console abstraction giving every elfmap front end the same
styling for section rules, status messages and tables.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_ELFMAP_THEME = Theme(
    {
        "elfmap.section": "bold bright_magenta",
        "elfmap.success": "bold green",
        "elfmap.warning": "bold yellow",
        "elfmap.error": "bold red",
        "elfmap.info": "bold bright_blue",
        "elfmap.dim": "dim white",
        "elfmap.offset": "bright_cyan",
        "elfmap.ref": "bright_green",
    }
)


class ElfmapConsole:
    """Unified console for elfmap output.

    Usage::

        con = ElfmapConsole()
        con.section("Members")
        con.success("Decoded 112 members")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        width: int | None = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (library / test mode).
            record: Enable Rich recording for HTML / text export.
            width:  Fixed terminal width; auto-detected when ``None``.
        """
        self._console = Console(
            theme=_ELFMAP_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            width=width,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    def section(self, title: str) -> None:
        """Print a section rule."""
        self._console.rule(f"  {title}  ", style="elfmap.section", characters="─")
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Status messages
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[elfmap.success][✔] SUCCESS:[/elfmap.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[elfmap.warning][⚠] WARNING:[/elfmap.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[elfmap.error][✘] ERROR:[/elfmap.error] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[elfmap.info][ℹ] INFO:[/elfmap.info] {message}")

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Row tuples; each cell is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        self._console.rule(style=style)

    def export_text(self) -> str:
        """Export recorded output as plain text (requires ``record=True``)."""
        return self._console.export_text()
