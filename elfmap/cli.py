"""
elfmap CLI -- ELF Annotation Map
=================================

Click-based command-line interface.  Decodes one ELF file and prints its
annotation map (members and areas) or writes it as JSON.

Usage::

    # Members and areas of an object file
    elfmap hello.o

    # Also decode .rel/.rela companions of .data
    elfmap hello.o --section .text --section .data

    # JSON to stdout
    elfmap hello.o --json

    # JSON report file
    elfmap hello.o --output map.json

Exit status:
    0  the file was decoded
    1  the file is not a decodable ELF image, or could not be read
    2  the section tables are inconsistent (``.symtab`` without ``.strtab``)

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from dataclasses import replace

import click
from rich.markup import escape

from shared.config import ElfmapConfig
from shared.console import ElfmapConsole
from shared.logger import ElfmapLogger

from elfmap.core.engine import MapEngine
from elfmap.core.errors import InconsistentTablesError
from elfmap.output.console import ElfmapConsoleOutput
from elfmap.output.report import ElfmapReportGenerator


EXIT_NOT_DECODABLE = 1
EXIT_INCONSISTENT = 2


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------

@click.command("elfmap")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to an elfmap.toml configuration file.",
)
@click.option(
    "--section", "-s",
    "sections",
    multiple=True,
    help="Section whose .rel/.rela companions are decoded (repeatable). Default: .text",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output the annotation map as JSON to stdout.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--areas/--no-areas",
    default=True,
    help="Show the area table (default: on).",
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Maximum member rows displayed; 0 shows all.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
def elfmap_cli(
    path: str,
    config_path: str | None,
    sections: tuple[str, ...],
    json_output: bool,
    output_path: str | None,
    areas: bool,
    limit: int | None,
    verbose: bool,
) -> None:
    """elfmap -- annotate every byte range of an ELF file.

    PATH is the ELF file (object, executable or shared library) to decode.

    Examples:

    \b
        elfmap /usr/lib/crt1.o
        elfmap hello.o --json > map.json
        elfmap hello.o -s .text -s .data --no-areas
    """
    console = ElfmapConsole()

    try:
        config = ElfmapConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot load configuration: {escape(str(exc))}")
        sys.exit(EXIT_NOT_DECODABLE)

    if sections:
        config.parser = replace(config.parser, affected_sections=list(sections))

    settings = config.global_settings
    logger = ElfmapLogger(
        "cli",
        log_level="DEBUG" if verbose or settings.debug else "WARNING",
        log_file=settings.log_file,
        json_logs=settings.log_json,
    )

    engine = MapEngine(config=config, logger=logger)

    try:
        report = engine.analyze(path)
    except InconsistentTablesError as exc:
        console.error(escape(str(exc)))
        sys.exit(EXIT_INCONSISTENT)
    except (OSError, ValueError) as exc:
        console.error(f"Analysis failed: {escape(str(exc))}")
        if verbose:
            logger.exception("Analysis failed")
        sys.exit(EXIT_NOT_DECODABLE)

    report_gen = ElfmapReportGenerator()

    if output_path:
        written = report_gen.generate_json(report, output_path)
        if not json_output:
            console.success(f"JSON report saved: {escape(written)}")

    if json_output:
        click.echo(report_gen.to_json(report))
    else:
        max_members = config.parser.max_members_displayed if limit is None else limit
        ElfmapConsoleOutput(
            console=console,
            max_members=max_members,
            show_areas=areas,
        ).display(report)
        console.info(f"Decode Duration: {report.duration_seconds:.3f}s")

    if not report.ok:
        sys.exit(EXIT_NOT_DECODABLE)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``elfmap`` console script."""
    elfmap_cli()


if __name__ == "__main__":
    main()
