"""
elfmap Analysis Engine
=======================

Wraps the pure decode pipeline with the file-level concerns around it:
reading the image from disk, enforcing the configured size limit, hashing,
timing and logging.  The engine produces an
:class:`~elfmap.core.models.AnalysisReport`.

Pipeline:
    1. Read the file and check its size against ``parser.max_file_size``
    2. Compute the SHA-256 of the contents
    3. Run :class:`~elfmap.parsers.elf_parser.ELFParser`
    4. Record either the annotation map or the structural failure
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from shared.config import ElfmapConfig
from shared.logger import ElfmapLogger

from elfmap.core.models import AnalysisReport, ParseFailure
from elfmap.parsers.elf_parser import ELFParser


class MapEngine:
    """Runs the elfmap decode over a file or an in-memory buffer.

    Usage::

        engine = MapEngine()
        report = engine.analyze("/path/to/binary.o")
        if report.ok:
            print(len(report.elf_map.members))
        else:
            print(report.failure.message)
    """

    def __init__(
        self,
        config: ElfmapConfig | None = None,
        logger: ElfmapLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: elfmap configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: ElfmapConfig = config or ElfmapConfig()
        self._logger: ElfmapLogger = logger or ElfmapLogger(
            "engine",
            log_level=self._config.global_settings.log_level,
            log_file=self._config.global_settings.log_file,
            json_logs=self._config.global_settings.log_json,
        )

    @property
    def config(self) -> ElfmapConfig:
        return self._config

    def analyze(self, file_path: str | Path) -> AnalysisReport:
        """Read *file_path* and decode it.

        Raises:
            FileNotFoundError: The file does not exist.
            ValueError: The file exceeds ``parser.max_file_size``.
            InconsistentTablesError: ``.symtab`` is present without ``.strtab``.
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        size = path.stat().st_size
        max_size = self._config.parser.max_file_size
        if size > max_size:
            raise ValueError(f"File too large: {size:,} bytes (max: {max_size:,} bytes)")

        self._logger.info("Starting analysis of %s", path, size=size)
        return self.analyze_bytes(path.read_bytes(), path=str(path.resolve()))

    def analyze_bytes(self, data: bytes, *, path: str = "<memory>") -> AnalysisReport:
        """Decode an in-memory ELF image."""
        started = datetime.now(timezone.utc)
        parser = ELFParser(
            data,
            affected_sections=self._config.parser.affected_sections,
            cstring_limit=self._config.parser.cstring_limit,
            logger=self._logger,
        )

        with self._logger.timed(f"decode {path}") as timer:
            result = parser.parse()

        report = AnalysisReport(
            path=path,
            size=len(data),
            sha256=hashlib.sha256(data).hexdigest(),
            analyzed_at=started,
            duration_seconds=timer.elapsed,
        )
        if isinstance(result, ParseFailure):
            self._logger.error("Not decodable: %s", result.message, kind=result.kind.value)
            return report.model_copy(update={"failure": result})

        self._logger.info(
            "Decoded %d members, %d areas",
            len(result.members),
            len(result.areas),
        )
        return report.model_copy(update={"elf_map": result})
