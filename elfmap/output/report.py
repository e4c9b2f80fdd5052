"""
elfmap Report Generator
========================

Writes an :class:`~elfmap.core.models.AnalysisReport` as a structured JSON
document for machine consumption (binary inspector front ends, diffing,
downstream tooling).
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from elfmap.core.models import AnalysisReport

REPORT_TYPE: str = "elfmap_annotation_map"
REPORT_VERSION: str = "1.0.0"


class ElfmapReportGenerator:
    """Builds JSON reports.

    Usage::

        generator = ElfmapReportGenerator()
        generator.generate_json(report, "map.json")
    """

    def build(self, report: AnalysisReport) -> dict[str, Any]:
        """Return the report as a JSON-serialisable dictionary.

        Entity ``spans`` are omitted; the members already carry every
        field's byte range.
        """
        data: dict[str, Any] = {
            "report_type": REPORT_TYPE,
            "version": REPORT_VERSION,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "file": {
                "path": report.path,
                "size": report.size,
                "sha256": report.sha256,
            },
            "duration_seconds": round(report.duration_seconds, 6),
        }

        if report.failure is not None:
            data["status"] = "failed"
            data["error"] = report.failure.model_dump(mode="json")
            return data

        elf_map = report.elf_map
        data["status"] = "ok"
        if elf_map is None:
            return data

        data["header"] = elf_map.header.model_dump(mode="json")
        data["members"] = [m.model_dump(mode="json") for m in elf_map.members]
        data["areas"] = [a.model_dump(mode="json") for a in elf_map.areas]
        data["segments"] = [s.model_dump(mode="json", exclude={"spans"}) for s in elf_map.segments]
        data["sections"] = [s.model_dump(mode="json", exclude={"spans"}) for s in elf_map.sections]
        data["symbols"] = [s.model_dump(mode="json", exclude={"spans"}) for s in elf_map.symbols]
        data["relocations"] = [
            r.model_dump(mode="json", exclude={"spans"}) for r in elf_map.relocations
        ]
        return data

    def to_json(self, report: AnalysisReport, *, indent: int = 2) -> str:
        return json.dumps(self.build(report), indent=indent, ensure_ascii=False, default=str)

    def generate_json(self, report: AnalysisReport, output_path: str | Path) -> str:
        """Write the JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json(report))
        return str(path.resolve())
