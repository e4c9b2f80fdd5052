"""elfmap output: terminal display and JSON reports."""

from elfmap.output.console import ElfmapConsoleOutput
from elfmap.output.report import ElfmapReportGenerator

__all__ = ["ElfmapConsoleOutput", "ElfmapReportGenerator"]
