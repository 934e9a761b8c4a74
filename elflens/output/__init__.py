"""
ElfLens Output
==============

Rich console rendering and JSON report generation.
"""

from elflens.output.console import LensConsoleOutput
from elflens.output.report import LensReportGenerator

__all__ = ["LensConsoleOutput", "LensReportGenerator"]
