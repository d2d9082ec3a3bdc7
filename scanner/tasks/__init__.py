"""Background task definitions."""

from scanner.tasks.scan import ScanReport, run_scan, score_page

__all__ = [
    "ScanReport",
    "run_scan",
    "score_page",
]
