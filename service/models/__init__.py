"""SQLAlchemy models package."""

from service.models.scan import Scan, ScanCache, ScanResult, ScanStatus, new_scan_id

__all__ = [
    "Scan",
    "ScanCache",
    "ScanResult",
    "ScanStatus",
    "new_scan_id",
]
