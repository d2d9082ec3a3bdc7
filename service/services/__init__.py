"""Service layer for business logic."""

from service.services.scan_service import normalize_url, request_scan, validate_url

__all__ = [
    "normalize_url",
    "request_scan",
    "validate_url",
]
