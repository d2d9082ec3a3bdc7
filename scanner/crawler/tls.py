"""Direct TLS handshake inspection of the final page host."""

import asyncio
import contextlib
import ssl
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TLSInfo:
    """Certificate and protocol facts learned from one handshake."""

    valid: bool
    issuer: str
    protocol: str
    expires_at: str | None = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "issuer": self.issuer,
            "protocol": self.protocol,
            "expires_at": self.expires_at,
        }


def _issuer_name(cert: dict) -> str:
    """Pick the issuer organization, falling back to its common name."""
    fields: dict[str, str] = {}
    for rdn in cert.get("issuer", ()):
        for key, value in rdn:
            fields.setdefault(key, value)
    return fields.get("organizationName") or fields.get("commonName") or "Unknown"


def _expiry_iso(cert: dict) -> str | None:
    not_after = cert.get("notAfter")
    if not not_after:
        return None
    try:
        timestamp = ssl.cert_time_to_seconds(not_after)
    except ValueError:
        return None
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat()


async def _handshake(host: str, port: int, verify: bool) -> TLSInfo:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    _, writer = await asyncio.open_connection(
        host, port, ssl=context, server_hostname=host
    )
    try:
        ssl_object = writer.get_extra_info("ssl_object")
        protocol = (ssl_object.version() if ssl_object else None) or "unknown"
        # getpeercert() is empty when verification is disabled
        cert = (ssl_object.getpeercert() if ssl_object else None) or {}
    finally:
        writer.close()
        with contextlib.suppress(OSError, ssl.SSLError, TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout=0.5)

    return TLSInfo(
        valid=verify,
        issuer=_issuer_name(cert) if cert else "Unknown",
        protocol=protocol,
        expires_at=_expiry_iso(cert) if cert else None,
    )


async def _inspect(host: str, port: int) -> TLSInfo:
    try:
        return await _handshake(host, port, verify=True)
    except ssl.SSLCertVerificationError as e:
        logger.info("tls_certificate_unverified", host=host, error=str(e))

    info = await _handshake(host, port, verify=False)
    return TLSInfo(valid=False, issuer=info.issuer, protocol=info.protocol, expires_at=None)


async def inspect_tls(host: str, port: int = 443, timeout: float = 3.0) -> TLSInfo | None:
    """
    Open a TLS connection to host and describe its certificate.

    A certificate that fails verification still yields a TLSInfo with
    valid=False; any other failure, including the timeout, yields None.

    Args:
        host: Host name, also used for SNI
        port: TLS port
        timeout: Budget for the whole inspection, unverified retry included

    Returns:
        TLSInfo or None
    """
    try:
        async with asyncio.timeout(timeout):
            return await _inspect(host, port)
    except (OSError, TimeoutError) as e:
        logger.warning("tls_inspection_failed", host=host, error=str(e) or type(e).__name__)
        return None
