"""Decide whether a stored certificate must be reissued."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog
from cryptography import x509

logger = structlog.get_logger()


class ExpiryDecision(str, Enum):
    """Outcome of the expiry check for one TLS entry."""

    SKIP = "skip"
    REISSUE = "reissue"


def load_certificate(data: bytes) -> x509.Certificate:
    """Parse the leaf certificate from PEM (first block) or DER bytes.

    Raises:
        ValueError: If the bytes are neither, or carry an unknown X.509 version.
    """
    try:
        if b"-----BEGIN" in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except x509.InvalidVersion as e:
        # not a ValueError subclass
        raise ValueError(f"Unsupported certificate version: {e}") from e


def certificate_not_after(data: bytes | None) -> datetime | None:
    """``notAfter`` of the stored certificate, or None if absent or unreadable."""
    if not data:
        return None
    try:
        return load_certificate(data).not_valid_after_utc
    except ValueError:
        return None


class ExpiryGate:
    """Renewal policy for stored certificates.

    A certificate is kept only if it parses and ``now`` is before its
    ``notAfter`` minus the renewal window. Everything else, including bytes
    that fail to parse, leads to reissuance so a corrupt secret heals itself
    on the next pass.
    """

    def __init__(
        self,
        renew_before: timedelta = timedelta(0),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            renew_before: Reissue this long before ``notAfter``.
            clock: Returns the current aware UTC time; defaults to ``datetime.now(UTC)``.
        """
        self._renew_before = renew_before
        self._clock = clock or (lambda: datetime.now(UTC))

    def check(self, certificate: bytes | None) -> ExpiryDecision:
        """Decide between keeping and reissuing a stored certificate.

        Args:
            certificate: Stored ``tls.crt`` bytes, or None when there is none.

        Returns:
            ``ExpiryDecision.SKIP`` or ``ExpiryDecision.REISSUE``.
        """
        if not certificate:
            return ExpiryDecision.REISSUE

        try:
            not_after = load_certificate(certificate).not_valid_after_utc
        except ValueError as e:
            logger.warning("certificate_unparseable", error=str(e))
            return ExpiryDecision.REISSUE

        if self._clock() >= not_after - self._renew_before:
            logger.debug("certificate_expiring", not_after=not_after.isoformat())
            return ExpiryDecision.REISSUE
        return ExpiryDecision.SKIP
