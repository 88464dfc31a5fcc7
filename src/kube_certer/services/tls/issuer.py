"""Certificate issuance on top of a certificate authority capability.

The authority comes in two shapes (see ``SigningAuthority`` and
``HostAuthority``). ``create_issuer`` inspects the authority once and
returns the matching issuer; callers only ever see ``CertificateIssuer``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from kube_certer.services.tls.exceptions import IssuanceFailedError
from kube_certer.services.tls.models import HostAuthority, KeyPair, SigningAuthority

logger = structlog.get_logger()


class CertificateIssuer(ABC):
    """Obtains a fresh key pair for a TLS entry's hosts."""

    @abstractmethod
    def _issue(self, primary_host: str, all_hosts: list[str]) -> KeyPair: ...

    def issue(
        self,
        primary_host: str,
        all_hosts: Sequence[str] | None = None,
        *,
        secret_name: str = "",
    ) -> KeyPair:
        """Issue a certificate.

        Args:
            primary_host: Common name of the certificate.
            all_hosts: Every host the certificate should cover; defaults to
                just the primary host.
            secret_name: Secret the result is destined for, for error context.

        Returns:
            The issued key pair.

        Raises:
            IssuanceFailedError: If the authority fails in any way.
        """
        hosts = list(all_hosts) if all_hosts else [primary_host]
        if primary_host not in hosts:
            hosts.insert(0, primary_host)
        try:
            key_pair = self._issue(primary_host, hosts)
        except Exception as e:
            raise IssuanceFailedError(
                f"Certificate issuance failed: {e}",
                host=primary_host,
                secret_name=secret_name,
            ) from e
        logger.info("certificate_issued", host=primary_host, hosts=hosts)
        return key_pair


class CSRCertificateIssuer(CertificateIssuer):
    """Generates the private key locally and has the authority sign a CSR.

    The CSR carries the primary host as common name and every host as a DNS
    subject alternative name.
    """

    def __init__(self, authority: SigningAuthority, key_size: int = 2048) -> None:
        self._authority = authority
        self._key_size = key_size

    def _issue(self, primary_host: str, all_hosts: list[str]) -> KeyPair:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=self._key_size)
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, primary_host)]))
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(host) for host in all_hosts]),
                critical=False,
            )
            .sign(private_key, hashes.SHA256())
        )
        csr_pem = csr.public_bytes(serialization.Encoding.PEM)

        certificate = self._authority.sign_csr(csr_pem, primary_host, all_hosts)

        key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return KeyPair(public=certificate, private=key_pem)


class SingleHostCertificateIssuer(CertificateIssuer):
    """Lets the authority generate key and certificate for the primary host only."""

    def __init__(self, authority: HostAuthority) -> None:
        self._authority = authority

    def _issue(self, primary_host: str, all_hosts: list[str]) -> KeyPair:
        if len(all_hosts) > 1:
            logger.debug(
                "alt_names_ignored",
                host=primary_host,
                ignored=[h for h in all_hosts if h != primary_host],
            )
        certificate, private_key = self._authority.issue_host(primary_host)
        return KeyPair(public=certificate, private=private_key)


def create_issuer(
    authority: SigningAuthority | HostAuthority, *, key_size: int = 2048
) -> CertificateIssuer:
    """Pick the issuer variant the authority supports.

    A CSR-capable authority is preferred because it covers every host of an
    entry and keeps key generation local.

    Raises:
        TypeError: If the authority supports neither capability.
    """
    if isinstance(authority, SigningAuthority):
        return CSRCertificateIssuer(authority, key_size=key_size)
    if isinstance(authority, HostAuthority):
        return SingleHostCertificateIssuer(authority)
    raise TypeError(
        f"{type(authority).__name__} provides neither sign_csr() nor issue_host()"
    )
