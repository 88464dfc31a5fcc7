"""Value types and collaborator capabilities of a reconciliation pass."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kube_certer.integrations.kubernetes.models.ingress import Ingress, TLSEntry
    from kube_certer.integrations.kubernetes.models.secret import Secret


@dataclass(frozen=True)
class KeyPair:
    """Freshly issued certificate and private key, both PEM encoded."""

    public: bytes
    private: bytes = field(repr=False)


@dataclass(frozen=True)
class HostFailure:
    """A host-scoped failure recorded during a pass."""

    host: str
    secret_name: str
    stage: str
    message: str


@dataclass
class ReconciliationOutcome:
    """Result of one reconciliation pass over an ingress.

    Attributes:
        ingress: The ingress after the pass (possibly updated).
        eligible: False when the pass short-circuited with nothing to do.
        augmented: True when new TLS entries were added and persisted.
        converged: True when the TLS list was rewritten to the succeeded subset.
        succeeded_entries: Entries whose secret holds a valid certificate.
        reissued: Hosts that got a new certificate during this pass.
        skipped: Hosts whose existing certificate was still valid.
        failures: Host-scoped failures.
    """

    ingress: Ingress
    eligible: bool = True
    augmented: bool = False
    converged: bool = False
    succeeded_entries: list[TLSEntry] = field(default_factory=list)
    reissued: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[HostFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no host failed."""
        return not self.failures


# =============================================================================
# Collaborator capabilities
# =============================================================================


class IngressStore(Protocol):
    """Read and persist ingresses (implemented by ``IngressManager``)."""

    def get_ingress(self, name: str, namespace: str | None = None) -> Ingress: ...

    def update_ingress_tls(self, ingress: Ingress, tls: Sequence[TLSEntry]) -> Ingress: ...


class SecretStore(Protocol):
    """Get, create and update secrets (implemented by ``SecretManager``)."""

    def get_secret(self, name: str, namespace: str | None = None) -> Secret: ...

    def create_secret(self, secret: Secret) -> Secret: ...

    def update_secret(self, secret: Secret) -> Secret: ...


@runtime_checkable
class SigningAuthority(Protocol):
    """A CA that signs certificate signing requests."""

    def sign_csr(self, csr_pem: bytes, common_name: str, alt_names: list[str]) -> bytes: ...


@runtime_checkable
class HostAuthority(Protocol):
    """A CA that generates key and certificate for one host name."""

    def issue_host(self, common_name: str) -> tuple[bytes, bytes]: ...
