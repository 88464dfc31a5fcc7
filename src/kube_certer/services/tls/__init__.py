"""TLS reconciliation core: coverage, expiry, issuance, secret sync, reconciler."""

from kube_certer.services.tls.coverage import (
    augment_spec,
    resolve_uncovered_hosts,
    secret_name_for,
)
from kube_certer.services.tls.exceptions import (
    CerterError,
    ConvergencePersistError,
    HostError,
    IssuanceFailedError,
    PassError,
    SecretSyncFailedError,
    SpecPersistError,
)
from kube_certer.services.tls.expiry import ExpiryDecision, ExpiryGate
from kube_certer.services.tls.issuer import (
    CertificateIssuer,
    CSRCertificateIssuer,
    SingleHostCertificateIssuer,
    create_issuer,
)
from kube_certer.services.tls.models import HostFailure, KeyPair, ReconciliationOutcome
from kube_certer.services.tls.reconciler import EntryStatus, Reconciler
from kube_certer.services.tls.secret_sync import SecretSynchronizer

__all__ = [
    "CSRCertificateIssuer",
    "CerterError",
    "CertificateIssuer",
    "ConvergencePersistError",
    "EntryStatus",
    "ExpiryDecision",
    "ExpiryGate",
    "HostError",
    "HostFailure",
    "IssuanceFailedError",
    "KeyPair",
    "PassError",
    "Reconciler",
    "ReconciliationOutcome",
    "SecretSyncFailedError",
    "SecretSynchronizer",
    "SingleHostCertificateIssuer",
    "SpecPersistError",
    "augment_spec",
    "create_issuer",
    "resolve_uncovered_hosts",
    "secret_name_for",
]
