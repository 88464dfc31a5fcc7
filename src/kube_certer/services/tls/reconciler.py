"""One reconciliation pass over an ingress.

A pass moves through these states:

    Ineligible  -> nothing to do, returned immediately
    Augmenting  -> uncovered rule hosts get a TLS entry, persisted if changed
    PerHostLoop -> each entry is kept, or reissued and written to its secret
    Converging  -> the ingress TLS list is cut down to the entries that succeeded
    Done

Host failures are recorded on the outcome and never stop the loop. Failing to
persist the ingress (augmenting or converging) raises a ``PassError``.
Nothing is carried between passes, so a failed pass is retried by running
it again.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from kube_certer.core.config.models import ReconcilerSettings
from kube_certer.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesNotFoundError,
)
from kube_certer.services.tls.coverage import augment_spec
from kube_certer.services.tls.exceptions import (
    ConvergencePersistError,
    HostError,
    SpecPersistError,
)
from kube_certer.services.tls.expiry import ExpiryDecision, ExpiryGate, certificate_not_after
from kube_certer.services.tls.models import (
    HostFailure,
    IngressStore,
    ReconciliationOutcome,
    SecretStore,
)
from kube_certer.services.tls.secret_sync import SecretSynchronizer

if TYPE_CHECKING:
    from kube_certer.integrations.kubernetes.models.ingress import Ingress, TLSEntry
    from kube_certer.services.tls.issuer import CertificateIssuer

logger = structlog.get_logger()


@dataclass(frozen=True)
class EntryResult:
    """What happened to one TLS entry during the per-host loop."""

    entry: TLSEntry
    decision: ExpiryDecision
    failure: HostFailure | None = None


@dataclass(frozen=True)
class EntryStatus:
    """Read-only view of a TLS entry's certificate, for reporting."""

    entry: TLSEntry
    namespace: str
    secret_found: bool
    not_after: datetime | None
    decision: ExpiryDecision


@dataclass
class _PassLock:
    """Lock serializing passes over one ingress, with its holder count."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class Reconciler:
    """Keeps the TLS entries of ingresses backed by valid certificates.

    Example:
        ```python
        reconciler = Reconciler(
            IngressManager(client),
            SecretManager(client),
            create_issuer(VaultSigningClient(vault_config)),
            ReconcilerSettings(force_all_hosts=True),
        )
        outcome = reconciler.reconcile_by_name("web", "shop")
        ```
    """

    def __init__(
        self,
        ingresses: IngressStore,
        secrets: SecretStore,
        issuer: CertificateIssuer,
        settings: ReconcilerSettings | None = None,
        *,
        gate: ExpiryGate | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            ingresses: Ingress read/update capability.
            secrets: Secret get/create/update capability.
            issuer: Certificate issuer.
            settings: Pass settings; defaults apply when omitted.
            gate: Expiry gate; built from ``settings.renew_before`` when omitted.
        """
        self._ingresses = ingresses
        self._secrets = secrets
        self._issuer = issuer
        self._settings = settings or ReconcilerSettings()
        self._gate = gate or ExpiryGate(renew_before=self._settings.renew_before)
        self._synchronizer = SecretSynchronizer(secrets)
        self._pass_locks: dict[tuple[str, str], _PassLock] = {}
        self._pass_locks_guard = threading.Lock()

    # =========================================================================
    # Entry points
    # =========================================================================

    def is_eligible(self, ingress: Ingress) -> bool:
        """Whether an ingress should be reconciled at all.

        Either the force-all-hosts setting is on, or the ingress carries the
        enabling annotation and already declares at least one TLS entry.
        """
        if self._settings.force_all_hosts:
            return True
        annotated = bool(ingress.annotations.get(self._settings.enabling_annotation))
        return annotated and bool(ingress.spec.tls)

    def reconcile_by_name(self, name: str, namespace: str | None = None) -> ReconciliationOutcome:
        """Read an ingress and run one pass over it.

        Raises:
            KubernetesError: If the ingress cannot be read.
            PassError: If the pass fails to persist the ingress.
        """
        return self.reconcile(self._ingresses.get_ingress(name, namespace))

    def reconcile(self, ingress: Ingress) -> ReconciliationOutcome:
        """Run one reconciliation pass over an ingress.

        Args:
            ingress: The ingress as currently stored in the cluster.

        Returns:
            The pass outcome, including the possibly updated ingress.

        Raises:
            SpecPersistError: If augmented TLS entries could not be saved.
            ConvergencePersistError: If the TLS list could not be converged.
        """
        log = logger.bind(ingress=ingress.qualified_name)

        if not self.is_eligible(ingress):
            log.info("ingress_ineligible", tls_entries=len(ingress.spec.tls))
            return ReconciliationOutcome(ingress=ingress, eligible=False)

        with self._serialized(ingress.key):
            return self._run_pass(ingress, log)

    def inspect(self, ingress: Ingress) -> list[EntryStatus]:
        """Report each TLS entry's certificate state without changing anything."""
        namespace = self._secret_namespace(ingress)
        statuses = []
        for entry in ingress.spec.tls:
            certificate, found = self._stored_certificate(namespace, entry.secret_name)
            statuses.append(
                EntryStatus(
                    entry=entry,
                    namespace=namespace,
                    secret_found=found,
                    not_after=certificate_not_after(certificate),
                    decision=self._gate.check(certificate),
                )
            )
        return statuses

    # =========================================================================
    # Pass stages
    # =========================================================================

    def _run_pass(self, ingress: Ingress, log: structlog.BoundLogger) -> ReconciliationOutcome:
        outcome = ReconciliationOutcome(ingress=ingress)
        log.info("reconciling_ingress", tls_entries=len(ingress.spec.tls))

        working = self._augment(ingress, outcome, log)

        namespace = self._secret_namespace(working)
        entries = [entry for entry in working.spec.tls if entry.hosts]
        for result in self._process_entries(namespace, entries):
            host = result.entry.hosts[0]
            if result.failure is not None:
                outcome.failures.append(result.failure)
                continue
            outcome.succeeded_entries.append(result.entry)
            if result.decision is ExpiryDecision.SKIP:
                outcome.skipped.append(host)
            else:
                outcome.reissued.append(host)

        outcome.ingress = self._converge(working, outcome, log)

        log.info(
            "reconciled_ingress",
            reissued=len(outcome.reissued),
            skipped=len(outcome.skipped),
            failed=len(outcome.failures),
            converged=outcome.converged,
        )
        return outcome

    def _augment(
        self, ingress: Ingress, outcome: ReconciliationOutcome, log: structlog.BoundLogger
    ) -> Ingress:
        spec, changed = augment_spec(ingress.spec, strict=self._settings.strict_coverage)
        if not changed:
            return ingress

        log.info("adding_tls_entries", added=len(spec.tls) - len(ingress.spec.tls))
        try:
            updated = self._ingresses.update_ingress_tls(ingress, spec.tls)
        except KubernetesError as e:
            raise SpecPersistError(
                f"Error updating ingress with new TLS entries: {e}",
                namespace=ingress.namespace,
                ingress=ingress.name,
            ) from e
        outcome.augmented = True
        return updated

    def _process_entries(self, namespace: str, entries: list[TLSEntry]) -> list[EntryResult]:
        workers = min(self._settings.host_concurrency, len(entries))
        if workers <= 1:
            return [self._reconcile_entry(namespace, entry) for entry in entries]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="certer-host") as pool:
            return list(pool.map(lambda entry: self._reconcile_entry(namespace, entry), entries))

    def _reconcile_entry(self, namespace: str, entry: TLSEntry) -> EntryResult:
        host = entry.hosts[0]
        log = logger.bind(namespace=namespace, secret=entry.secret_name, host=host)

        certificate, _ = self._stored_certificate(namespace, entry.secret_name)
        decision = self._gate.check(certificate)
        if decision is ExpiryDecision.SKIP:
            log.debug("certificate_valid")
            return EntryResult(entry=entry, decision=decision)

        try:
            key_pair = self._issuer.issue(host, entry.hosts, secret_name=entry.secret_name)
            self._synchronizer.sync(namespace, entry.secret_name, key_pair, host=host)
        except HostError as e:
            log.warning("host_reconcile_failed", stage=e.stage, error=e.message)
            return EntryResult(
                entry=entry,
                decision=decision,
                failure=HostFailure(
                    host=host,
                    secret_name=entry.secret_name,
                    stage=e.stage,
                    message=e.message,
                ),
            )
        return EntryResult(entry=entry, decision=decision)

    def _converge(
        self, working: Ingress, outcome: ReconciliationOutcome, log: structlog.BoundLogger
    ) -> Ingress:
        try:
            latest = self._ingresses.get_ingress(working.name, working.namespace)
        except KubernetesError as e:
            raise ConvergencePersistError(
                f"Error getting latest update of ingress: {e}",
                namespace=working.namespace,
                ingress=working.name,
            ) from e

        succeeded = outcome.succeeded_entries
        if len(succeeded) == len(latest.spec.tls):
            return latest

        log.info(
            "converging_tls_entries",
            recorded=len(latest.spec.tls),
            succeeded=len(succeeded),
        )
        try:
            updated = self._ingresses.update_ingress_tls(latest, succeeded)
        except KubernetesError as e:
            raise ConvergencePersistError(
                f"Error updating ingress to remove failed certificates: {e}",
                namespace=working.namespace,
                ingress=working.name,
            ) from e
        outcome.converged = True
        return updated

    # =========================================================================
    # Helpers
    # =========================================================================

    def _secret_namespace(self, ingress: Ingress) -> str:
        return self._settings.secret_namespace or ingress.namespace

    def _stored_certificate(self, namespace: str, secret_name: str) -> tuple[bytes | None, bool]:
        """Current ``tls.crt`` of a secret and whether the secret exists.

        Read errors other than not-found are logged and treated like a missing
        secret; the secret synchronizer will surface them if they persist.
        """
        try:
            secret = self._secrets.get_secret(secret_name, namespace)
        except KubernetesNotFoundError:
            return None, False
        except KubernetesError as e:
            logger.warning(
                "secret_read_failed", namespace=namespace, secret=secret_name, error=str(e)
            )
            return None, False
        return secret.certificate, True

    @contextmanager
    def _serialized(self, key: tuple[str, str]) -> Iterator[None]:
        """Hold the per-ingress lock for the duration of a pass.

        A lock is forgotten once no pass holds or waits on it.
        """
        with self._pass_locks_guard:
            pass_lock = self._pass_locks.setdefault(key, _PassLock())
            pass_lock.users += 1
        try:
            with pass_lock.lock:
                yield
        finally:
            with self._pass_locks_guard:
                pass_lock.users -= 1
                if not pass_lock.users:
                    del self._pass_locks[key]
