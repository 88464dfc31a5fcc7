"""In-memory cluster and CA fakes for reconciliation tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from kube_certer.integrations.kubernetes.exceptions import (
    KubernetesConflictError,
    KubernetesError,
    KubernetesNotFoundError,
)
from kube_certer.integrations.kubernetes.models.ingress import (
    Ingress,
    IngressRule,
    IngressSpec,
    TLSEntry,
)
from kube_certer.integrations.kubernetes.models.secret import Secret
from kube_certer.services.tls.issuer import CertificateIssuer
from kube_certer.services.tls.models import KeyPair


class FakeIngressStore:
    """Ingress store with resourceVersion checks, like the API server."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], Ingress] = {}
        self.updates: list[tuple[str, str, tuple[TLSEntry, ...]]] = []
        self.update_error: KubernetesError | None = None
        self.get_error: KubernetesError | None = None
        self._version = 0

    def add(self, ingress: Ingress) -> Ingress:
        stored = ingress.model_copy(update={"resource_version": self._bump()})
        self.items[stored.key] = stored
        return stored

    def get_ingress(self, name: str, namespace: str | None = None) -> Ingress:
        if self.get_error is not None:
            raise self.get_error
        key = (namespace or "default", name)
        if key not in self.items:
            raise KubernetesNotFoundError(
                resource_type="Ingress", resource_name=name, namespace=key[0]
            )
        return self.items[key]

    def update_ingress_tls(self, ingress: Ingress, tls: Sequence[TLSEntry]) -> Ingress:
        if self.update_error is not None:
            raise self.update_error
        current = self.items[ingress.key]
        if ingress.resource_version != current.resource_version:
            raise KubernetesConflictError(
                resource_type="Ingress", resource_name=ingress.name, namespace=ingress.namespace
            )
        updated = current.with_tls(list(tls)).model_copy(
            update={"resource_version": self._bump()}
        )
        self.items[ingress.key] = updated
        self.updates.append((ingress.namespace, ingress.name, tuple(tls)))
        return updated

    def _bump(self) -> str:
        self._version += 1
        return str(self._version)


class FakeSecretStore:
    """Secret store keyed by (namespace, name)."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], Secret] = {}
        self.created: list[tuple[str, str]] = []
        self.updated: list[tuple[str, str]] = []
        self.failing_writes: set[str] = set()
        self.get_error: KubernetesError | None = None

    @property
    def writes(self) -> list[tuple[str, str]]:
        return self.created + self.updated

    def add(self, secret: Secret) -> None:
        self.items[(secret.namespace, secret.name)] = secret

    def get_secret(self, name: str, namespace: str | None = None) -> Secret:
        if self.get_error is not None:
            raise self.get_error
        key = (namespace or "default", name)
        if key not in self.items:
            raise KubernetesNotFoundError(
                resource_type="Secret", resource_name=name, namespace=key[0]
            )
        return self.items[key]

    def create_secret(self, secret: Secret) -> Secret:
        self._check_write(secret)
        self.items[(secret.namespace, secret.name)] = secret
        self.created.append((secret.namespace, secret.name))
        return secret

    def update_secret(self, secret: Secret) -> Secret:
        self._check_write(secret)
        self.items[(secret.namespace, secret.name)] = secret
        self.updated.append((secret.namespace, secret.name))
        return secret

    def _check_write(self, secret: Secret) -> None:
        if secret.name in self.failing_writes:
            raise KubernetesError("etcdserver: request timed out", status_code=500)


class FakeIssuer(CertificateIssuer):
    """Issues self-signed certificates; hosts in ``failing`` raise."""

    def __init__(self, make_cert: Any) -> None:
        self._make_cert = make_cert
        self.calls: list[tuple[str, list[str]]] = []
        self.failing: set[str] = set()

    def _issue(self, primary_host: str, all_hosts: list[str]) -> KeyPair:
        self.calls.append((primary_host, all_hosts))
        if primary_host in self.failing:
            raise RuntimeError(f"role does not allow {primary_host}")
        return KeyPair(
            public=self._make_cert(primary_host), private=b"key-" + primary_host.encode()
        )


def make_ingress(
    name: str = "web",
    namespace: str = "shop",
    hosts: Sequence[str | None] = ("a.example.com", "b.example.com"),
    tls: Sequence[TLSEntry] = (),
    annotations: dict[str, str] | None = None,
) -> Ingress:
    """Build an ingress with one rule per host."""
    return Ingress(
        name=name,
        namespace=namespace,
        annotations=annotations or {},
        spec=IngressSpec(
            rules=tuple(IngressRule(host=h) for h in hosts),
            tls=tuple(tls),
        ),
    )


def tls_entry(*hosts: str, secret_name: str | None = None) -> TLSEntry:
    """Build a TLS entry; the secret name defaults to ``<first-host>-tls``."""
    return TLSEntry(hosts=hosts, secret_name=secret_name or f"{hosts[0]}-tls")


def bad_version_cert(make_cert: Any) -> bytes:
    """DER certificate whose version field reads v8 instead of v3."""
    der = make_cert(der=True)
    return der.replace(b"\xa0\x03\x02\x01\x02", b"\xa0\x03\x02\x01\x07", 1)


def tls_secret(name: str, namespace: str, certificate: bytes, **extra: bytes) -> Secret:
    """Build a stored TLS secret."""
    return Secret(
        name=name,
        namespace=namespace,
        resource_version="7",
        data={"tls.crt": certificate, "tls.key": b"old-key", **extra},
    )


@pytest.fixture
def ingress_store() -> FakeIngressStore:
    return FakeIngressStore()


@pytest.fixture
def secret_store() -> FakeSecretStore:
    return FakeSecretStore()


@pytest.fixture
def issuer(make_cert: Any) -> FakeIssuer:
    return FakeIssuer(make_cert)
