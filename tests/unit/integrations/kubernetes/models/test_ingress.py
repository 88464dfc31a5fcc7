"""Unit tests for Ingress models."""

from __future__ import annotations

import pytest
from kubernetes.client import (
    V1Ingress,
    V1IngressRule,
    V1IngressSpec,
    V1IngressTLS,
    V1ObjectMeta,
)
from pydantic import ValidationError

from kube_certer.integrations.kubernetes.models.ingress import (
    Ingress,
    IngressRule,
    IngressSpec,
    TLSEntry,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestTLSEntry:
    """Test TLSEntry model."""

    def test_primary_host(self) -> None:
        assert TLSEntry(hosts=("a.com", "b.com")).primary_host == "a.com"
        assert TLSEntry().primary_host is None

    def test_to_manifest_uses_api_field_names(self) -> None:
        entry = TLSEntry(hosts=("a.com",), secret_name="a.com.tls")

        assert entry.to_manifest() == {"hosts": ["a.com"], "secretName": "a.com.tls"}

    def test_from_k8s_object_without_hosts(self) -> None:
        entry = TLSEntry.from_k8s_object(V1IngressTLS(secret_name="wildcard"))

        assert entry.hosts == ()
        assert entry.secret_name == "wildcard"

    def test_frozen(self) -> None:
        entry = TLSEntry(hosts=("a.com",), secret_name="a")

        with pytest.raises(ValidationError):
            entry.secret_name = "b"  # type: ignore[misc]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestIngress:
    """Test Ingress model conversion."""

    def test_from_k8s_object(self) -> None:
        obj = V1Ingress(
            metadata=V1ObjectMeta(
                name="web",
                namespace="shop",
                resource_version="5",
                labels={"app": "shop"},
                annotations={"kubernetes.io/tls-vault": "true"},
            ),
            spec=V1IngressSpec(
                rules=[V1IngressRule(host="a.com"), V1IngressRule(), V1IngressRule(host="b.com")],
                tls=[V1IngressTLS(hosts=["a.com"], secret_name="a-tls")],
            ),
        )

        ingress = Ingress.from_k8s_object(obj)

        assert ingress.key == ("shop", "web")
        assert ingress.resource_version == "5"
        assert ingress.labels == {"app": "shop"}
        assert ingress.spec.rules[1] == IngressRule(host=None)
        assert ingress.spec.rule_hosts == ["a.com", "b.com"]
        assert ingress.spec.tls == (TLSEntry(hosts=("a.com",), secret_name="a-tls"),)

    def test_from_k8s_object_without_spec(self) -> None:
        ingress = Ingress.from_k8s_object(V1Ingress(metadata=V1ObjectMeta(name="web")))

        assert ingress.spec == IngressSpec()

    def test_with_tls_returns_copy(self) -> None:
        ingress = Ingress(
            name="web",
            resource_version="5",
            spec=IngressSpec(rules=(IngressRule(host="a.com"),)),
        )
        entry = TLSEntry(hosts=("a.com",), secret_name="a.com.tls")

        updated = ingress.with_tls([entry])

        assert updated.spec.tls == (entry,)
        assert updated.spec.rules == ingress.spec.rules
        assert updated.resource_version == "5"
        assert ingress.spec.tls == ()
