"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock

import pytest
from kubernetes.client import (
    V1Ingress,
    V1IngressRule,
    V1IngressSpec,
    V1IngressTLS,
    V1ObjectMeta,
    V1Secret,
)

from kube_certer.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client.

    Error translation is the real one and the retry decorator is a
    pass-through, so manager error paths behave as in production.
    """
    mock_client = MagicMock()
    mock_client.default_namespace = "default"
    mock_client.timeout = 30
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    mock_client.make_retry_decorator.return_value = lambda fn: fn
    return mock_client


def k8s_ingress(
    name: str = "web",
    namespace: str = "shop",
    hosts: list[str | None] | None = None,
    tls: list[tuple[list[str], str]] | None = None,
    annotations: dict[str, str] | None = None,
    resource_version: str = "100",
) -> V1Ingress:
    """Build a V1Ingress as returned by the API."""
    return V1Ingress(
        metadata=V1ObjectMeta(
            name=name,
            namespace=namespace,
            annotations=annotations,
            resource_version=resource_version,
        ),
        spec=V1IngressSpec(
            rules=[V1IngressRule(host=h) for h in (hosts or [])] or None,
            tls=[V1IngressTLS(hosts=h, secret_name=s) for h, s in (tls or [])] or None,
        ),
    )


def k8s_secret(
    name: str = "a-tls",
    namespace: str = "shop",
    data: dict[str, bytes] | None = None,
    resource_version: str = "7",
) -> V1Secret:
    """Build a V1Secret with base64 encoded data as returned by the API."""
    return V1Secret(
        metadata=V1ObjectMeta(name=name, namespace=namespace, resource_version=resource_version),
        type="kubernetes.io/tls",
        data={k: base64.b64encode(v).decode() for k, v in (data or {}).items()},
    )
