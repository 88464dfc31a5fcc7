"""Kubernetes resource models used by certer."""

from kube_certer.integrations.kubernetes.models.base import K8sEntityBase
from kube_certer.integrations.kubernetes.models.ingress import (
    Ingress,
    IngressRule,
    IngressSpec,
    TLSEntry,
)
from kube_certer.integrations.kubernetes.models.secret import (
    TLS_CERT_KEY,
    TLS_PRIVATE_KEY_KEY,
    TLS_SECRET_TYPE,
    Secret,
)

__all__ = [
    "TLS_CERT_KEY",
    "TLS_PRIVATE_KEY_KEY",
    "TLS_SECRET_TYPE",
    "Ingress",
    "IngressRule",
    "IngressSpec",
    "K8sEntityBase",
    "Secret",
    "TLSEntry",
]
