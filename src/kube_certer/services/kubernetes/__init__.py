"""Kubernetes resource managers used as the reconciler's cluster capabilities."""

from kube_certer.services.kubernetes.ingress_manager import IngressManager
from kube_certer.services.kubernetes.secret_manager import SecretManager

__all__ = [
    "IngressManager",
    "SecretManager",
]
