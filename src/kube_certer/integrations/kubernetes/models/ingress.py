"""Ingress resource models.

Only the parts of a ``networking.k8s.io/v1`` Ingress that certer reasons
about are modelled: rule hosts, TLS entries and annotations.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from kube_certer.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _metadata_fields,
    _safe_get,
)


class IngressRule(BaseModel):
    """One routing rule. Rules without a host are catch-all rules."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    host: str | None = Field(default=None, description="Routable hostname")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> IngressRule:
        """Create from a kubernetes V1IngressRule object."""
        return cls(host=getattr(obj, "host", None) or None)


class TLSEntry(BaseModel):
    """One certificate's coverage: the hosts it serves and the secret holding it."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    hosts: tuple[str, ...] = Field(default=(), description="Hosts served by this certificate")
    secret_name: str = Field(default="", description="Secret holding tls.crt/tls.key")

    @property
    def primary_host(self) -> str | None:
        """First host of the entry, used as the certificate common name."""
        return self.hosts[0] if self.hosts else None

    @classmethod
    def from_k8s_object(cls, obj: Any) -> TLSEntry:
        """Create from a kubernetes V1IngressTLS object."""
        return cls(
            hosts=tuple(getattr(obj, "hosts", None) or ()),
            secret_name=getattr(obj, "secret_name", None) or "",
        )

    def to_manifest(self) -> dict[str, Any]:
        """Render as the camelCase dict the API server expects in a patch."""
        return {"hosts": list(self.hosts), "secretName": self.secret_name}


class IngressSpec(BaseModel):
    """Rules and TLS entries of an ingress."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    rules: tuple[IngressRule, ...] = Field(default=())
    tls: tuple[TLSEntry, ...] = Field(default=())

    @property
    def rule_hosts(self) -> list[str]:
        """Hosts declared by the rules, in order, catch-all rules omitted."""
        return [rule.host for rule in self.rules if rule.host]

    @classmethod
    def from_k8s_object(cls, obj: Any) -> IngressSpec:
        """Create from a kubernetes V1IngressSpec object."""
        rules = getattr(obj, "rules", None) or []
        tls = getattr(obj, "tls", None) or []
        return cls(
            rules=tuple(IngressRule.from_k8s_object(r) for r in rules),
            tls=tuple(TLSEntry.from_k8s_object(t) for t in tls),
        )


class Ingress(K8sEntityBase):
    """Ingress resource as seen by a reconciliation pass."""

    _entity_name: ClassVar[str] = "ingress"

    spec: IngressSpec = Field(default_factory=IngressSpec)

    @classmethod
    def from_k8s_object(cls, obj: Any) -> Ingress:
        """Create from a kubernetes V1Ingress object."""
        return cls(
            **_metadata_fields(obj),
            spec=IngressSpec.from_k8s_object(_safe_get(obj, "spec")),
        )

    def with_tls(self, tls: tuple[TLSEntry, ...] | list[TLSEntry]) -> Ingress:
        """Return a copy of this ingress with its TLS list replaced."""
        return self.model_copy(update={"spec": self.spec.model_copy(update={"tls": tuple(tls)})})
