"""Kubernetes connection configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ClusterConfig(BaseModel):
    """Connection settings for a single named cluster."""

    model_config = ConfigDict(extra="forbid")

    context: str = ""
    kubeconfig: str = "~/.kube/config"
    namespace: str = "default"
    timeout: int = 60

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str) -> str:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser())


class KubernetesDefaultsConfig(BaseModel):
    """Defaults applied when no named cluster overrides them."""

    model_config = ConfigDict(extra="forbid")

    timeout: int = 60
    retry_attempts: int = 3
    prefer_in_cluster: bool = False

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts is at least one."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class KubernetesPluginConfig(BaseModel):
    """Kubernetes section of the certer configuration."""

    model_config = ConfigDict(extra="forbid")

    clusters: dict[str, ClusterConfig] = {}
    active_cluster: str | None = None
    defaults: KubernetesDefaultsConfig = KubernetesDefaultsConfig()

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> KubernetesPluginConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            CERTER_K8S_CONTEXT: Override active Kubernetes context
            CERTER_K8S_NAMESPACE: Override default namespace
            CERTER_K8S_KUBECONFIG: Override kubeconfig path
            CERTER_K8S_TIMEOUT: Default request timeout in seconds
            CERTER_K8S_IN_CLUSTER: Prefer the in-cluster service account ("1"/"true")
        """
        config_dict = dict(base_config) if base_config else {}
        config_dict["defaults"] = dict(config_dict.get("defaults") or {})
        config_dict["clusters"] = dict(config_dict.get("clusters") or {})

        kubeconfig_override = os.environ.get("CERTER_K8S_KUBECONFIG")
        namespace_override = os.environ.get("CERTER_K8S_NAMESPACE")

        if context := os.environ.get("CERTER_K8S_CONTEXT"):
            config_dict["active_cluster"] = context

        if timeout := os.environ.get("CERTER_K8S_TIMEOUT"):
            config_dict["defaults"]["timeout"] = int(timeout)

        if in_cluster := os.environ.get("CERTER_K8S_IN_CLUSTER"):
            config_dict["defaults"]["prefer_in_cluster"] = in_cluster.lower() in {
                "1",
                "true",
                "yes",
            }

        instance = cls.model_validate(config_dict)

        if kubeconfig_override:
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.kubeconfig = str(Path(kubeconfig_override).expanduser())
            if not instance.clusters:
                instance.clusters["default"] = ClusterConfig(kubeconfig=kubeconfig_override)

        if namespace_override:
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.namespace = namespace_override
            if not instance.clusters:
                instance.clusters["default"] = ClusterConfig(namespace=namespace_override)

        return instance

    def get_active_cluster(self) -> ClusterConfig | None:
        """Return the named cluster config in effect, if any."""
        if self.active_cluster and self.active_cluster in self.clusters:
            return self.clusters[self.active_cluster]
        if not self.active_cluster and self.clusters:
            return next(iter(self.clusters.values()))
        return None

    def get_active_context(self) -> str | None:
        """Get the kubeconfig context to load.

        A named cluster resolves to its configured context; an unknown
        ``active_cluster`` value is treated as a raw context name.
        """
        if cluster := self.get_active_cluster():
            return cluster.context or None
        return self.active_cluster

    def get_active_namespace(self) -> str:
        """Get the default namespace for the active cluster."""
        if cluster := self.get_active_cluster():
            return cluster.namespace
        return "default"

    def get_active_timeout(self) -> int:
        """Get the request timeout for the active cluster."""
        if cluster := self.get_active_cluster():
            return cluster.timeout
        return self.defaults.timeout
