"""Configuration models with Pydantic validation.

The configuration file (``~/.config/certer/config.yaml`` by default) has three
sections::

    reconciler:
      force_all_hosts: false
      enabling_annotation: kubernetes.io/tls-vault
      secret_namespace: null
      renew_before_hours: 0
      host_concurrency: 1
      strict_coverage: false
    kubernetes:
      active_cluster: prod
      clusters:
        prod: {context: prod-admin, namespace: web}
    vault:
      address: https://vault.internal:8200
      mount: pki
      role: ingress
      mode: csr
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kube_certer.integrations.kubernetes.config import KubernetesPluginConfig
from kube_certer.integrations.vault.config import VaultConfig

CONFIG_DIR = Path.home() / ".config" / "certer"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

GEN_CERTS_ANNOTATION = "kubernetes.io/tls-vault"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ReconcilerSettings(BaseModel):
    """Per-pass settings of the TLS reconciler."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    force_all_hosts: bool = Field(
        default=False,
        description="Reconcile every ingress and give every rule host a TLS entry",
    )
    enabling_annotation: str = Field(
        default=GEN_CERTS_ANNOTATION,
        description="Annotation that opts an ingress with TLS entries in",
    )
    secret_namespace: str | None = Field(
        default=None,
        description="Store all secrets in this namespace instead of the ingress's own",
    )
    renew_before_hours: float = Field(
        default=0,
        description="Reissue this many hours before notAfter (0 = only once expired)",
    )
    host_concurrency: int = Field(
        default=1,
        description="Number of hosts processed in parallel within one pass",
    )
    strict_coverage: bool = Field(
        default=False,
        description="Always compute coverage, even when the TLS list outnumbers the rules",
    )

    @field_validator("enabling_annotation")
    @classmethod
    def validate_annotation(cls, v: str) -> str:
        """Annotation key must be non-empty."""
        if not v.strip():
            raise ValueError("enabling_annotation must not be empty")
        return v.strip()

    @field_validator("secret_namespace")
    @classmethod
    def validate_secret_namespace(cls, v: str | None) -> str | None:
        """Treat a blank namespace as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("renew_before_hours")
    @classmethod
    def validate_renew_before(cls, v: float) -> float:
        """Validate renew window is non-negative."""
        if v < 0:
            raise ValueError("renew_before_hours must be non-negative")
        return v

    @field_validator("host_concurrency")
    @classmethod
    def validate_host_concurrency(cls, v: int) -> int:
        """Validate concurrency is at least one."""
        if v < 1:
            raise ValueError("host_concurrency must be at least 1")
        return v

    @property
    def renew_before(self) -> timedelta:
        """Renewal window as a timedelta."""
        return timedelta(hours=self.renew_before_hours)


class CerterConfig(BaseModel):
    """Complete certer configuration."""

    model_config = ConfigDict(extra="forbid")

    reconciler: ReconcilerSettings = ReconcilerSettings()
    kubernetes: KubernetesPluginConfig = KubernetesPluginConfig()
    vault: VaultConfig = VaultConfig()


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _reconciler_env_overrides(section: dict[str, Any]) -> dict[str, Any]:
    """Apply CERTER_* environment variables to the reconciler section.

    Supported environment variables:
        CERTER_FORCE_TLS: Force TLS for every rule host ("1"/"true")
        CERTER_SECRET_NAMESPACE: Namespace to store all secrets in
        CERTER_HOST_CONCURRENCY: Hosts processed in parallel per pass
        CERTER_RENEW_BEFORE_HOURS: Renewal window in hours
    """
    section = dict(section)
    if force := os.environ.get("CERTER_FORCE_TLS"):
        section["force_all_hosts"] = _env_flag(force)
    if namespace := os.environ.get("CERTER_SECRET_NAMESPACE"):
        section["secret_namespace"] = namespace
    if concurrency := os.environ.get("CERTER_HOST_CONCURRENCY"):
        section["host_concurrency"] = int(concurrency)
    if renew := os.environ.get("CERTER_RENEW_BEFORE_HOURS"):
        section["renew_before_hours"] = float(renew)
    return section


def load_config(path: Path | None = None) -> CerterConfig:
    """Load configuration from YAML with environment overrides.

    A missing file is not an error: defaults plus environment apply. An
    explicitly given path must exist.

    Args:
        path: Config file path. Defaults to ~/.config/certer/config.yaml.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file is missing (explicit path), unparsable or invalid.
    """
    config_path = path or CONFIG_FILE
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with config_path.open() as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError("Invalid config file format", details=str(e)) from e
        if not isinstance(raw, dict):
            raise ConfigError(
                "Invalid config file format",
                details=f"Expected a mapping at the top level of {config_path}",
            )
    elif path is not None:
        raise ConfigError("Config file not found", details=str(config_path))

    unknown = set(raw) - set(CerterConfig.model_fields)
    if unknown:
        raise ConfigError(
            "Unknown configuration sections",
            details=", ".join(sorted(unknown)),
        )

    try:
        return CerterConfig(
            reconciler=ReconcilerSettings.model_validate(
                _reconciler_env_overrides(raw.get("reconciler") or {})
            ),
            kubernetes=KubernetesPluginConfig.from_env(raw.get("kubernetes") or {}),
            vault=VaultConfig.from_env(raw.get("vault") or {}),
        )
    except (ValidationError, ValueError) as e:
        raise ConfigError("Invalid configuration", details=str(e)) from e
