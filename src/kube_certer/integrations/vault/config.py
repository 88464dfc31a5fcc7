"""Vault PKI configuration."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class IssuanceMode(str, Enum):
    """How certificates are requested from the PKI secrets engine.

    ``csr`` generates the key locally and has Vault sign a CSR carrying all
    of an entry's hosts; ``issue`` lets Vault generate the key for the
    primary host only.
    """

    CSR = "csr"
    ISSUE = "issue"


class VaultConfig(BaseModel):
    """Connection and PKI role settings for the Vault certificate authority."""

    model_config = ConfigDict(extra="forbid")

    address: str = Field(default="http://127.0.0.1:8200", description="Vault server URL")
    token: SecretStr | None = Field(default=None, description="Vault token")
    namespace: str | None = Field(default=None, description="Vault Enterprise namespace")
    mount: str = Field(default="pki", description="PKI secrets engine mount path")
    role: str = Field(default="ingress", description="PKI role used for issuance")
    mode: IssuanceMode = Field(default=IssuanceMode.CSR, description="Issuance mode")
    ttl: str | None = Field(default=None, description="Requested certificate TTL, e.g. '720h'")
    key_size: int = Field(default=2048, description="RSA key size for locally generated keys")
    include_ca_chain: bool = Field(
        default=True, description="Append the issuing CA chain to tls.crt"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify: bool = Field(default=True, description="Verify the Vault server certificate")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require an http(s) URL and strip trailing slashes."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("address must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("mount")
    @classmethod
    def validate_mount(cls, v: str) -> str:
        """Normalize the mount path."""
        v = v.strip("/")
        if not v:
            raise ValueError("mount must not be empty")
        return v

    @field_validator("key_size")
    @classmethod
    def validate_key_size(cls, v: int) -> int:
        """Only accept RSA key sizes Vault roles commonly allow."""
        if v not in (2048, 3072, 4096):
            raise ValueError("key_size must be one of 2048, 3072, 4096")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> VaultConfig:
        """Create configuration with environment variable overrides.

        Supported environment variables (standard Vault CLI names where one
        exists):
            VAULT_ADDR: Vault server URL
            VAULT_TOKEN: Vault token
            VAULT_NAMESPACE: Vault Enterprise namespace
            VAULT_SKIP_VERIFY: Disable TLS verification ("1"/"true")
            VAULT_PKI_MOUNT: PKI mount path
            VAULT_PKI_ROLE: PKI role name
            VAULT_PKI_MODE: Issuance mode (csr, issue)
        """
        config_dict = dict(base_config) if base_config else {}

        if address := os.environ.get("VAULT_ADDR"):
            config_dict["address"] = address
        if token := os.environ.get("VAULT_TOKEN"):
            config_dict["token"] = token
        if namespace := os.environ.get("VAULT_NAMESPACE"):
            config_dict["namespace"] = namespace
        if skip_verify := os.environ.get("VAULT_SKIP_VERIFY"):
            config_dict["verify"] = skip_verify.lower() not in ("1", "true", "yes")
        if mount := os.environ.get("VAULT_PKI_MOUNT"):
            config_dict["mount"] = mount
        if role := os.environ.get("VAULT_PKI_ROLE"):
            config_dict["role"] = role
        if mode := os.environ.get("VAULT_PKI_MODE"):
            config_dict["mode"] = mode.lower()

        return cls.model_validate(config_dict)
