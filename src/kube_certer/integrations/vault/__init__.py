"""Vault PKI integration - the certificate authority behind certer."""

from kube_certer.integrations.vault.client import (
    VaultIssuingClient,
    VaultPKIClient,
    VaultSigningClient,
    create_authority,
)
from kube_certer.integrations.vault.config import IssuanceMode, VaultConfig
from kube_certer.integrations.vault.exceptions import (
    VaultAPIError,
    VaultAuthError,
    VaultConnectionError,
    VaultError,
)

__all__ = [
    "IssuanceMode",
    "VaultAPIError",
    "VaultAuthError",
    "VaultConfig",
    "VaultConnectionError",
    "VaultError",
    "VaultIssuingClient",
    "VaultPKIClient",
    "VaultSigningClient",
    "create_authority",
]
