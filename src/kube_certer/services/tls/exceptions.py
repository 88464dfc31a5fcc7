"""Errors raised by the TLS reconciliation core.

Two families:

- ``HostError`` subclasses are scoped to one TLS entry. The reconciler
  records them and moves on to the next entry.
- ``PassError`` subclasses abort the whole pass and reach the caller,
  which retries the pass later.
"""

from __future__ import annotations


class CerterError(Exception):
    """Base exception for certer reconciliation errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HostError(CerterError):
    """A failure confined to one host / TLS entry."""

    stage: str = "host"

    def __init__(self, message: str, host: str, secret_name: str) -> None:
        super().__init__(message)
        self.host = host
        self.secret_name = secret_name

    def __str__(self) -> str:
        return f"{self.message} [host={self.host} secret={self.secret_name}]"


class IssuanceFailedError(HostError):
    """The certificate authority could not issue a certificate for the host."""

    stage = "issue"


class SecretSyncFailedError(HostError):
    """The issued key pair could not be written to its secret."""

    stage = "sync"


class PassError(CerterError):
    """A failure that aborts the reconciliation pass for one ingress."""

    def __init__(self, message: str, namespace: str, ingress: str) -> None:
        super().__init__(message)
        self.namespace = namespace
        self.ingress = ingress

    def __str__(self) -> str:
        return f"{self.message} [ingress={self.namespace}/{self.ingress}]"


class SpecPersistError(PassError):
    """The augmented TLS list could not be saved to the ingress."""


class ConvergencePersistError(PassError):
    """The ingress TLS list could not be rewritten to the succeeded entries."""
