"""Vault PKI secrets engine clients.

Two clients cover the two ways certer obtains certificates:

- ``VaultSigningClient`` posts a locally generated CSR to
  ``/v1/<mount>/sign/<role>`` and returns the signed certificate.
- ``VaultIssuingClient`` posts a common name to ``/v1/<mount>/issue/<role>``
  and returns the certificate together with the Vault generated key.

``create_authority`` picks one based on ``VaultConfig.mode``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kube_certer.integrations.vault.config import IssuanceMode
from kube_certer.integrations.vault.exceptions import (
    VaultAPIError,
    VaultAuthError,
    VaultConnectionError,
)

if TYPE_CHECKING:
    from kube_certer.integrations.vault.config import VaultConfig

logger = structlog.get_logger()


class VaultPKIClient:
    """HTTP client for a Vault PKI mount.

    Example:
        ```python
        config = VaultConfig.from_env()
        with VaultSigningClient(config) as vault:
            cert_pem = vault.sign_csr(csr_pem, "app.example.com", ["app.example.com"])
        ```
    """

    def __init__(self, config: VaultConfig) -> None:
        """Initialize the client.

        Args:
            config: Vault connection and role settings.
        """
        self.config = config
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["X-Vault-Token"] = config.token.get_secret_value()
        if config.namespace:
            headers["X-Vault-Namespace"] = config.namespace
        self._client = httpx.Client(
            base_url=config.address,
            timeout=httpx.Timeout(config.timeout),
            headers=headers,
            verify=config.verify,
        )
        logger.info(
            "Vault PKI client initialized",
            address=config.address,
            mount=config.mount,
            role=config.role,
            mode=config.mode.value,
        )

    def __enter__(self) -> VaultPKIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    @retry(
        retry=retry_if_exception_type(VaultConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Make a request against the Vault HTTP API.

        Args:
            method: HTTP method.
            path: API path below the server address (e.g. "/v1/pki/sign/web").
            **kwargs: Additional arguments for httpx.

        Returns:
            Response JSON data.

        Raises:
            VaultConnectionError: On connection failure or timeout.
            VaultAuthError: On 401/403.
            VaultAPIError: On any other error status.
        """
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            logger.error("Vault connection error", path=path, error=str(e))
            raise VaultConnectionError(f"Failed to connect to Vault: {e}", details=str(e)) from e
        except httpx.TimeoutException as e:
            logger.error("Vault timeout", path=path, error=str(e))
            raise VaultConnectionError("Request to Vault timed out", details=str(e)) from e

        if response.status_code in (401, 403):
            raise VaultAuthError(
                "Vault denied the request",
                details=self._error_message(response),
            )
        if response.status_code >= 400:
            message = self._error_message(response)
            raise VaultAPIError(
                f"Vault API error: {message}",
                status_code=response.status_code,
                details=response.text,
            )

        if response.status_code == 204:
            return {}
        return response.json()  # type: ignore[no-any-return]

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract Vault's ``errors`` list from an error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text
        errors = body.get("errors") if isinstance(body, dict) else None
        return "; ".join(str(e) for e in errors or []) or response.text

    def _pki_path(self, action: str) -> str:
        return f"/v1/{self.config.mount}/{action}/{self.config.role}"

    def _certificate_bundle(self, data: dict[str, Any]) -> bytes:
        """Build the PEM written to tls.crt: leaf, then the CA chain when enabled."""
        certificate = data.get("certificate")
        if not certificate:
            raise VaultAPIError("Vault response did not contain a certificate")
        parts = [certificate.strip()]
        if self.config.include_ca_chain:
            chain = data.get("ca_chain") or (
                [data["issuing_ca"]] if data.get("issuing_ca") else []
            )
            parts.extend(c.strip() for c in chain if c and c.strip() != parts[0])
        return ("\n".join(parts) + "\n").encode("utf-8")

    def check_health(self) -> bool:
        """Return True if Vault reports itself initialized and unsealed."""
        try:
            response = self._client.get("/v1/sys/health")
        except httpx.HTTPError:
            return False
        return response.status_code in (200, 429, 473)


class VaultSigningClient(VaultPKIClient):
    """Signs CSRs generated by certer (key material never leaves the process)."""

    def sign_csr(self, csr_pem: bytes, common_name: str, alt_names: list[str]) -> bytes:
        """Have Vault sign a CSR.

        Args:
            csr_pem: PEM encoded certificate signing request.
            common_name: Requested common name.
            alt_names: DNS subject alternative names.

        Returns:
            PEM certificate (with CA chain if configured).
        """
        payload: dict[str, Any] = {
            "csr": csr_pem.decode("utf-8"),
            "common_name": common_name,
            "format": "pem",
        }
        extra = [name for name in alt_names if name != common_name]
        if extra:
            payload["alt_names"] = ",".join(extra)
        if self.config.ttl:
            payload["ttl"] = self.config.ttl

        logger.debug("signing_csr", common_name=common_name, alt_names=extra)
        response = self._request("POST", self._pki_path("sign"), json=payload)
        return self._certificate_bundle(response.get("data") or {})


class VaultIssuingClient(VaultPKIClient):
    """Lets Vault generate key and certificate for a single host."""

    def issue_host(self, common_name: str) -> tuple[bytes, bytes]:
        """Issue a certificate for one host.

        Args:
            common_name: Host to issue for.

        Returns:
            Tuple of (certificate_pem, private_key_pem).
        """
        payload: dict[str, Any] = {"common_name": common_name, "format": "pem"}
        if self.config.ttl:
            payload["ttl"] = self.config.ttl

        logger.debug("issuing_certificate", common_name=common_name)
        response = self._request("POST", self._pki_path("issue"), json=payload)
        data = response.get("data") or {}
        private_key = data.get("private_key")
        if not private_key:
            raise VaultAPIError("Vault response did not contain a private key")
        return self._certificate_bundle(data), (private_key.strip() + "\n").encode("utf-8")


def create_authority(config: VaultConfig) -> VaultPKIClient:
    """Build the Vault client matching the configured issuance mode."""
    if config.mode is IssuanceMode.ISSUE:
        return VaultIssuingClient(config)
    return VaultSigningClient(config)
