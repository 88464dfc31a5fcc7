"""Write issued key material into the secret backing a TLS entry."""

from __future__ import annotations

import structlog

from kube_certer.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesNotFoundError,
)
from kube_certer.integrations.kubernetes.models.secret import (
    TLS_CERT_KEY,
    TLS_PRIVATE_KEY_KEY,
    Secret,
)
from kube_certer.services.tls.exceptions import SecretSyncFailedError
from kube_certer.services.tls.models import KeyPair, SecretStore

logger = structlog.get_logger()


class SecretSynchronizer:
    """Creates or updates TLS secrets through a ``SecretStore``."""

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets

    def sync(
        self,
        namespace: str,
        secret_name: str,
        key_pair: KeyPair,
        *,
        host: str = "",
    ) -> Secret:
        """Store a key pair in ``namespace/secret_name``.

        The secret is fetched first; if it does not exist (or cannot be read)
        a new one is created, otherwise its ``tls.crt``/``tls.key`` are
        updated in place.

        Args:
            namespace: Secret namespace.
            secret_name: Secret name.
            key_pair: Certificate and key to store.
            host: Host the key pair was issued for, for error context.

        Returns:
            The secret as stored by the cluster.

        Raises:
            SecretSyncFailedError: If create or update fails.
        """
        log = logger.bind(namespace=namespace, secret=secret_name, host=host)

        is_new = False
        try:
            secret = self._secrets.get_secret(secret_name, namespace)
        except KubernetesNotFoundError:
            log.info("secret_not_found_creating")
            is_new = True
        except KubernetesError as e:
            log.warning("secret_fetch_failed_creating", error=str(e))
            is_new = True

        if is_new:
            secret = Secret(name=secret_name, namespace=namespace)

        data = dict(secret.data)
        data[TLS_PRIVATE_KEY_KEY] = key_pair.private
        data[TLS_CERT_KEY] = key_pair.public
        secret = secret.model_copy(update={"data": data})

        op = "creating" if is_new else "updating"
        try:
            if is_new:
                stored = self._secrets.create_secret(secret)
            else:
                stored = self._secrets.update_secret(secret)
        except KubernetesError as e:
            log.error("secret_sync_failed", op=op, error=str(e))
            raise SecretSyncFailedError(
                f"Error {op} secret {secret_name}: {e}",
                host=host,
                secret_name=secret_name,
            ) from e

        log.info("secret_synced", op=op)
        return stored
