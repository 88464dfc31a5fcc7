"""TLS secret resource manager.

Secret values are never logged; only names and key lists are.
"""

from __future__ import annotations

from typing import Any

from kube_certer.integrations.kubernetes.models.secret import Secret
from kube_certer.services.kubernetes.base import K8sBaseManager


class SecretManager(K8sBaseManager):
    """Manager for the secrets backing ingress TLS entries."""

    _entity_name = "secret"

    def get_secret(self, name: str, namespace: str | None = None) -> Secret:
        """Get a secret with decoded data.

        Args:
            name: Secret name.
            namespace: Target namespace.

        Returns:
            The secret.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_secret", name=name, namespace=ns)

        @self._client.make_retry_decorator()
        def _read() -> Any:
            try:
                return self._client.core_v1.read_namespaced_secret(
                    name=name, namespace=ns, _request_timeout=self._client.timeout
                )
            except Exception as e:
                self._handle_api_error(e, "Secret", name, ns)

        return Secret.from_k8s_object(_read())

    def create_secret(self, secret: Secret) -> Secret:
        """Create a secret.

        Args:
            secret: Secret to create.

        Returns:
            The created secret.
        """
        from kubernetes.client import V1ObjectMeta, V1Secret

        body = V1Secret(
            metadata=V1ObjectMeta(
                name=secret.name,
                namespace=secret.namespace,
                labels=secret.labels,
                annotations=secret.annotations or None,
            ),
            type=secret.type,
            data=secret.encoded_data(),
        )

        self._log.info(
            "creating_secret",
            name=secret.name,
            namespace=secret.namespace,
            keys=sorted(secret.data),
        )
        try:
            result = self._client.core_v1.create_namespaced_secret(
                namespace=secret.namespace, body=body, _request_timeout=self._client.timeout
            )
            self._log.info("created_secret", name=secret.name, namespace=secret.namespace)
            return Secret.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Secret", secret.name, secret.namespace)

    def update_secret(self, secret: Secret) -> Secret:
        """Update the data of an existing secret (patch).

        Keys not present in ``secret.data`` are left untouched on the server.
        The ``resourceVersion`` is sent along so concurrent writers conflict
        instead of silently overwriting each other.

        Args:
            secret: Secret as fetched, with new data set.

        Returns:
            The updated secret.
        """
        patch: dict[str, Any] = {"data": secret.encoded_data()}
        if secret.resource_version:
            patch["metadata"] = {"resourceVersion": secret.resource_version}

        self._log.info(
            "updating_secret",
            name=secret.name,
            namespace=secret.namespace,
            keys=sorted(secret.data),
        )
        try:
            result = self._client.core_v1.patch_namespaced_secret(
                name=secret.name,
                namespace=secret.namespace,
                body=patch,
                _request_timeout=self._client.timeout,
            )
            self._log.info("updated_secret", name=secret.name, namespace=secret.namespace)
            return Secret.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Secret", secret.name, secret.namespace)
