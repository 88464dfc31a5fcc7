"""Cluster access for the ingress and secret managers.

Loads credentials from kubeconfig or the pod's service account, hands out
the two API groups certer talks to, and turns API and transport failures
into ``KubernetesError`` subclasses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kube_certer.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
)

if TYPE_CHECKING:
    from kubernetes.client import CoreV1Api, NetworkingV1Api

    from kube_certer.integrations.kubernetes.config import KubernetesPluginConfig

logger = structlog.get_logger()

IN_CLUSTER = "in-cluster"


class KubernetesClient:
    """Credentials and API groups for one cluster context.

    Example:
        ```python
        client = KubernetesClient(KubernetesPluginConfig.from_env())
        if client.check_connection():
            ingresses = IngressManager(client).list_ingresses(all_namespaces=True)
        client.close()
        ```
    """

    def __init__(self, plugin_config: KubernetesPluginConfig) -> None:
        """Load cluster credentials.

        Raises:
            KubernetesConnectionError: If neither kubeconfig nor a service
                account can be loaded.
        """
        self._config = plugin_config
        self._retries = plugin_config.defaults.retry_attempts
        self._apis: dict[str, Any] = {}
        self._current_context = self._load_credentials()

        logger.info(
            "kubernetes_client_ready",
            context=self._current_context,
            default_namespace=plugin_config.get_active_namespace(),
        )

    def _load_credentials(self) -> str:
        """Load credentials and return the name of the context in use.

        With ``prefer_in_cluster`` the service account goes first; otherwise
        it is only the fallback when no kubeconfig is usable.
        """
        from kubernetes import config
        from kubernetes.config import ConfigException

        if self._config.defaults.prefer_in_cluster:
            try:
                config.load_incluster_config()
                return IN_CLUSTER
            except ConfigException:
                logger.debug("incluster_config_unavailable")

        context = self._config.get_active_context()
        cluster = self._config.get_active_cluster()
        kubeconfig = cluster.kubeconfig if cluster else None
        try:
            config.load_kube_config(config_file=kubeconfig, context=context)
            logger.debug("loaded_kubeconfig", context=context, kubeconfig=kubeconfig)
            return context or "current"
        except ConfigException as kube_error:
            logger.debug("kubeconfig_unavailable", error=str(kube_error))

        try:
            config.load_incluster_config()
        except ConfigException as e:
            raise KubernetesConnectionError(
                message="Cannot load Kubernetes configuration. "
                "Ensure kubeconfig exists or running inside a cluster.",
                original_error=e,
            ) from e
        return IN_CLUSTER

    def _api(self, name: str) -> Any:
        if name not in self._apis:
            import kubernetes.client

            self._apis[name] = getattr(kubernetes.client, name)()
        return self._apis[name]

    @property
    def core_v1(self) -> CoreV1Api:
        """Core API group, used for secrets."""
        return self._api("CoreV1Api")

    @property
    def networking_v1(self) -> NetworkingV1Api:
        """networking.k8s.io/v1, used for ingresses."""
        return self._api("NetworkingV1Api")

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Map a failure from the kubernetes library to a ``KubernetesError``.

        Transport errors become ``KubernetesConnectionError`` so they are
        retried. 401/403, 404 and 409 get their own classes; every other
        status stays a plain ``KubernetesError`` carrying the status code.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import HTTPError

        if isinstance(e, KubernetesError):
            return e
        if isinstance(e, HTTPError):
            return KubernetesConnectionError(
                message=f"Kubernetes API unreachable: {e}", original_error=e
            )

        resource = {
            "resource_type": resource_type,
            "resource_name": resource_name,
            "namespace": namespace,
        }
        if not isinstance(e, ApiException):
            return KubernetesError(str(e), **resource)

        status = e.status
        if status in (401, 403):
            return KubernetesAuthError(e.reason or "Access denied", status_code=status)
        if status == 404:
            return KubernetesNotFoundError(**resource)
        if status == 409:
            return KubernetesConflictError(**resource)
        return KubernetesError(
            e.reason or f"Kubernetes API error: {status}", status_code=status, **resource
        )

    def make_retry_decorator(self) -> Any:
        """Tenacity decorator retrying connection errors with exponential backoff."""
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    def check_connection(self) -> bool:
        """Return True if the API server answers a version request."""
        from kubernetes.client import VersionApi

        try:
            VersionApi().get_code(_request_timeout=self.timeout)
        except Exception as e:
            logger.debug("kubernetes_unreachable", error=str(e))
            return False
        return True

    @property
    def current_context(self) -> str:
        """The kubeconfig context in use, or 'in-cluster'."""
        return self._current_context

    @property
    def default_namespace(self) -> str:
        """Namespace used when a call does not name one."""
        return self._config.get_active_namespace()

    @property
    def timeout(self) -> int:
        """Request timeout in seconds."""
        return self._config.get_active_timeout()

    def close(self) -> None:
        """Drop the API group instances."""
        self._apis.clear()
        logger.debug("kubernetes_client_closed")
