"""Shared plumbing of the ingress and secret managers."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, NoReturn

import structlog

if TYPE_CHECKING:
    from kube_certer.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class K8sBaseManager:
    """Namespace defaulting and error translation around one client.

    ``_entity_name`` ends up as the ``entity`` field of every log line the
    manager emits.
    """

    _entity_name: ClassVar[str] = ""

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client
        self._log = logger.bind(entity=self._entity_name)

    def _resolve_namespace(self, namespace: str | None) -> str:
        return namespace or self._client.default_namespace

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        """Raise the ``KubernetesError`` for ``e``, chained to it."""
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        ) from e
