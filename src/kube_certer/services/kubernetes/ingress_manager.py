"""Ingress resource manager.

Reads ingresses and persists changes to their TLS list through the
``networking.k8s.io/v1`` API.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from kube_certer.integrations.kubernetes.models.ingress import Ingress, TLSEntry
from kube_certer.services.kubernetes.base import K8sBaseManager


class IngressManager(K8sBaseManager):
    """Manager for Ingress resources."""

    _entity_name = "ingress"

    def list_ingresses(
        self,
        namespace: str | None = None,
        *,
        all_namespaces: bool = False,
        label_selector: str | None = None,
    ) -> list[Ingress]:
        """List ingresses.

        Args:
            namespace: Target namespace.
            all_namespaces: List across all namespaces.
            label_selector: Filter by label selector.

        Returns:
            List of ingresses.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("listing_ingresses", namespace=ns, all_namespaces=all_namespaces)
        try:
            kwargs: dict[str, Any] = {"_request_timeout": self._client.timeout}
            if label_selector:
                kwargs["label_selector"] = label_selector

            if all_namespaces:
                result = self._client.networking_v1.list_ingress_for_all_namespaces(**kwargs)
            else:
                result = self._client.networking_v1.list_namespaced_ingress(namespace=ns, **kwargs)

            ingresses = [Ingress.from_k8s_object(ing) for ing in result.items]
            self._log.debug("listed_ingresses", count=len(ingresses))
            return ingresses
        except Exception as e:
            self._handle_api_error(e, "Ingress", None, ns)

    def get_ingress(self, name: str, namespace: str | None = None) -> Ingress:
        """Get a single ingress by name.

        Args:
            name: Ingress name.
            namespace: Target namespace.

        Returns:
            The ingress.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_ingress", name=name, namespace=ns)

        @self._client.make_retry_decorator()
        def _read() -> Any:
            try:
                return self._client.networking_v1.read_namespaced_ingress(
                    name=name, namespace=ns, _request_timeout=self._client.timeout
                )
            except Exception as e:
                self._handle_api_error(e, "Ingress", name, ns)

        return Ingress.from_k8s_object(_read())

    def update_ingress_tls(self, ingress: Ingress, tls: Sequence[TLSEntry]) -> Ingress:
        """Replace the TLS list of an ingress.

        The patch carries the ingress's ``resourceVersion`` so the API server
        rejects it with 409 if the ingress changed since it was read.

        Args:
            ingress: The ingress as last read.
            tls: The complete new TLS list.

        Returns:
            The updated ingress.
        """
        patch: dict[str, Any] = {"spec": {"tls": [entry.to_manifest() for entry in tls]}}
        if ingress.resource_version:
            patch["metadata"] = {"resourceVersion": ingress.resource_version}

        self._log.info(
            "updating_ingress_tls",
            name=ingress.name,
            namespace=ingress.namespace,
            entries=len(tls),
        )
        try:
            result = self._client.networking_v1.patch_namespaced_ingress(
                name=ingress.name,
                namespace=ingress.namespace,
                body=patch,
                _request_timeout=self._client.timeout,
            )
            self._log.info("updated_ingress_tls", name=ingress.name, namespace=ingress.namespace)
            return Ingress.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, "Ingress", ingress.name, ingress.namespace)
