"""Errors raised by the ingress and secret adapters.

Every error keeps the API status and, where known, the resource it is
about. Statuses without a dedicated class (400, 422, 5xx) surface as plain
``KubernetesError``; for certer they all mean the write or read failed.
"""

from __future__ import annotations

from typing import ClassVar


class KubernetesError(Exception):
    """A failed call against the Kubernetes API.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status returned by the API server, if any.
        resource_type: Kind of the resource, e.g. "Ingress" or "Secret".
        resource_name: Name of the resource.
        namespace: Namespace of the resource.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def resource(self) -> str | None:
        """``Kind/name in namespace``, or None when the resource is unknown."""
        if not (self.resource_type and self.resource_name):
            return None
        where = f" in {self.namespace}" if self.namespace else ""
        return f"{self.resource_type}/{self.resource_name}{where}"

    def __str__(self) -> str:
        text = self.message
        if self.status_code:
            text += f" (status: {self.status_code})"
        if self.resource:
            text += f" [{self.resource}]"
        return text


class KubernetesConnectionError(KubernetesError):
    """The API server is unreachable or no credentials could be loaded.

    The only error the managers retry.
    """

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """401/403: credentials rejected or RBAC denies the verb."""

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int = 403,
    ) -> None:
        super().__init__(message, status_code=status_code)


class _ResourceStateError(KubernetesError):
    """Error about one named resource; the message is built from its name."""

    status: ClassVar[int]
    default_message: ClassVar[str]
    problem: ClassVar[str]

    def __init__(
        self,
        message: str | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' {self.problem}"
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(
            message or self.default_message,
            status_code=self.status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesNotFoundError(_ResourceStateError):
    """404: the ingress or secret does not exist."""

    status = 404
    default_message = "Kubernetes resource not found"
    problem = "not found"


class KubernetesConflictError(_ResourceStateError):
    """409: the resourceVersion sent with an update is stale.

    Somebody else changed the object since it was read. The next pass
    re-reads it and tries again.
    """

    status = 409
    default_message = "Resource conflict"
    problem = "conflicts with current state"
