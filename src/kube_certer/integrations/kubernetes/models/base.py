"""Base models and helpers for Kubernetes resource models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class K8sEntityBase(BaseModel):
    """Base class for namespaced Kubernetes resources handled by certer."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(description="Resource name")
    namespace: str = Field(default="default", description="Resource namespace")
    resource_version: str | None = Field(
        default=None, description="Opaque version used for optimistic concurrency"
    )
    labels: dict[str, str] | None = Field(default=None, description="Resource labels")
    annotations: dict[str, str] = Field(default_factory=dict, description="Resource annotations")

    _entity_name: ClassVar[str] = "entity"

    @property
    def key(self) -> tuple[str, str]:
        """(namespace, name) identity of the resource."""
        return (self.namespace, self.name)

    @property
    def qualified_name(self) -> str:
        """``namespace/name`` string used in logs and CLI output."""
        return f"{self.namespace}/{self.name}"


def _safe_get(obj: Any, *attrs: str, default: Any = None) -> Any:
    """Safely traverse nested attributes on kubernetes SDK objects."""
    current = obj
    for attr in attrs:
        if current is None:
            return default
        current = getattr(current, attr, None)
    return current if current is not None else default


def _get_labels(obj: Any) -> dict[str, str] | None:
    """Extract labels dict, returning None if empty."""
    labels = _safe_get(obj, "metadata", "labels")
    return dict(labels) if labels else None


def _get_annotations(obj: Any) -> dict[str, str]:
    """Extract annotations dict, empty when unset."""
    annotations = _safe_get(obj, "metadata", "annotations")
    return dict(annotations) if annotations else {}


def _metadata_fields(obj: Any) -> dict[str, Any]:
    """Common metadata keyword arguments for ``K8sEntityBase`` subclasses."""
    return {
        "name": _safe_get(obj, "metadata", "name", default=""),
        "namespace": _safe_get(obj, "metadata", "namespace", default="default"),
        "resource_version": _safe_get(obj, "metadata", "resource_version"),
        "labels": _get_labels(obj),
        "annotations": _get_annotations(obj),
    }
