"""Secret resource model for TLS key material."""

from __future__ import annotations

import base64
import binascii
from typing import Any, ClassVar

from pydantic import Field

from kube_certer.integrations.kubernetes.models.base import K8sEntityBase, _metadata_fields

TLS_CERT_KEY = "tls.crt"
TLS_PRIVATE_KEY_KEY = "tls.key"
TLS_SECRET_TYPE = "kubernetes.io/tls"


class Secret(K8sEntityBase):
    """Secret with decoded (raw bytes) data values.

    The API server transports secret values base64 encoded; conversion
    happens at the edges in ``from_k8s_object`` and ``encoded_data``.
    """

    _entity_name: ClassVar[str] = "secret"

    type: str = Field(default=TLS_SECRET_TYPE, description="Secret type")
    data: dict[str, bytes] = Field(default_factory=dict, description="Decoded secret data")

    @property
    def certificate(self) -> bytes | None:
        """Stored ``tls.crt`` bytes, or None."""
        return self.data.get(TLS_CERT_KEY) or None

    @property
    def private_key(self) -> bytes | None:
        """Stored ``tls.key`` bytes, or None."""
        return self.data.get(TLS_PRIVATE_KEY_KEY) or None

    @classmethod
    def from_k8s_object(cls, obj: Any) -> Secret:
        """Create from a kubernetes V1Secret object.

        Values that are not valid base64 are dropped; to certer that is the
        same as a missing certificate and leads to reissuance.
        """
        raw = getattr(obj, "data", None) or {}
        data: dict[str, bytes] = {}
        for key, value in raw.items():
            try:
                data[key] = base64.b64decode(value or "", validate=True)
            except (binascii.Error, ValueError):
                continue
        return cls(
            **_metadata_fields(obj),
            type=getattr(obj, "type", None) or TLS_SECRET_TYPE,
            data=data,
        )

    def encoded_data(self) -> dict[str, str]:
        """Data values base64 encoded for the API server."""
        return {key: base64.b64encode(value).decode("ascii") for key, value in self.data.items()}
