"""Configuration management with Pydantic validation."""

from kube_certer.core.config.models import (
    GEN_CERTS_ANNOTATION,
    CerterConfig,
    ConfigError,
    ReconcilerSettings,
    load_config,
)

__all__ = [
    "GEN_CERTS_ANNOTATION",
    "CerterConfig",
    "ConfigError",
    "ReconcilerSettings",
    "load_config",
]
