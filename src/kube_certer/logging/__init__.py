"""Logging configuration for kube_certer."""

from kube_certer.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
