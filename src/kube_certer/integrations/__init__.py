"""Integrations with external systems (Kubernetes, Vault)."""
