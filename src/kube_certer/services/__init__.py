"""Service layer: cluster resource managers and the TLS reconciliation core."""
