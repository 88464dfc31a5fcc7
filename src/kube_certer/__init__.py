"""kube-certer: keeps ingress TLS secrets issued, stored and renewed."""

__version__ = "0.1.0"
