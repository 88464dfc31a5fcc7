"""Host coverage: which rule hosts lack a TLS entry, and adding entries for them."""

from __future__ import annotations

from collections.abc import Sequence

from kube_certer.integrations.kubernetes.models.ingress import IngressSpec, TLSEntry

SECRET_NAME_SUFFIX = ".tls"


def secret_name_for(host: str) -> str:
    """Derive the secret name for a host's generated TLS entry."""
    return host + SECRET_NAME_SUFFIX


def covered_hosts(tls: Sequence[TLSEntry]) -> frozenset[str]:
    """All hosts claimed by any TLS entry."""
    return frozenset(host for entry in tls for host in entry.hosts)


def resolve_uncovered_hosts(
    rule_hosts: Sequence[str],
    tls: Sequence[TLSEntry],
    *,
    rule_count: int | None = None,
    strict: bool = False,
) -> frozenset[str]:
    """Compute the rule hosts not claimed by any TLS entry.

    A TLS list longer than the rule list is taken as a sign of an earlier
    over-augmentation or a hand-edited ingress, and coverage is then reported
    as satisfied so the ingress is not augmented any further. ``strict``
    disables that short-circuit.

    Args:
        rule_hosts: Hosts declared by the ingress rules.
        tls: Existing TLS entries.
        rule_count: Number of rules, including host-less ones. Defaults to
            ``len(rule_hosts)``.
        strict: Always compute the real coverage.

    Returns:
        Uncovered hosts.
    """
    if rule_count is None:
        rule_count = len(rule_hosts)
    if not strict and len(tls) > rule_count:
        return frozenset()
    return frozenset(host for host in rule_hosts if host) - covered_hosts(tls)


def augment_spec(spec: IngressSpec, *, strict: bool = False) -> tuple[IngressSpec, bool]:
    """Add a single-host TLS entry for each uncovered rule host.

    Existing entries are kept as they are and in order; new entries are
    appended in rule order.

    Args:
        spec: The ingress spec.
        strict: Passed through to ``resolve_uncovered_hosts``.

    Returns:
        Tuple of (spec, changed). ``spec`` is a new object when changed.
    """
    missing = resolve_uncovered_hosts(
        spec.rule_hosts, spec.tls, rule_count=len(spec.rules), strict=strict
    )
    if not missing:
        return spec, False

    added: list[TLSEntry] = []
    seen: set[str] = set()
    for host in spec.rule_hosts:
        if host in missing and host not in seen:
            seen.add(host)
            added.append(TLSEntry(hosts=(host,), secret_name=secret_name_for(host)))

    return spec.model_copy(update={"tls": (*spec.tls, *added)}), True
