"""Status command: report certificate state of an ingress without changing it."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
import typer
from rich.table import Table

from kube_certer.cli.commands.base import (
    ConfigOption,
    NamespaceOption,
    certer_context,
    console,
    handle_k8s_error,
    load_settings,
)
from kube_certer.integrations.kubernetes.exceptions import KubernetesError
from kube_certer.services.tls.coverage import resolve_uncovered_hosts
from kube_certer.services.tls.expiry import ExpiryDecision

logger = structlog.get_logger()


def _format_expiry(not_after: datetime | None) -> str:
    if not_after is None:
        return "-"
    days = (not_after - datetime.now(UTC)).days
    return f"{not_after:%Y-%m-%d %H:%M} UTC ({days}d)"


def status(
    name: str = typer.Argument(..., help="Ingress name"),
    namespace: NamespaceOption = None,
    config: ConfigOption = None,
) -> None:
    """Show each TLS entry's secret and certificate expiry."""
    settings = load_settings(config, None)
    with certer_context(settings) as ctx:
        try:
            ingress = ctx.ingresses.get_ingress(name, namespace)
            statuses = ctx.reconciler.inspect(ingress)
        except KubernetesError as e:
            handle_k8s_error(e)

    logger.info("status_checked", ingress=ingress.qualified_name, entries=len(statuses))

    table = Table(title=f"TLS status of {ingress.qualified_name}")
    table.add_column("Hosts", style="cyan")
    table.add_column("Secret")
    table.add_column("Not After")
    table.add_column("Next Pass")

    for entry_status in statuses:
        entry = entry_status.entry
        if not entry_status.secret_found:
            action = "[yellow]create[/yellow]"
        elif entry_status.decision is ExpiryDecision.REISSUE:
            action = "[yellow]reissue[/yellow]"
        else:
            action = "[green]keep[/green]"
        table.add_row(
            ", ".join(entry.hosts) or "[dim]<none>[/dim]",
            f"{entry_status.namespace}/{entry.secret_name}",
            _format_expiry(entry_status.not_after),
            action,
        )
    console.print(table)

    uncovered = resolve_uncovered_hosts(
        ingress.spec.rule_hosts,
        ingress.spec.tls,
        rule_count=len(ingress.spec.rules),
        strict=True,
    )
    if uncovered:
        console.print(f"\n[yellow]Hosts without TLS:[/yellow] {', '.join(sorted(uncovered))}")
    if not ctx.reconciler.is_eligible(ingress):
        console.print(
            f"\n[dim]Not eligible: add the '{settings.reconciler.enabling_annotation}' "
            "annotation and a TLS entry, or run with --force-tls.[/dim]"
        )
