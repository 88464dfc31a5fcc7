"""Reconcile commands: run passes over one or many ingresses."""

from __future__ import annotations

import typer
from rich.table import Table

from kube_certer.cli.commands.base import (
    AllNamespacesOption,
    ConfigOption,
    ForceTLSOption,
    LabelSelectorOption,
    NamespaceOption,
    certer_context,
    console,
    handle_k8s_error,
    handle_pass_error,
    load_settings,
)
from kube_certer.integrations.kubernetes.exceptions import KubernetesError
from kube_certer.services.tls.exceptions import PassError
from kube_certer.services.tls.models import ReconciliationOutcome


def _render_outcome(outcome: ReconciliationOutcome) -> None:
    ingress = outcome.ingress
    if not outcome.eligible:
        console.print(f"[dim]{ingress.qualified_name}: nothing to update[/dim]")
        return

    table = Table(title=f"Ingress {ingress.qualified_name}")
    table.add_column("Host", style="cyan", no_wrap=True)
    table.add_column("Secret")
    table.add_column("Result")

    for entry in outcome.succeeded_entries:
        result = "[green]reissued[/green]" if entry.primary_host in outcome.reissued else "valid"
        table.add_row(", ".join(entry.hosts), entry.secret_name, result)
    for failure in outcome.failures:
        table.add_row(
            failure.host,
            failure.secret_name,
            f"[red]failed ({failure.stage})[/red]: {failure.message}",
        )

    console.print(table)
    if outcome.augmented:
        console.print("[yellow]TLS entries were added for uncovered hosts.[/yellow]")
    if outcome.converged:
        console.print(
            f"[yellow]TLS list reduced to {len(ingress.spec.tls)} working entries.[/yellow]"
        )


def reconcile(
    name: str = typer.Argument(..., help="Ingress name"),
    namespace: NamespaceOption = None,
    force_tls: ForceTLSOption = None,
    config: ConfigOption = None,
) -> None:
    """Run one reconciliation pass over an ingress."""
    settings = load_settings(config, force_tls)
    with certer_context(settings) as ctx:
        try:
            outcome = ctx.reconciler.reconcile_by_name(name, namespace)
        except PassError as e:
            handle_pass_error(e)
        except KubernetesError as e:
            handle_k8s_error(e)

    _render_outcome(outcome)
    if not outcome.ok:
        raise typer.Exit(2)


def reconcile_all(
    namespace: NamespaceOption = None,
    all_namespaces: AllNamespacesOption = False,
    selector: LabelSelectorOption = None,
    force_tls: ForceTLSOption = None,
    config: ConfigOption = None,
) -> None:
    """Run one pass over every matching ingress.

    A failing ingress does not stop the others; the exit code is 1 if any
    pass failed and 2 if only individual hosts failed.
    """
    settings = load_settings(config, force_tls)
    pass_failures = 0
    host_failures = 0

    with certer_context(settings) as ctx:
        try:
            ingresses = ctx.ingresses.list_ingresses(
                namespace, all_namespaces=all_namespaces, label_selector=selector
            )
        except KubernetesError as e:
            handle_k8s_error(e)

        for ingress in ingresses:
            try:
                outcome = ctx.reconciler.reconcile(ingress)
            except PassError as e:
                pass_failures += 1
                console.print(f"[red]{ingress.qualified_name}:[/red] {e.message}")
                continue
            if not outcome.ok:
                host_failures += 1
            _render_outcome(outcome)

    console.print(
        f"\nReconciled {len(ingresses)} ingress(es): "
        f"{pass_failures} failed, {host_failures} with host failures"
    )
    if pass_failures:
        raise typer.Exit(1)
    if host_failures:
        raise typer.Exit(2)
