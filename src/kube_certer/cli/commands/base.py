"""Shared options, error handling and wiring for certer commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import structlog
import typer
from rich.console import Console

from kube_certer.core.config.models import CerterConfig, ConfigError, load_config
from kube_certer.integrations.kubernetes.client import KubernetesClient
from kube_certer.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
)
from kube_certer.integrations.vault.client import VaultPKIClient, create_authority
from kube_certer.services.kubernetes.ingress_manager import IngressManager
from kube_certer.services.kubernetes.secret_manager import SecretManager
from kube_certer.services.tls.exceptions import PassError
from kube_certer.services.tls.issuer import create_issuer
from kube_certer.services.tls.reconciler import Reconciler

logger = structlog.get_logger()
console = Console()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to config file (defaults to ~/.config/certer/config.yaml)",
        exists=False,
        dir_okay=False,
    ),
]

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace (defaults to config or 'default')",
    ),
]

AllNamespacesOption = Annotated[
    bool,
    typer.Option(
        "--all-namespaces",
        "-A",
        help="Reconcile ingresses across all namespaces",
    ),
]

LabelSelectorOption = Annotated[
    str | None,
    typer.Option(
        "--selector",
        "-l",
        help="Label selector (e.g., 'app=shop,tier=frontend')",
    ),
]

ForceTLSOption = Annotated[
    bool | None,
    typer.Option(
        "--force-tls/--no-force-tls",
        help="Give every rule host a TLS entry, regardless of annotations",
    ),
]


# =============================================================================
# Wiring
# =============================================================================


@dataclass
class CerterContext:
    """Everything a command needs to run passes."""

    config: CerterConfig
    ingresses: IngressManager
    reconciler: Reconciler


def load_settings(config_path: Path | None, force_tls: bool | None) -> CerterConfig:
    """Load configuration, applying the --force-tls command line override."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            console.print(f"  {e.details}")
        raise typer.Exit(1) from e

    if force_tls is not None:
        config = config.model_copy(
            update={
                "reconciler": config.reconciler.model_copy(update={"force_all_hosts": force_tls})
            }
        )
    return config


@contextmanager
def certer_context(config: CerterConfig) -> Iterator[CerterContext]:
    """Build the cluster and Vault clients and a reconciler on top of them."""
    try:
        client = KubernetesClient(config.kubernetes)
    except KubernetesError as e:
        handle_k8s_error(e)
    if not client.check_connection():
        client.close()
        handle_k8s_error(
            KubernetesConnectionError(
                f"API server of context '{client.current_context}' did not respond"
            )
        )

    authority: VaultPKIClient = create_authority(config.vault)
    if not authority.check_health():
        logger.warning("vault_unhealthy", address=config.vault.address)
    try:
        ingresses = IngressManager(client)
        reconciler = Reconciler(
            ingresses,
            SecretManager(client),
            create_issuer(authority, key_size=config.vault.key_size),
            config.reconciler,
        )
        yield CerterContext(config=config, ingresses=ingresses, reconciler=reconciler)
    finally:
        authority.close()
        client.close()


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> NoReturn:
    """Print a Kubernetes error and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )
    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")
        console.print(
            "\n[dim]Hint: certer needs get/list/patch on ingresses and "
            "get/create/patch on secrets.[/dim]"
        )
    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")
    else:
        console.print(f"[red]Error:[/red] {error}")

    raise typer.Exit(1)


def handle_pass_error(error: PassError) -> NoReturn:
    """Print a pass error and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    console.print(f"[red]Error:[/red] Reconciliation of {error.namespace}/{error.ingress} failed")
    console.print(f"  {error.message}")
    console.print("\n[dim]The pass can be retried safely.[/dim]")
    raise typer.Exit(1)
