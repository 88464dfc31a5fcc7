"""Shared pytest fixtures for kube_certer tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
import typer
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from typer.testing import CliRunner

from kube_certer.cli.main import app

CertFactory = Callable[..., bytes]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear certer and Vault environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith(("CERTER_", "VAULT_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(scope="session")
def test_key() -> rsa.RSAPrivateKey:
    """One RSA key shared by all generated test certificates."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def make_cert(test_key: rsa.RSAPrivateKey) -> CertFactory:
    """Build self-signed certificates with a chosen validity window.

    Example:
        make_cert("app.example.com", not_after=datetime.now(UTC) - timedelta(days=1))
    """

    def _make(
        host: str = "app.example.com",
        *,
        not_after: datetime | None = None,
        der: bool = False,
    ) -> bytes:
        now = datetime.now(UTC)
        not_after = not_after or now + timedelta(days=365)
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, host)])
        certificate = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(test_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(min(now, not_after) - timedelta(days=30))
            .not_valid_after(not_after)
            .add_extension(x509.SubjectAlternativeName([x509.DNSName(host)]), critical=False)
            .sign(test_key, hashes.SHA256())
        )
        encoding = serialization.Encoding.DER if der else serialization.Encoding.PEM
        return certificate.public_bytes(encoding)

    return _make


@pytest.fixture
def valid_cert(make_cert: CertFactory) -> bytes:
    """PEM certificate valid for another year."""
    return make_cert(not_after=datetime.now(UTC) + timedelta(days=365))


@pytest.fixture
def expired_cert(make_cert: CertFactory) -> bytes:
    """PEM certificate that expired yesterday."""
    return make_cert(not_after=datetime.now(UTC) - timedelta(days=1))
