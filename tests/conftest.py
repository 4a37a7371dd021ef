"""Shared test fixtures for apibridge.

Provides generated TLS material (a CA, a client certificate signed by it,
and matching/mismatching keys), isolated config directories, output state
management, a CLI runner, and a hook for pointing the CLI at an
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from apibridge.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches a Rich console bound to sys.stderr at creation
    time. When CliRunner or capsys swap the streams, a cached console
    would write to a stale stream.
    """
    yield
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a colourless OutputManager so stderr text is predictable."""
    output = OutputManager(no_color=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Generated TLS material
# ---------------------------------------------------------------------------


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(
    subject: str,
    key: ec.EllipticCurvePrivateKey,
    issuer: str,
    issuer_key: ec.EllipticCurvePrivateKey,
    is_ca: bool,
) -> x509.Certificate:
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
        .sign(issuer_key, hashes.SHA256())
    )


def _pem_key(key: ec.EllipticCurvePrivateKey, password: bytes | None = None) -> bytes:
    encryption: serialization.KeySerializationEncryption = serialization.NoEncryption()
    if password is not None:
        encryption = serialization.BestAvailableEncryption(password)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


@dataclass
class Pki:
    """PEM bytes and file paths for a tiny test PKI."""

    ca_pem: bytes
    client_pem: bytes
    client_key_pem: bytes
    other_key_pem: bytes
    encrypted_key_pem: bytes
    ca_path: Path
    client_path: Path
    client_key_path: Path
    other_key_path: Path


@pytest.fixture(scope="session")
def pki(tmp_path_factory: pytest.TempPathFactory) -> Pki:
    """A CA, a client certificate it signed, the client key, and a stranger key."""
    ca_key = ec.generate_private_key(ec.SECP256R1())
    client_key = ec.generate_private_key(ec.SECP256R1())
    other_key = ec.generate_private_key(ec.SECP256R1())

    ca_cert = _certificate("apibridge test CA", ca_key, "apibridge test CA", ca_key, True)
    client_cert = _certificate("apibridge client", client_key, "apibridge test CA", ca_key, False)

    ca_pem = ca_cert.public_bytes(serialization.Encoding.PEM)
    client_pem = client_cert.public_bytes(serialization.Encoding.PEM)
    client_key_pem = _pem_key(client_key)
    other_key_pem = _pem_key(other_key)

    root = tmp_path_factory.mktemp("pki")
    paths = {
        "ca.pem": ca_pem,
        "client.pem": client_pem,
        "client.key": client_key_pem,
        "other.key": other_key_pem,
    }
    for name, data in paths.items():
        (root / name).write_bytes(data)

    return Pki(
        ca_pem=ca_pem,
        client_pem=client_pem,
        client_key_pem=client_key_pem,
        other_key_pem=other_key_pem,
        encrypted_key_pem=_pem_key(client_key, password=b"hunter2"),
        ca_path=root / "ca.pem",
        client_path=root / "client.pem",
        client_key_path=root / "client.key",
        other_key_path=root / "other.key",
    )


@pytest.fixture
def bad_pem(tmp_path: Path) -> Path:
    """A file that is not a certificate at all."""
    path = tmp_path / "bad.pem"
    path.write_text("this is definitely not a certificate\n")
    return path


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at tmp_path and clears all APIBRIDGE_*
    environment variables so that tests never read real user config.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "APIBRIDGE_URL",
        "APIBRIDGE_CA_CERT",
        "APIBRIDGE_CLIENT_CERT",
        "APIBRIDGE_CLIENT_KEY",
        "APIBRIDGE_TIMEOUT",
        "APIBRIDGE_CONFIG",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def mock_api(monkeypatch: pytest.MonkeyPatch) -> Callable[[Handler], list[httpx.Request]]:
    """Route every client the CLI builds through an :class:`httpx.MockTransport`.

    Call the fixture with a handler; it returns the list that collects every
    request the handler receives.
    """
    import apibridge.client
    from apibridge.client.factory import client_from_options

    def install(handler: Handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def patched(options, transport=None):
            return client_from_options(options, transport=httpx.MockTransport(recording))

        monkeypatch.setattr(apibridge.client, "client_from_options", patched)
        return seen

    return install
