"""Turn PEM certificate and key bytes into TLS trust and client identity.

:func:`build_tls_material` is the only entry point. It parses the optional
CA certificate(s) into DER trusted roots, and the optional client
certificate + private key into a :class:`ClientIdentity`: a PKCS#12
container encrypted with a fixed in-process passphrase.

The standard :mod:`ssl` module only loads client identities from files, so
:meth:`ClientIdentity.load_into` unpacks the container into a private
temporary directory, hands the files to OpenSSL and removes them again.
"""

from __future__ import annotations

import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from apibridge.exceptions import BridgeError, ErrorKind

# Only protects the container while it moves into the TLS layer. Never
# leaves the process.
_BUNDLE_PASSPHRASE = b"apibridge-client-identity"
_BUNDLE_NAME = b"apibridge"


@dataclass(frozen=True)
class ClientIdentity:
    """Client certificate and private key packaged as PKCS#12."""

    pkcs12: bytes

    def load_into(self, context: ssl.SSLContext) -> None:
        """Install this identity on *context*.

        Raises:
            ssl.SSLError: If OpenSSL rejects the pair (e.g. key mismatch).
        """
        key, cert, chain = pkcs12.load_key_and_certificates(
            self.pkcs12, _BUNDLE_PASSPHRASE
        )
        if key is None or cert is None:
            raise ssl.SSLError("client identity bundle is missing its certificate or key")

        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
        for extra in chain:
            cert_pem += extra.public_bytes(serialization.Encoding.PEM)
        key_pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(_BUNDLE_PASSPHRASE),
        )

        with tempfile.TemporaryDirectory(prefix="apibridge-") as tmp:
            cert_path = Path(tmp) / "identity.pem"
            key_path = Path(tmp) / "identity.key"
            cert_path.write_bytes(cert_pem)
            key_path.write_bytes(key_pem)
            context.load_cert_chain(
                certfile=str(cert_path),
                keyfile=str(key_path),
                password=_BUNDLE_PASSPHRASE,
            )


@dataclass(frozen=True)
class TlsMaterial:
    """Everything the client factory needs to configure TLS.

    Attributes:
        trusted_roots: DER-encoded CA certificates added to the default
            trust store. Empty when no ``--ca-cert`` was given.
        identity: The client identity for mutual TLS, or ``None``.
    """

    trusted_roots: tuple[bytes, ...] = ()
    identity: Optional[ClientIdentity] = None

    @property
    def is_empty(self) -> bool:
        return not self.trusted_roots and self.identity is None


def build_tls_material(
    ca_cert: Optional[bytes] = None,
    client_cert: Optional[bytes] = None,
    client_key: Optional[bytes] = None,
) -> TlsMaterial:
    """Parse credential bytes into :class:`TlsMaterial`.

    Args:
        ca_cert: PEM bytes of one or more CA certificates.
        client_cert: PEM bytes of the client certificate, optionally
            followed by its intermediate chain.
        client_key: PEM bytes of the unencrypted client private key.

    Raises:
        BridgeError: ``USAGE`` if only one of *client_cert* / *client_key*
            is given, ``CERT_PARSE`` / ``KEY_PARSE`` for malformed input,
            ``BUNDLE`` if the pair cannot be packaged.
    """
    if (client_cert is None) != (client_key is None):
        raise BridgeError(
            ErrorKind.USAGE,
            "--client-cert and --client-key must be supplied together",
        )

    roots: tuple[bytes, ...] = ()
    if ca_cert is not None:
        roots = tuple(
            cert.public_bytes(serialization.Encoding.DER)
            for cert in _parse_certificates(ca_cert, "CA certificate")
        )

    identity: Optional[ClientIdentity] = None
    if client_cert is not None and client_key is not None:
        certs = _parse_certificates(client_cert, "client certificate")
        key = _parse_private_key(client_key)
        identity = _bundle(certs[0], key, certs[1:])

    return TlsMaterial(trusted_roots=roots, identity=identity)


def _parse_certificates(data: bytes, label: str) -> list[x509.Certificate]:
    try:
        return x509.load_pem_x509_certificates(data)
    except ValueError as exc:
        raise BridgeError(
            ErrorKind.CERT_PARSE, f"Invalid {label}: {exc}", cause=exc
        ) from exc


def _parse_private_key(data: bytes) -> pkcs12.PKCS12PrivateKeyTypes:
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except TypeError as exc:
        raise BridgeError(
            ErrorKind.KEY_PARSE,
            "Invalid client key: encrypted private keys are not supported",
            cause=exc,
        ) from exc
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise BridgeError(
            ErrorKind.KEY_PARSE, f"Invalid client key: {exc}", cause=exc
        ) from exc
    return key  # type: ignore[return-value]


def _bundle(
    cert: x509.Certificate,
    key: pkcs12.PKCS12PrivateKeyTypes,
    chain: list[x509.Certificate],
) -> ClientIdentity:
    try:
        data = pkcs12.serialize_key_and_certificates(
            name=_BUNDLE_NAME,
            key=key,
            cert=cert,
            cas=chain or None,
            encryption_algorithm=serialization.BestAvailableEncryption(_BUNDLE_PASSPHRASE),
        )
    except (TypeError, ValueError) as exc:
        raise BridgeError(
            ErrorKind.BUNDLE, f"Cannot bundle client certificate and key: {exc}", cause=exc
        ) from exc
    return ClientIdentity(pkcs12=data)
