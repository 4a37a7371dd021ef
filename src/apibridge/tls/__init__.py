"""TLS credential handling: file loading and identity assembly.

Example::

    from apibridge.tls import build_tls_material, load_credential

    material = build_tls_material(
        ca_cert=load_credential("ca.pem"),
        client_cert=load_credential("client.pem"),
        client_key=load_credential("client.key"),
    )
"""

from apibridge.tls.credentials import load_credential
from apibridge.tls.identity import ClientIdentity, TlsMaterial, build_tls_material

__all__ = ["ClientIdentity", "TlsMaterial", "build_tls_material", "load_credential"]
