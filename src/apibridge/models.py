"""Pydantic models shared across apibridge.

**Configuration models** -- :class:`BridgeConfig` is the user config file
(``config.json`` in the XDG config directory). It supplies defaults for
any connection option not given on the command line.

**Invocation models** -- :class:`ClientOptions` is the fully resolved set
of connection options for one invocation, after CLI flags, environment
variables and the config file have been merged by
:func:`~apibridge.config.resolve_options`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BridgeConfig(BaseModel):
    """User-level defaults read from ``config.json``.

    Example::

        {
            "url": "https://api.example.com/v1/",
            "timeout": "30s",
            "ca_cert": "/etc/pki/internal-ca.pem"
        }
    """

    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = Field(default=None, description="Default base URL")
    timeout: Optional[str] = Field(
        default=None, description="Default request timeout, e.g. 30s or 2m"
    )
    ca_cert: Optional[Path] = Field(
        default=None, description="PEM file with extra trusted CA certificate(s)"
    )
    client_cert: Optional[Path] = Field(
        default=None, description="PEM file with the client certificate"
    )
    client_key: Optional[Path] = Field(
        default=None, description="PEM file with the client private key"
    )
    verbose: bool = False


class ClientOptions(BaseModel):
    """Connection options for a single invocation.

    The client certificate and key are validated as a pair: supplying only
    one of them is rejected before any file is read.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    ca_cert: Optional[Path] = None
    client_cert: Optional[Path] = None
    client_key: Optional[Path] = None
    timeout: Optional[str] = None
    verbose: bool = False

    @model_validator(mode="after")
    def _check_identity_pair(self) -> ClientOptions:
        if self.client_cert is not None and self.client_key is None:
            raise ValueError("--client-key is required when --client-cert is specified")
        if self.client_key is not None and self.client_cert is None:
            raise ValueError("--client-cert is required when --client-key is specified")
        return self
