"""
Error taxonomy for account provisioning.

Each error carries the HTTP status and a short machine code so the web adapter
can map it to a response without knowing the use case internals.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for caller-facing provisioning failures."""

    status_code = 500
    code = "server_error"

    def __init__(self, detail: str, *, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(ProvisioningError):
    status_code = 401
    code = "unauthorized"


class AuthorizationError(ProvisioningError):
    status_code = 403
    code = "forbidden"


class ValidationError(ProvisioningError):
    status_code = 400
    code = "bad_request"


class ConfigurationError(ProvisioningError):
    """Deployment secrets are missing. Not the caller's fault."""

    status_code = 500
    code = "config_missing"


class RegistryWriteError(ProvisioningError):
    status_code = 500
    code = "server_error"


class UpstreamError(ProvisioningError):
    """Identity-service failure; status and message are forwarded."""

    status_code = 400
    code = "upstream_error"


__all__ = [
    "ProvisioningError",
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
    "ConfigurationError",
    "RegistryWriteError",
    "UpstreamError",
]
