"""
Delegated identity for object storage access.

Resolves a managed identity or a local developer credential chain via
azure-identity.
"""

from .provider import (
    STORAGE_SCOPE,
    AuthenticationUnavailable,
    CredentialProvider,
    IdentityMode,
    StaticTokenCredential,
    create_credential_provider,
    select_identity_mode,
)

__all__ = [
    "STORAGE_SCOPE",
    "AuthenticationUnavailable",
    "CredentialProvider",
    "IdentityMode",
    "StaticTokenCredential",
    "create_credential_provider",
    "select_identity_mode",
]
