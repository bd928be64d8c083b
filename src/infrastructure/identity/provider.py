"""
Delegated identity for Blob Storage.

The gateway never holds storage keys. It authenticates as one of:

- the managed identity assigned to its host (production default), or
- the developer running it locally, when AZURE_TENANT_ID and
  AZURE_SUBSCRIPTION_ID are both set. The credential is then resolved
  through azure-identity's DefaultAzureCredential chain (environment,
  workload identity, Azure CLI, PowerShell, azd), optionally ending with
  an interactive browser login.

Either way callers get an azure.core TokenCredential and never see which
mode was picked. The credential is built lazily, once per provider, behind
a lock so concurrent first requests share a single construction.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from azure.core.credentials import AccessToken, TokenCredential
from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential, ManagedIdentityCredential

from ...config.settings import Settings

logger = logging.getLogger(__name__)

STORAGE_SCOPE = "https://storage.azure.com/.default"


class AuthenticationUnavailable(Exception):
    """Raised when no credential source could produce a storage token."""
    pass


class IdentityMode(Enum):
    """Which credential chain backs the provider."""
    MANAGED_IDENTITY = "managed_identity"
    LOCAL_DEVELOPER = "local_developer"


def select_identity_mode(
    tenant_id: Optional[str],
    subscription_id: Optional[str],
) -> IdentityMode:
    """
    Pick the identity mode from the environment.

    Both a tenant and a subscription must be present (and non-blank) to
    switch to the local developer chain.
    """
    if tenant_id and tenant_id.strip() and subscription_id and subscription_id.strip():
        return IdentityMode.LOCAL_DEVELOPER
    return IdentityMode.MANAGED_IDENTITY


CredentialFactory = Callable[[IdentityMode], TokenCredential]


class CredentialProvider:
    """
    Process-wide, lazily constructed token credential.

    get_credential() returns the same object on every call. The first call
    builds it (and, with verify=True, requests one storage token so a dead
    chain fails here rather than on the first download). A failed build is
    not memoized: the next caller tries again.
    """

    def __init__(
        self,
        mode: IdentityMode,
        tenant_id: Optional[str] = None,
        client_id: Optional[str] = None,
        include_interactive: bool = True,
        verify: bool = True,
        credential_factory: Optional[CredentialFactory] = None,
    ) -> None:
        self._mode = mode
        self._tenant_id = tenant_id
        self._client_id = client_id
        self._include_interactive = include_interactive
        self._verify = verify
        self._credential_factory = credential_factory or self._build_azure_credential

        self._lock = threading.Lock()
        self._credential: Optional[TokenCredential] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialProvider":
        """Select the identity mode once from settings and build a provider."""
        mode = select_identity_mode(settings.azure_tenant_id, settings.azure_subscription_id)
        return cls(
            mode=mode,
            tenant_id=settings.azure_tenant_id,
            client_id=settings.azure_client_id,
            include_interactive=settings.identity_include_interactive,
            verify=settings.identity_verify_on_resolve,
        )

    @property
    def mode(self) -> IdentityMode:
        return self._mode

    @property
    def is_resolved(self) -> bool:
        return self._credential is not None

    def get_credential(self) -> TokenCredential:
        """
        Return the shared credential, building it on first use.

        Raises:
            AuthenticationUnavailable: no credential source in the selected
                mode could authenticate.
        """
        credential = self._credential
        if credential is not None:
            return credential

        with self._lock:
            if self._credential is None:
                self._credential = self._resolve()
            return self._credential

    def _resolve(self) -> TokenCredential:
        logger.info(
            "Resolving storage credential",
            extra={"identity_mode": self._mode.value, "verify": self._verify}
        )

        try:
            credential = self._credential_factory(self._mode)
            if self._verify:
                token = credential.get_token(STORAGE_SCOPE)
                logger.info(
                    "Storage credential resolved",
                    extra={"identity_mode": self._mode.value, "expires_on": token.expires_on}
                )
        except AzureError as e:
            # CredentialUnavailableError, ClientAuthenticationError and
            # transport errors from the token endpoint
            logger.error(
                "No usable storage credential",
                extra={"identity_mode": self._mode.value, "error": str(e)}
            )
            raise AuthenticationUnavailable(
                f"No credential available in {self._mode.value} mode: {e}"
            ) from e

        return credential

    def _build_azure_credential(self, mode: IdentityMode) -> TokenCredential:
        if mode is IdentityMode.LOCAL_DEVELOPER:
            return DefaultAzureCredential(
                exclude_managed_identity_credential=True,
                exclude_interactive_browser_credential=not self._include_interactive,
                interactive_browser_tenant_id=self._tenant_id,
            )

        if self._client_id:
            return ManagedIdentityCredential(client_id=self._client_id)
        return ManagedIdentityCredential()


# ---------------------------------------------------------------------------
# Mock Credential for Local Development
# ---------------------------------------------------------------------------

class StaticTokenCredential:
    """
    Credential that always returns the same token.

    Used with the mock storage client, which never checks tokens.
    """

    def __init__(self, token: str = "mock-token", lifetime_seconds: int = 3600) -> None:
        self._token = token
        self._lifetime_seconds = lifetime_seconds

    def get_token(self, *scopes: str, **kwargs) -> AccessToken:
        return AccessToken(self._token, int(time.time()) + self._lifetime_seconds)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_credential_provider(settings: Settings) -> CredentialProvider:
    """
    Create the credential provider for this process.

    In storage mock mode the provider hands out a static token, so local
    development needs neither a managed identity nor a developer login.
    """
    if settings.storage_mock_mode:
        return CredentialProvider(
            mode=IdentityMode.MANAGED_IDENTITY,
            verify=False,
            credential_factory=lambda mode: StaticTokenCredential(),
        )

    return CredentialProvider.from_settings(settings)
