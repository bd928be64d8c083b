"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The Azure identity variables (AZURE_TENANT_ID, AZURE_SUBSCRIPTION_ID,
AZURE_CLIENT_ID) are read here as well, so the identity mode is decided
from the same place as everything else.

Mock mode enables local development without a storage account.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Blob Gateway API"
    api_version: str = "v1"

    # Blob Storage Configuration
    storage_account_name: str = Field(
        default="",
        description="Storage account name. The blob host is <name>.blob.core.windows.net"
    )
    storage_account_url: Optional[str] = Field(
        default=None,
        description="Blob service URL. Auto-constructed from account name if not provided."
    )
    storage_container_name: str = Field(
        default="public",
        description="Container every object is read from. Never taken from the request."
    )
    blob_extension: str = Field(
        default=".jpg",
        description="File extension appended to every requested object id"
    )
    blob_content_type: str = Field(
        default="image/jpeg",
        description="Content-Type returned with retrieved objects"
    )
    storage_timeout_seconds: int = Field(
        default=30,
        description="Server-side timeout for a single download, in seconds"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real Blob Storage. Enables local dev without an account."
    )

    # Azure Identity Configuration
    azure_tenant_id: Optional[str] = Field(
        default=None,
        description="Tenant ID. Together with the subscription ID selects the local developer credential chain."
    )
    azure_subscription_id: Optional[str] = Field(
        default=None,
        description="Subscription ID. Together with the tenant ID selects the local developer credential chain."
    )
    azure_client_id: Optional[str] = Field(
        default=None,
        description="Client ID of a user-assigned managed identity (optional)"
    )
    identity_include_interactive: bool = Field(
        default=True,
        description="Allow browser-based login as the last resort of the local developer chain"
    )
    identity_verify_on_resolve: bool = Field(
        default=True,
        description="Request one storage token when the credential is first resolved"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def storage_account_endpoint(self) -> str:
        """
        Construct the blob service URL from the account name.

        Blob endpoints follow the pattern: https://{account}.blob.core.windows.net
        """
        if self.storage_account_url:
            return self.storage_account_url.rstrip("/")
        return f"https://{self.storage_account_name}.blob.core.windows.net"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.storage_account_name and not self.storage_account_url:
                missing.append("STORAGE_ACCOUNT_NAME or STORAGE_ACCOUNT_URL")

        if not self.storage_container_name:
            missing.append("STORAGE_CONTAINER_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
