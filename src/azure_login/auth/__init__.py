"""Authentication module for the Azure login sample."""

from azure_login.auth.errors import (
    AzureAuthError,
    ConfigurationError,
    ProxyConfigurationError,
    TenantListingError,
)
from azure_login.auth.models import (
    Account,
    AccountType,
    AzureAuthType,
    CancellationResult,
    ProviderSettings,
    Tenant,
    Token,
    TokenClaims,
)

__all__ = [
    # Models
    "Account",
    "AccountType",
    "AzureAuthType",
    "CancellationResult",
    "ProviderSettings",
    "Tenant",
    "Token",
    "TokenClaims",
    # Errors
    "AzureAuthError",
    "ConfigurationError",
    "ProxyConfigurationError",
    "TenantListingError",
]
