"""Turn a login token and its ID token claims into an account."""

import logging
from collections.abc import Awaitable, Callable
from urllib.parse import urljoin

import httpx

from azure_login.auth import constants
from azure_login.auth.constants import AccountIssuer
from azure_login.auth.errors import ConfigurationError, TenantListingError
from azure_login.auth.models import (
    Account,
    AccountDisplayInfo,
    AccountKey,
    AccountProperties,
    AccountType,
    AzureAuthType,
    ProviderSettings,
    Tenant,
    TenantResponse,
    Token,
    TokenClaims,
)
from azure_login.network.request import fetch

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_ENDPOINT = "https://login.microsoftonline.com/"

Fetcher = Callable[[str, str], Awaitable[httpx.Response]]


def first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


def move_home_tenant_first(tenants: list[Tenant]) -> list[Tenant]:
    """Move the first home-category tenant to the front, keeping the rest in order."""
    for index, tenant in enumerate(tenants):
        if tenant.tenant_category == constants.HOME_CATEGORY:
            return [tenant, *tenants[:index], *tenants[index + 1:]]
    return list(tenants)


class IdentityHydrator:
    """Discovers tenants for a token and builds the normalized account."""

    def __init__(
        self,
        provider_settings: ProviderSettings,
        auth_type: AzureAuthType = AzureAuthType.AUTH_CODE_GRANT,
        fetcher: Fetcher | None = None,
    ):
        self.provider_settings = provider_settings
        self.auth_type = auth_type
        self.login_endpoint_url = provider_settings.login_endpoint or DEFAULT_LOGIN_ENDPOINT
        self._fetch = fetcher or fetch

    @property
    def tenants_uri(self) -> str:
        resource = self.provider_settings.resources.azure_management_resource
        if resource is None:
            raise ConfigurationError(
                f"Provider '{self.provider_settings.display_name}' does not have a "
                "management resource endpoint defined."
            )
        return urljoin(resource.endpoint, f"tenants?api-version={constants.TENANTS_API_VERSION}")

    async def list_tenants(self, token: str) -> list[Tenant]:
        """List the directories the token can access, home tenant first."""
        tenant_uri = self.tenants_uri
        logger.info(f"Fetching tenants with uri {tenant_uri}")

        response = await self._fetch(tenant_uri, token)
        data = response.json()

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            code = str(error.get("code", ""))
            message = str(error.get("message", ""))
            logger.error(f"Error fetching tenants: {code} - {message}")
            raise TenantListingError(code, message)

        tenants = []
        for entry in data.get("value", []):
            info = TenantResponse.model_validate(entry)
            if not info.display_name:
                logger.info(f"Tenant display name found empty: {info.tenant_id}")
            tenants.append(
                Tenant(
                    id=info.tenant_id,
                    display_name=info.display_name or info.tenant_id,
                    user_id=token,
                    tenant_category=info.tenant_category,
                )
            )

        logger.info(f"Tenants: {[tenant.display_name for tenant in tenants]}")
        return move_home_tenant_first(tenants)

    def classify_issuer(self, claims: TokenClaims) -> AccountIssuer:
        corp_issuers = {
            constants.CORP_STS_ISSUER,
            f"{self.login_endpoint_url}{constants.MICROSOFT_CORP_TENANT_ID}/v2.0",
        }
        if claims.idp == constants.LIVE_IDP:
            return AccountIssuer.MSFT
        if claims.iss in corp_issuers:
            return AccountIssuer.CORP
        return AccountIssuer.UNKNOWN

    def build_account(self, claims: TokenClaims, key: str, tenants: list[Tenant]) -> Account:
        """Build an account from ID token claims. Never fails on missing fields."""
        logger.info(f"Token claims account: {claims.name}, TID: {claims.tid}")

        issuer = self.classify_issuer(claims)
        name = first_non_empty(claims.name, claims.preferred_username, claims.email, claims.unique_name)
        email = first_non_empty(claims.preferred_username, claims.email, claims.unique_name)

        # https://learn.microsoft.com/azure/active-directory/develop/id-tokens
        if claims.tid:
            owning_tenant = next(
                (tenant for tenant in tenants if tenant.id == claims.tid),
                Tenant(id=claims.tid, display_name=constants.MICROSOFT_ACCOUNT_TENANT_NAME),
            )
        else:
            logger.info("Could not find tenant information from token claims, falling back to common tenant.")
            owning_tenant = constants.COMMON_TENANT

        display_name = f"{name} - {email}" if email else name
        contextual_display_name = constants.CONTEXTUAL_DISPLAY_NAMES.get(issuer, display_name)
        account_type = AccountType.MICROSOFT if issuer is AccountIssuer.MSFT else AccountType.WORK_SCHOOL

        return Account(
            key=AccountKey(
                provider_id=self.provider_settings.id,
                id=key,
                account_version=constants.ACCOUNT_VERSION,
            ),
            name=display_name,
            display_info=AccountDisplayInfo(
                account_type=account_type,
                user_id=key,
                contextual_display_name=contextual_display_name,
                display_name=display_name,
                email=email,
                name=name,
            ),
            properties=AccountProperties(
                provider_settings=self.provider_settings,
                is_ms_account=issuer is AccountIssuer.MSFT,
                owning_tenant=owning_tenant,
                tenants=list(tenants),
                azure_auth_type=self.auth_type,
            ),
            is_stale=False,
        )

    async def hydrate(self, token: Token, claims: TokenClaims) -> Account:
        tenants = await self.list_tenants(token.token)
        return self.build_account(claims, token.key, tenants)
