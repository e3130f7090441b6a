"""MSAL-backed login flows for Microsoft Entra ID."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

import msal

from azure_login.auth import constants
from azure_login.auth.errors import AzureAuthError
from azure_login.auth.hydrator import DEFAULT_LOGIN_ENDPOINT
from azure_login.auth.login import LoginFlow, LoginResult
from azure_login.auth.models import AzureAuthType, ProviderSettings, Tenant
from azure_login.interaction import Interaction

logger = logging.getLogger(__name__)

# Errors that mean the user walked away rather than that something broke
CANCELLATION_ERRORS = {"access_denied", "authorization_declined", "expired_token"}

ApplicationFactory = Callable[[str, str], Any]


def default_application_factory(client_id: str, authority: str) -> msal.PublicClientApplication:
    return msal.PublicClientApplication(client_id=client_id, authority=authority)


class MsalLoginFlow(LoginFlow):
    """Common setup for flows that talk to MSAL."""

    def __init__(
        self,
        provider_settings: ProviderSettings,
        redirect_uri: str = "http://localhost",
        application_factory: ApplicationFactory | None = None,
    ):
        super().__init__(provider_settings)
        self.login_endpoint_url = provider_settings.login_endpoint or DEFAULT_LOGIN_ENDPOINT
        self.redirect_uri = redirect_uri
        self.client_id = provider_settings.client_id
        self.scopes = list(provider_settings.scopes)
        self._application_factory = application_factory or default_application_factory

    def authority(self, tenant: Tenant) -> str:
        return f"{self.login_endpoint_url.rstrip('/')}/{tenant.id}"

    def application(self, tenant: Tenant):
        if not self.client_id:
            raise AzureAuthError(f"Provider '{self.provider_settings.display_name}' has no client id configured.")
        return self._application_factory(self.client_id, self.authority(tenant))

    def _to_result(self, response: dict | None) -> LoginResult:
        auth_complete = asyncio.get_running_loop().create_future()
        if response and "error" in response:
            error = response.get("error")
            description = response.get("error_description", "Unknown error")
            if error in CANCELLATION_ERRORS:
                logger.warning(f"Login was not completed: {error} - {description}")
                return LoginResult(response=None, auth_complete=auth_complete)
            raise AzureAuthError(f"Authentication failed: {description}")
        return LoginResult(response=response, auth_complete=auth_complete)


class AuthCodeLoginFlow(MsalLoginFlow):
    """Browser-based authorization code flow with a localhost redirect."""

    auth_type = AzureAuthType.AUTH_CODE_GRANT

    async def login(self, tenant: Tenant) -> LoginResult:
        app = self.application(tenant)
        port = urlsplit(self.redirect_uri).port
        logger.info(f"Starting interactive login against {self.authority(tenant)}")
        response = await asyncio.to_thread(
            app.acquire_token_interactive,
            scopes=self.scopes,
            prompt=constants.SELECT_ACCOUNT,
            port=port,
        )
        return self._to_result(response)


class DeviceCodeLoginFlow(MsalLoginFlow):
    """Device code flow for headless environments."""

    auth_type = AzureAuthType.DEVICE_CODE

    def __init__(
        self,
        provider_settings: ProviderSettings,
        interaction: Interaction | None = None,
        redirect_uri: str = "http://localhost",
        application_factory: ApplicationFactory | None = None,
    ):
        super().__init__(provider_settings, redirect_uri, application_factory)
        self.interaction = interaction

    async def login(self, tenant: Tenant) -> LoginResult:
        app = self.application(tenant)
        flow = await asyncio.to_thread(app.initiate_device_flow, scopes=self.scopes)

        if "user_code" not in flow:
            raise AzureAuthError(
                f"Failed to initiate device flow: {flow.get('error_description', 'Unknown error')}"
            )

        if self.interaction is not None:
            self.interaction.present_result(flow["message"])
        else:
            logger.info(flow["message"])

        response = await asyncio.to_thread(app.acquire_token_by_device_flow, flow)
        return self._to_result(response)
