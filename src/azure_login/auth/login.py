"""Login orchestration shared by every identity provider flow."""

import asyncio
import base64
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError

from azure_login.auth import constants
from azure_login.auth.errors import AzureAuthError, ConfigurationError
from azure_login.auth.hydrator import IdentityHydrator
from azure_login.auth.models import (
    Account,
    AzureAuthType,
    CancellationResult,
    ProviderSettings,
    Tenant,
    Token,
    TokenClaims,
)

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Raw token response plus the signal settled once login completes."""

    response: dict[str, Any] | None
    auth_complete: asyncio.Future


class LoginFlow(ABC):
    """An interactive sign-in against one identity provider."""

    auth_type: AzureAuthType = AzureAuthType.AUTH_CODE_GRANT

    def __init__(self, provider_settings: ProviderSettings):
        self.provider_settings = provider_settings

    @abstractmethod
    async def login(self, tenant: Tenant) -> LoginResult:
        pass


def _decode_client_info(client_info: str) -> dict:
    padded = client_info + "=" * (-len(client_info) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def claims_from_response(response: dict[str, Any]) -> TokenClaims:
    """Read ID token claims, decoding the raw ID token when needed."""
    claims = response.get("id_token_claims")
    if not claims and response.get("id_token"):
        try:
            claims = jwt.get_unverified_claims(response["id_token"])
        except JOSEError as e:
            raise AzureAuthError("Unable to decode ID token", e) from e
    return TokenClaims.model_validate(claims or {})


def home_account_id(response: dict[str, Any], claims: TokenClaims) -> str:
    """MSAL home account id: ``<uid>.<utid>``."""
    client_info = response.get("client_info")
    if client_info:
        try:
            info = _decode_client_info(client_info)
            if info.get("uid") and info.get("utid"):
                return f"{info['uid']}.{info['utid']}"
        except (ValueError, TypeError):
            logger.warning("Unable to decode client_info, deriving account id from claims")
    uid = claims.oid or claims.sub or ""
    return f"{uid}.{claims.tid}" if claims.tid else uid


def token_from_response(response: dict[str, Any], claims: TokenClaims) -> Token:
    expires_on = None
    if response.get("expires_in") is not None:
        expires_on = time.time() + float(response["expires_in"])
    return Token(
        token=response["access_token"],
        key=home_account_id(response, claims),
        token_type=response.get("token_type", "Bearer"),
        expires_on=expires_on,
    )


def _observe_rejection(auth_complete: asyncio.Future) -> None:
    if not auth_complete.cancelled():
        auth_complete.exception()


def _settle(auth_complete: asyncio.Future | None, error: BaseException | None = None) -> None:
    if auth_complete is None or auth_complete.done():
        return
    if error is None:
        auth_complete.set_result(None)
    else:
        auth_complete.set_exception(error)
        # callers that never await the signal still mark the error as retrieved
        auth_complete.add_done_callback(_observe_rejection)


class LoginOrchestrator:
    """Runs a login flow and hydrates the resulting account.

    Failures below this point come back as ``CancellationResult``; only a
    missing management endpoint raises.
    """

    def __init__(
        self,
        flow: LoginFlow,
        hydrator: IdentityHydrator | None = None,
        notify_error: Callable[[str], None] | None = None,
    ):
        self.flow = flow
        self.provider_settings = flow.provider_settings
        self.hydrator = hydrator or IdentityHydrator(self.provider_settings, flow.auth_type)
        self.notify_error = notify_error

    async def start_login(self) -> Account | CancellationResult:
        if not self.provider_settings.resources.azure_management_resource:
            raise ConfigurationError(
                f"Provider '{self.provider_settings.display_name}' does not have a "
                "management resource endpoint defined."
            )

        auth_complete: asyncio.Future | None = None
        try:
            logger.info("Starting login")
            result = await self.flow.login(constants.ORGANIZATIONS_TENANT)
            auth_complete = result.auth_complete

            if not result.response or not result.response.get("access_token"):
                logger.error("Authentication did not return an account")
                if not auth_complete.done():
                    auth_complete.cancel()
                return CancellationResult()

            claims = claims_from_response(result.response)
            token = token_from_response(result.response, claims)
            account = await self.hydrator.hydrate(token, claims)
            _settle(auth_complete)
            return account

        except Exception as ex:
            logger.error(f"Login failed: {ex}")
            if isinstance(ex, AzureAuthError):
                if auth_complete is not None:
                    _settle(auth_complete, ex)
                else:
                    self._notify(ex.message)
                logger.error(ex.original_message_and_exception)
            else:
                _settle(auth_complete, ex)
                logger.exception("Unexpected error during login")
            return CancellationResult()

    def _notify(self, message: str) -> None:
        if self.notify_error is None:
            return
        try:
            self.notify_error(message)
        except Exception as e:
            logger.warning(f"Failed to display login error: {e}")
