"""CLI for making proxy-aware web requests and signing in to Azure."""

import argparse
import asyncio
import logging
import sys

import httpx

from azure_login.auth.errors import AzureAuthError
from azure_login.auth.hydrator import IdentityHydrator
from azure_login.auth.login import LoginOrchestrator
from azure_login.auth.models import Account
from azure_login.auth.msal_flows import AuthCodeLoginFlow, DeviceCodeLoginFlow
from azure_login.config import Settings, get_settings
from azure_login.interaction import ConsoleInteraction, Interaction
from azure_login.network.proxy import resolve_proxy
from azure_login.network.request import fetch

logger = logging.getLogger(__name__)

URL_PROMPT = "Enter URL to make a request to (Press 'Enter' to confirm or Ctrl-D to cancel)"
URL_PLACEHOLDER = "https://www.example.com"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def make_web_request(url: str | None, settings: Settings, interaction: Interaction) -> bool:
    """Prompt for a URL when needed, GET it and show the status."""
    request_url = url or interaction.prompt_for_input(URL_PROMPT, URL_PLACEHOLDER)
    if not request_url:
        return False

    logger.info(f"Making request to URL: {request_url}")
    try:
        response = await fetch(request_url, proxy=resolve_proxy(settings))
    except (httpx.HTTPError, AzureAuthError, ValueError) as e:
        logger.error(f"Error making request: {e}")
        interaction.show_error(f"Request failed: {e}")
        return False

    interaction.present_result(f"Made request to: {request_url}")
    interaction.present_result(f"Status:{response.status_code} - {response.reason_phrase}")
    return True


def describe_account(account: Account) -> list[str]:
    lines = [
        f"✓ Signed in as {account.display_info.display_name}",
        f"  Account type: {account.display_info.account_type.value}",
        f"  Context: {account.display_info.contextual_display_name}",
        f"  Owning tenant: {account.properties.owning_tenant.display_name} "
        f"({account.properties.owning_tenant.id})",
    ]
    if account.properties.tenants:
        lines.append(f"\n  Tenants ({len(account.properties.tenants)}):")
        for tenant in account.properties.tenants:
            category = f" [{tenant.tenant_category}]" if tenant.tenant_category else ""
            lines.append(f"    - {tenant.display_name} ({tenant.id}){category}")
    return lines


async def login(device_code: bool, settings: Settings, interaction: Interaction) -> bool:
    provider_settings = settings.provider_settings()
    if device_code:
        flow = DeviceCodeLoginFlow(provider_settings, interaction=interaction, redirect_uri=settings.redirect_uri)
    else:
        flow = AuthCodeLoginFlow(provider_settings, redirect_uri=settings.redirect_uri)

    orchestrator = LoginOrchestrator(
        flow,
        IdentityHydrator(provider_settings, flow.auth_type),
        notify_error=interaction.show_error,
    )
    try:
        result = await orchestrator.start_login()
    except AzureAuthError as e:
        interaction.show_error(e.message)
        return False

    if not isinstance(result, Account):
        interaction.present_result("Login canceled.")
        return False

    for line in describe_account(result):
        interaction.present_result(line)
    return True


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Azure login and proxy-aware web request sample",
        prog="azure-login",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    request_parser = subparsers.add_parser("request", help="Make a GET request, honouring proxy settings")
    request_parser.add_argument("url", nargs="?", help="Absolute URL to request (prompted when omitted)")

    login_parser = subparsers.add_parser("login", help="Sign in with Microsoft Entra ID")
    login_parser.add_argument(
        "--device-code",
        action="store_true",
        help="Use device code flow (for headless environments)",
    )

    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    interaction = ConsoleInteraction()

    if args.command == "request":
        success = asyncio.run(make_web_request(args.url, settings, interaction))
        sys.exit(0 if success else 1)

    elif args.command == "login":
        success = asyncio.run(login(args.device_code, settings, interaction))
        sys.exit(0 if success else 1)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
