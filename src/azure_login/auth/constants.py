"""Well-known values used when building accounts."""

from enum import Enum

from azure_login.auth.models import Tenant

HOME_CATEGORY = "Home"

# MSAL account version
ACCOUNT_VERSION = "2.0"

SELECT_ACCOUNT = "select_account"

TENANTS_API_VERSION = "2019-11-01"

# Microsoft corporate tenant, used to recognise corp-issued tokens
MICROSOFT_CORP_TENANT_ID = "72f988bf-86f1-41af-91ab-2d7cd011db47"
CORP_STS_ISSUER = f"https://sts.windows.net/{MICROSOFT_CORP_TENANT_ID}/"

LIVE_IDP = "live.com"

MICROSOFT_ACCOUNT_TENANT_NAME = "Microsoft Account"

COMMON_TENANT = Tenant(id="common", display_name="common")
ORGANIZATIONS_TENANT = Tenant(id="organizations", display_name="organizations")


class AccountIssuer(str, Enum):
    """Account issuer as read from the ID token."""

    CORP = "corp"
    MSFT = "msft"
    UNKNOWN = "unknown"


CONTEXTUAL_DISPLAY_NAMES = {
    AccountIssuer.CORP: "Microsoft Corp",
    AccountIssuer.MSFT: "Microsoft Entra Account",
}
