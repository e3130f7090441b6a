"""Authentication data models."""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class AccountType(str, Enum):
    MICROSOFT = "microsoft"
    WORK_SCHOOL = "work_school"


class AzureAuthType(IntEnum):
    AUTH_CODE_GRANT = 0
    DEVICE_CODE = 1


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    endpoint: str


class ProviderResources(BaseModel):
    model_config = ConfigDict(frozen=True)

    azure_management_resource: Resource | None = None
    windows_management_resource: Resource | None = None


class ProviderSettings(BaseModel):
    """Static provider configuration, fixed for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    client_id: str
    login_endpoint: str | None = None
    scopes: list[str] = Field(default_factory=list)
    resources: ProviderResources = Field(default_factory=ProviderResources)


class Token(BaseModel):
    """Bearer credential returned by a login flow."""

    token: str = Field(..., description="Access token")
    key: str = Field(..., description="Stable account identifier (home account id)")
    token_type: str = Field(default="Bearer")
    expires_on: float | None = Field(None, description="Access token expiry timestamp")


class TokenClaims(BaseModel):
    """Decoded ID token claims.

    Only the fields used to build an account are read; the rest are carried
    through untouched.
    """

    model_config = ConfigDict(extra="allow")

    iss: str | None = Field(None, description="Issuer")
    tid: str | None = Field(None, description="Tenant the user signed in to")
    idp: str | None = Field(None, description="Identity provider that authenticated the subject")
    name: str | None = Field(None, description="Display name")
    preferred_username: str | None = Field(None, description="Primary username (v2.0 tokens)")
    email: str | None = Field(None, description="Email address")
    unique_name: str | None = Field(None, description="Username (v1.0 tokens)")
    aud: str | None = None
    sub: str | None = None
    oid: str | None = None
    nonce: str | None = None
    ver: str | None = None
    iat: int | None = None
    nbf: int | None = None
    exp: int | None = None


class Tenant(BaseModel):
    id: str
    display_name: str
    user_id: str | None = None
    tenant_category: str | None = None


class TenantResponse(BaseModel):
    """One entry of the tenants list endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    tenant_id: str = Field(..., alias="tenantId")
    display_name: str | None = Field(None, alias="displayName")
    tenant_category: str | None = Field(None, alias="tenantCategory")


class AccountKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_id: str
    id: str
    account_version: str


class AccountDisplayInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_type: AccountType
    user_id: str
    contextual_display_name: str | None
    display_name: str | None
    email: str | None
    name: str | None


class AccountProperties(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_settings: ProviderSettings
    is_ms_account: bool
    owning_tenant: Tenant
    tenants: list[Tenant]
    azure_auth_type: AzureAuthType


class Account(BaseModel):
    """Normalized account produced by a successful login."""

    model_config = ConfigDict(frozen=True)

    key: AccountKey
    name: str | None
    display_info: AccountDisplayInfo
    properties: AccountProperties
    is_stale: bool = False


class CancellationResult(BaseModel):
    """Returned instead of an account when login does not complete."""

    canceled: bool = True
