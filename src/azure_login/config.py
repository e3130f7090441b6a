"""Configuration management for the Azure login sample."""

import json
import logging
from functools import lru_cache

import boto3
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from azure_login.auth.models import ProviderResources, ProviderSettings, Resource

logger = logging.getLogger(__name__)


def get_aws_secrets(secret_name: str, region_name: str) -> dict:
    """Fetch secrets from AWS Secrets Manager."""
    try:
        session = boto3.session.Session()
        client = session.client(
            service_name="secretsmanager",
            region_name=region_name,
        )
        response = client.get_secret_value(SecretId=secret_name)
        return json.loads(response["SecretString"])
    except Exception as e:
        logger.warning(f"Failed to fetch AWS secrets: {e}. Falling back to environment variables.")
        return {}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="AZURE_LOGIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Provider
    provider_id: str = Field(default="azure_publicCloud")
    provider_display_name: str = Field(default="Azure")
    client_id: str = Field(default="", description="Entra application (client) ID")
    login_endpoint: str = Field(default="https://login.microsoftonline.com/")
    redirect_uri: str = Field(default="http://localhost")
    # Comma-separated
    scopes: str = Field(default="https://management.azure.com/user_impersonation")
    management_endpoint: str | None = Field(default="https://management.azure.com/")
    windows_management_endpoint: str | None = Field(default="https://management.core.windows.net/")

    # Proxy (application-level, used when no proxy environment variable is set)
    http_proxy: str | None = Field(default=None)
    http_proxy_strict_ssl: bool = Field(default=True)

    # Optional AWS Secrets Manager lookup of the client id
    use_secrets_manager: bool = Field(default=False)
    secrets_name: str = Field(default="webpage_token")
    secrets_client_id_key: str = Field(default="entra_clientid")
    aws_region: str = Field(default="us-east-2")

    # Logging
    log_level: str = Field(default="INFO")

    @field_validator("http_proxy", "management_endpoint", "windows_management_endpoint", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def scope_list(self) -> list[str]:
        return [scope.strip() for scope in self.scopes.split(",") if scope.strip()]

    def resolved_client_id(self) -> str:
        if self.client_id or not self.use_secrets_manager:
            return self.client_id
        secrets = get_aws_secrets(self.secrets_name, self.aws_region)
        return secrets.get(self.secrets_client_id_key, "")

    def provider_settings(self) -> ProviderSettings:
        """Build the immutable provider settings handed to login flows."""
        resources = ProviderResources(
            azure_management_resource=(
                Resource(endpoint=self.management_endpoint) if self.management_endpoint else None
            ),
            windows_management_resource=(
                Resource(endpoint=self.windows_management_endpoint)
                if self.windows_management_endpoint
                else None
            ),
        )
        return ProviderSettings(
            id=self.provider_id,
            display_name=self.provider_display_name,
            client_id=self.resolved_client_id(),
            login_endpoint=self.login_endpoint,
            scopes=self.scope_list,
            resources=resources,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
