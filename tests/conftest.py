"""Shared test fixtures and helpers."""

import pytest

from azure_login.auth.models import ProviderResources, ProviderSettings, Resource
from azure_login.config import get_settings

PROXY_VARIABLES = ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host proxy variables and cached settings out of every test."""
    for name in PROXY_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("AZURE_LOGIN_HTTP_PROXY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        id="azure_publicCloud",
        display_name="Azure",
        client_id="test-client-id",
        login_endpoint="https://login.microsoftonline.com/",
        scopes=["https://management.azure.com/user_impersonation"],
        resources=ProviderResources(
            azure_management_resource=Resource(endpoint="https://management.azure.com/"),
            windows_management_resource=Resource(endpoint="https://management.core.windows.net/"),
        ),
    )


class RecordingInteraction:
    """Interaction double that records everything shown to the user."""

    def __init__(self, answer: str | None = None):
        self.answer = answer
        self.prompts: list[str] = []
        self.results: list[str] = []
        self.errors: list[str] = []

    def prompt_for_input(self, prompt, placeholder=None):
        self.prompts.append(prompt)
        return self.answer

    def present_result(self, text):
        self.results.append(text)

    def show_error(self, message):
        self.errors.append(message)
