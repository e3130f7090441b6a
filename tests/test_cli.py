import asyncio

import pytest

from azure_login import cli
from azure_login.auth.login import LoginFlow, LoginResult
from azure_login.auth.models import AzureAuthType
from azure_login.config import Settings

from conftest import RecordingInteraction


class TestMakeWebRequest:
    @pytest.mark.asyncio
    async def test_prompts_and_presents_status(self, httpx_mock):
        httpx_mock.add_response(url="https://www.example.com/", status_code=404)
        interaction = RecordingInteraction(answer="https://www.example.com/")

        ok = await cli.make_web_request(None, Settings(_env_file=None), interaction)

        assert ok is True
        assert interaction.prompts == [cli.URL_PROMPT]
        assert interaction.results == [
            "Made request to: https://www.example.com/",
            "Status:404 - Not Found",
        ]

    @pytest.mark.asyncio
    async def test_cancelled_prompt_does_nothing(self):
        interaction = RecordingInteraction(answer=None)

        ok = await cli.make_web_request(None, Settings(_env_file=None), interaction)

        assert ok is False
        assert interaction.results == []

    @pytest.mark.asyncio
    async def test_bad_proxy_is_reported(self):
        interaction = RecordingInteraction()
        settings = Settings(_env_file=None, http_proxy="http://:8080")

        ok = await cli.make_web_request("https://www.example.com/", settings, interaction)

        assert ok is False
        assert interaction.errors and "proxy" in interaction.errors[0]


class FakeAuthCodeFlow(LoginFlow):
    auth_type = AzureAuthType.AUTH_CODE_GRANT
    response = {
        "access_token": "access-1",
        "id_token_claims": {"name": "Jane", "preferred_username": "jane@contoso.example", "tid": "t1", "oid": "o1"},
    }

    def __init__(self, provider_settings, redirect_uri="http://localhost"):
        super().__init__(provider_settings)

    async def login(self, tenant):
        return LoginResult(response=self.response, auth_complete=asyncio.get_running_loop().create_future())


class TestLogin:
    @pytest.mark.asyncio
    async def test_prints_account(self, httpx_mock, monkeypatch):
        monkeypatch.setattr(cli, "AuthCodeLoginFlow", FakeAuthCodeFlow)
        httpx_mock.add_response(
            url="https://management.azure.com/tenants?api-version=2019-11-01",
            json={"value": [{"tenantId": "t1", "displayName": "Contoso", "tenantCategory": "Home"}]},
        )
        interaction = RecordingInteraction()

        ok = await cli.login(False, Settings(_env_file=None, client_id="c"), interaction)

        assert ok is True
        assert interaction.results[0] == "✓ Signed in as Jane - jane@contoso.example"
        assert "  Owning tenant: Contoso (t1)" in interaction.results
        assert "    - Contoso (t1) [Home]" in interaction.results

    @pytest.mark.asyncio
    async def test_tenant_error_reports_cancellation(self, httpx_mock, monkeypatch):
        monkeypatch.setattr(cli, "AuthCodeLoginFlow", FakeAuthCodeFlow)
        httpx_mock.add_response(
            url="https://management.azure.com/tenants?api-version=2019-11-01",
            status_code=401,
            json={"error": {"code": "401", "message": "denied"}},
        )
        interaction = RecordingInteraction()

        ok = await cli.login(False, Settings(_env_file=None, client_id="c"), interaction)

        assert ok is False
        assert interaction.results == ["Login canceled."]

    @pytest.mark.asyncio
    async def test_missing_management_endpoint_is_reported(self):
        interaction = RecordingInteraction()
        settings = Settings(_env_file=None, client_id="c", management_endpoint="")

        ok = await cli.login(False, settings, interaction)

        assert ok is False
        assert "management resource endpoint" in interaction.errors[0]


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 1
    assert "azure-login" in capsys.readouterr().out
