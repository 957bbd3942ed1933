"""
Tests for the SES email service.
"""

import logging

import pytest

from conftest import BrokenSES, FailingSES
from inmemorial.integrations.email import EmailService, MailConfig


@pytest.fixture
def unconfigured(settings):
    return EmailService(
        config=MailConfig(region="us-east-1", access_key_id="", secret_access_key="", from_email=""),
        settings=settings,
    )


class TestEmailService:
    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(self, unconfigured):
        assert not unconfigured.is_configured
        assert unconfigured.client is None
        assert await unconfigured.send_test("someone@example.com") is False

    @pytest.mark.asyncio
    async def test_send_uses_template(self, email_service, ses):
        assert await email_service.send_password_reset(
            "someone@example.com", "Someone", "tok123", expires_minutes=60
        )

        call = ses.sent[0]
        assert call["Source"] == "noreply@example.com"
        assert call["Destination"] == {"ToAddresses": ["someone@example.com"]}
        assert call["Message"]["Subject"]["Data"] == "Password Reset Request"
        html = call["Message"]["Body"]["Html"]["Data"]
        assert "https://app.example.com/reset-password/tok123" in html
        assert "60 minutes" in html

    @pytest.mark.asyncio
    async def test_unknown_template(self, email_service, ses):
        assert await email_service.send("someone@example.com", "no_such_template") is False
        assert ses.sent == []

    @pytest.mark.asyncio
    async def test_missing_template_variable(self, email_service, ses):
        assert await email_service.send("someone@example.com", "magic_link", {"name": "X"}) is False
        assert ses.sent == []

    @pytest.mark.asyncio
    async def test_ses_error_is_swallowed(self, email_service):
        email_service._client = FailingSES()

        assert await email_service.send_test("someone@example.com") is False

    def test_configure_resets_client(self, unconfigured):
        unconfigured.configure(MailConfig(
            region="eu-west-1",
            access_key_id="key",
            secret_access_key="secret",
            from_email="mail@example.com",
            endpoint_url="http://localhost:4566",
        ))

        assert unconfigured.is_configured
        client = unconfigured.client
        assert client.meta.region_name == "eu-west-1"
        assert client.meta.endpoint_url == "http://localhost:4566"

        unconfigured.configure(MailConfig(
            region="us-west-2",
            access_key_id="key",
            secret_access_key="secret",
            from_email="mail@example.com",
        ))
        assert unconfigured.client is not client

    def test_config_from_settings(self, settings):
        config = MailConfig.from_settings(settings.model_copy(update={
            "aws_access_key_id": "key",
            "aws_secret_access_key": "secret",
            "mail_endpoint_url": "",
        }))

        assert config.is_complete
        assert config.endpoint_url is None
        assert config.from_email == settings.mail_from_email


class TestNeverRaises:
    @pytest.mark.asyncio
    async def test_unexpected_client_error(self, email_service):
        email_service._client = BrokenSES()

        assert await email_service.send_test("someone@example.com") is False

    @pytest.mark.asyncio
    async def test_bad_endpoint_url(self, settings):
        service = EmailService(
            config=MailConfig(
                region="us-east-1",
                access_key_id="key",
                secret_access_key="secret",
                from_email="mail@example.com",
                endpoint_url="not a url",
            ),
            settings=settings,
        )

        assert await service.send_verification("someone@example.com", "Someone", "tok") is False

    @pytest.mark.asyncio
    async def test_unconfigured_logs_content(self, unconfigured, caplog):
        with caplog.at_level(logging.INFO, logger="inmemorial.integrations.email"):
            await unconfigured.send_magic_link(
                "someone@example.com", "Someone", "tok456", expires_minutes=15, max_uses=3
            )

        assert "https://app.example.com/auth/magic/tok456" in caplog.text
