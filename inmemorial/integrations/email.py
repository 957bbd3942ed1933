# =============================================================================
# Email Delivery Integration (AWS SES)
# =============================================================================
#
# Setup:
#   1. Verify your sending address in the AWS SES console
#   2. Set env vars:
#      - MAIL_FROM_EMAIL=noreply@yourdomain.com
#      - AWS_ACCESS_KEY_ID=...
#      - AWS_SECRET_ACCESS_KEY=...
#      - AWS_REGION=us-east-1
#      - MAIL_ENDPOINT_URL=...  (optional, e.g. a local SES emulator)
#
# Admins can swap the mail configuration at runtime through
# EmailService.configure(); nothing here is module-level state.
#
# Delivery is best-effort: send() logs failures and returns False,
# it never raises into the caller.
#
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from inmemorial.config import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Email Templates
# =============================================================================

_BUTTON = (
    'style="display: inline-block; padding: 12px 24px; background-color: #4F46E5; '
    'color: white; text-decoration: none; border-radius: 6px; margin: 20px 0;"'
)

TEMPLATES = {
    "email_verification": {
        "subject": "Verify Your Email Address",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Welcome to InMemorialOf, {name}!</h2>
            <p>Thank you for registering. Please verify your email address by clicking the button below:</p>
            <a href="{verify_url}" """ + _BUTTON + """>Verify Email</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="color: #6B7280; word-break: break-all;">{verify_url}</p>
            <p style="color: #6B7280; font-size: 14px;">If you didn't create an account, please ignore this email.</p>
        </div>
        """,
        "text": """
Welcome to InMemorialOf, {name}!

Please verify your email address by visiting:
{verify_url}

If you didn't create an account, please ignore this email.
        """,
    },

    "magic_link": {
        "subject": "Your Login Link",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Hi {name},</h2>
            <p>Click the button below to log in to your account:</p>
            <a href="{magic_url}" """ + _BUTTON + """>Log In</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="color: #6B7280; word-break: break-all;">{magic_url}</p>
            <p style="color: #DC2626; font-size: 14px;">This link expires in {expires_minutes} minutes and can be used {max_uses} times.</p>
            <p style="color: #6B7280; font-size: 14px;">If you didn't request this, please ignore this email.</p>
        </div>
        """,
        "text": """
Hi {name},

Log in to your account with this link:
{magic_url}

This link expires in {expires_minutes} minutes and can be used {max_uses} times.
        """,
    },

    "password_reset": {
        "subject": "Password Reset Request",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Hi {name},</h2>
            <p>You requested to reset your password. Click the button below to proceed:</p>
            <a href="{reset_url}" """ + _BUTTON + """>Reset Password</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="color: #6B7280; word-break: break-all;">{reset_url}</p>
            <p style="color: #DC2626; font-size: 14px;">This link expires in {expires_minutes} minutes.</p>
            <p style="color: #6B7280; font-size: 14px;">If you didn't request this, please ignore this email.</p>
        </div>
        """,
        "text": """
Hi {name},

Reset your password here:
{reset_url}

This link expires in {expires_minutes} minutes.
If you didn't request this, please ignore this email.
        """,
    },

    "email_change_confirmation": {
        "subject": "Confirm Email Change",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Hi {name},</h2>
            <p>We received a request to change your account email to <strong>{new_email}</strong>.</p>
            <a href="{confirm_url}" """ + _BUTTON + """>Confirm Change</a>
            <p style="color: #6B7280; font-size: 14px;">If you didn't request this, you can ignore this email and nothing will change.</p>
        </div>
        """,
        "text": """
Hi {name},

Confirm changing your account email to {new_email}:
{confirm_url}

If you didn't request this, nothing will change.
        """,
    },

    "test": {
        "subject": "Test Email - InMemorialOf",
        "html": """
        <h2>Email Configuration Test</h2>
        <p>If you received this, your email settings are working correctly!</p>
        """,
        "text": "Email Configuration Test\n\nIf you received this, your email settings are working correctly!",
    },
}


# =============================================================================
# Mail Configuration
# =============================================================================

@dataclass(frozen=True)
class MailConfig:
    """Everything needed to build the SES client."""

    region: str
    access_key_id: str
    secret_access_key: str
    from_email: str
    endpoint_url: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> MailConfig:
        return cls(
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            from_email=settings.mail_from_email,
            endpoint_url=settings.mail_endpoint_url or None,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.from_email)


# =============================================================================
# Email Service
# =============================================================================

class EmailService:
    """Send templated emails via AWS SES."""

    def __init__(self, config: MailConfig | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.config = config or MailConfig.from_settings(self.settings)
        self._client = None

    def configure(self, config: MailConfig) -> None:
        """Swap mail configuration at runtime. The client is rebuilt lazily."""
        self.config = config
        self._client = None
        logger.info(f"Mail configuration updated (region={config.region}, from={config.from_email})")

    @property
    def client(self):
        """Lazy-load SES client."""
        if self._client is None and self.config.is_complete:
            self._client = boto3.client(
                "ses",
                region_name=self.config.region,
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                endpoint_url=self.config.endpoint_url,
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        """Check if email sending is properly configured."""
        return self.config.is_complete

    def _link(self, path: str, token: str) -> str:
        return f"{self.settings.frontend_url.rstrip('/')}/{path}/{token}"

    async def send(
        self,
        to: str,
        template: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """
        Send an email using a template.

        Returns:
            True if sent successfully, False otherwise
        """
        if template not in TEMPLATES:
            logger.error(f"Unknown email template: {template}")
            return False

        tpl = TEMPLATES[template]
        data = data or {}

        try:
            html_body = tpl["html"].format(**data)
            text_body = tpl["text"].format(**data)
        except KeyError as e:
            logger.error(f"Missing template variable for '{template}': {e}")
            return False

        if not self.is_configured:
            logger.warning(f"Email not configured - would send '{template}' to {to}")
            # In dev, log the email content so links can still be followed
            logger.info(f"Email content: {text_body}")
            return False

        try:
            response = self.client.send_email(
                Source=self.config.from_email,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": tpl["subject"], "Charset": "UTF-8"},
                    "Body": {
                        "Html": {"Data": html_body, "Charset": "UTF-8"},
                        "Text": {"Data": text_body, "Charset": "UTF-8"},
                    },
                },
            )

            logger.info(f"Email sent to {to}: {template} (MessageId: {response.get('MessageId')})")
            return True

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False
        except Exception:
            # Includes client construction (e.g. a bad endpoint_url)
            logger.exception(f"Unexpected error sending '{template}' to {to}")
            return False

    async def send_verification(self, email: str, name: str, token: str) -> bool:
        """Send welcome email with verification link."""
        return await self.send(
            to=email,
            template="email_verification",
            data={"name": name, "verify_url": self._link("verify-email", token)},
        )

    async def send_magic_link(
        self,
        email: str,
        name: str,
        token: str,
        expires_minutes: int,
        max_uses: int,
    ) -> bool:
        return await self.send(
            to=email,
            template="magic_link",
            data={
                "name": name,
                "magic_url": self._link("auth/magic", token),
                "expires_minutes": expires_minutes,
                "max_uses": max_uses,
            },
        )

    async def send_password_reset(
        self,
        email: str,
        name: str,
        token: str,
        expires_minutes: int,
    ) -> bool:
        """Send password reset email."""
        return await self.send(
            to=email,
            template="password_reset",
            data={
                "name": name,
                "reset_url": self._link("reset-password", token),
                "expires_minutes": expires_minutes,
            },
        )

    async def send_email_change_confirmation(
        self,
        email: str,
        name: str,
        new_email: str,
        token: str,
    ) -> bool:
        """Confirmation goes to the CURRENT address, not the new one."""
        return await self.send(
            to=email,
            template="email_change_confirmation",
            data={
                "name": name,
                "new_email": new_email,
                "confirm_url": self._link("confirm-email-change", token),
            },
        )

    async def send_test(self, email: str) -> bool:
        return await self.send(to=email, template="test")
