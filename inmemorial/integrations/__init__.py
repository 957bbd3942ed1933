"""External services: outbound email (SES) and error tracking (Sentry)."""

from inmemorial.integrations.email import EmailService, MailConfig
from inmemorial.integrations.sentry import init_sentry, capture_exception

__all__ = [
    "EmailService",
    "MailConfig",
    "init_sentry",
    "capture_exception",
]
