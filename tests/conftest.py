"""
Shared fixtures.

Everything runs against in-memory storage and a fake SES client, so no
network or AWS credentials are needed.
"""

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from inmemorial.api.app import create_app
from inmemorial.auth.access import MemorialAccessPolicy
from inmemorial.config import Settings
from inmemorial.integrations.email import EmailService, MailConfig
from inmemorial.services.memorials import MemorialService
from inmemorial.services.tributes import TributeService
from inmemorial.services.users import UserService
from inmemorial.storage import InMemoryMetadataStorage

PASSWORD = "correct-horse-battery"


class FakeSES:
    """Records send_email calls instead of talking to AWS."""

    def __init__(self):
        self.sent = []

    def send_email(self, **kwargs):
        self.sent.append(kwargs)
        return {"MessageId": f"msg-{len(self.sent)}"}

    def recipients(self):
        return [call["Destination"]["ToAddresses"][0] for call in self.sent]


class FailingSES:
    """SES rejecting every message."""

    def send_email(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
            "SendEmail",
        )


class BrokenSES:
    """A client failing with something that isn't a botocore error."""

    def send_email(self, **kwargs):
        raise RuntimeError("connection pool exhausted")


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret_key="test-secret-key-that-is-at-least-32-characters-long",
        default_memorial_slots=3,
        frontend_url="https://app.example.com",
        expose_dev_tokens=False,
        sentry_dsn="",
        data_dir="",
    )


@pytest.fixture
def storage():
    return InMemoryMetadataStorage()


@pytest.fixture
def ses():
    return FakeSES()


@pytest.fixture
def email_service(settings, ses):
    service = EmailService(
        config=MailConfig(
            region="us-east-1",
            access_key_id="test-key",
            secret_access_key="test-secret",
            from_email="noreply@example.com",
        ),
        settings=settings,
    )
    service._client = ses
    return service


@pytest.fixture
def users(storage, email_service, settings):
    return UserService(storage, email=email_service, settings=settings)


@pytest.fixture
def memorials(storage, users, settings):
    return MemorialService(storage, users, access=MemorialAccessPolicy(), settings=settings)


@pytest.fixture
def tributes(storage, memorials):
    return TributeService(storage, memorials)


async def make_verified_user(users, email, name="Test User", password=PASSWORD):
    """Register and verify a user; returns the stored user."""
    _, token = await users.register(email, name, password)
    user, _ = await users.verify_email(token)
    return user


@pytest.fixture
async def owner(users):
    return await make_verified_user(users, "owner@example.com", "Olivia Owner")


@pytest.fixture
async def other_user(users):
    return await make_verified_user(users, "other@example.com", "Oscar Other")


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def app(settings, storage, email_service):
    return create_app(settings=settings, storage=storage, email_service=email_service)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
