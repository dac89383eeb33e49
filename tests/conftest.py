"""
Shared fixtures: an in-memory store, the plain-secret verifier and services
wired the same way app.create_app wires them.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from config import CaptchaSettings
from infrastructure.auth.plain import PlainSecretVerifier
from repositories.memory_store import InMemoryCaptchaStore
from schemas.models.captcha import CaptchaDoc
from schemas.models.client import ClientDoc
from services.captcha_service import CaptchaLifecycleService
from services.client_service import ClientService
from shared.datetime_utils import utc_now
from shared.generators import ChallengeTextGenerator

CLIENT_SECRET = "s3cret-key"


@pytest.fixture
def client_secret():
    return CLIENT_SECRET


@pytest.fixture
def verifier():
    return PlainSecretVerifier()


@pytest.fixture
def store():
    return InMemoryCaptchaStore()


@pytest.fixture
def captcha_settings():
    return CaptchaSettings(
        captcha_length=6,
        captcha_character_range="[a-z]",
        captcha_timeout=60,
        captcha_mode="production",
        activation_retries=3,
        credential_scheme="plain",
    )


@pytest.fixture
def client_service(store, verifier):
    return ClientService(store, verifier)


@pytest.fixture
def captcha_service(store, client_service, verifier, captcha_settings):
    return CaptchaLifecycleService(
        store,
        client_service,
        ChallengeTextGenerator.from_settings(captcha_settings),
        verifier,
        captcha_settings,
    )


@pytest.fixture
async def registered_client(store):
    """A stored client whose plain secret is CLIENT_SECRET."""
    return await store.add_client(ClientDoc(secret=CLIENT_SECRET, created_at=utc_now()))


@pytest.fixture
def make_stored_captcha(store, registered_client):
    """Factory storing a captcha with a known answer for the registered client."""

    async def _make(answer: str = "right", age_seconds: int = 0, solved: bool = False):
        captcha = CaptchaDoc(
            owner_id=registered_client.id,
            answer=answer,
            created_at=utc_now() - timedelta(seconds=age_seconds),
            solved=solved,
        )
        return await store.add_captcha(captcha)

    return _make
