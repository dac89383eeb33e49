"""Integration tests for the client, captcha and token endpoints.

The app is built with create_app() over the in-memory store; no database or
network is needed.
"""

import asyncio
from datetime import timedelta

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings, CaptchaSettings, DatabaseSettings, LoggingSettings, SentrySettings
from errors import InvalidRangeFormatError
from repositories.memory_store import InMemoryCaptchaStore
from schemas.models.captcha import CaptchaDoc
from shared.datetime_utils import utc_now


def _settings(**captcha_overrides) -> AppSettings:
    captcha = dict(
        captcha_length=5,
        captcha_character_range="[a-f],[0-3]",
        captcha_timeout=60,
        captcha_mode="test",
        credential_scheme="plain",
    )
    captcha.update(captcha_overrides)
    return AppSettings(
        db=DatabaseSettings(store_backend="memory"),
        captcha=CaptchaSettings(**captcha),
        logging=LoggingSettings(log_level="WARNING"),
        sentry=SentrySettings(sentry_dsn=""),
    )


@pytest.fixture
def store():
    return InMemoryCaptchaStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(_settings(), store=store)) as c:
        yield c


@pytest.fixture
def registered(client):
    resp = client.post("/clients")
    body = resp.json()
    return body["public"], body["secret"]


@pytest.fixture
def captcha(client, registered):
    public, _ = registered
    resp = client.post(f"/clients/{public}/captcha")
    return resp.json()


def _solve(client, public, captcha_id, answer):
    return client.post(
        f"/clients/{public}/captcha/{captcha_id}/solve", json={"answer": answer}
    )


def _token_url(public, captcha_id, token_id):
    return f"/clients/{public}/captcha/{captcha_id}/tokens/{token_id}"


# ── Clients ───────────────────────────────────────────────────────────────────


class TestRegisterClient:
    def test_returns_credentials(self, client):
        resp = client.post("/clients")
        assert resp.status_code == 201
        body = resp.json()
        assert ObjectId.is_valid(body["public"])
        assert body["secret"]
        assert resp.headers["location"] == f"/clients/{body['public']}"


# ── Captchas ──────────────────────────────────────────────────────────────────


class TestCreateCaptcha:
    def test_created_with_answer_in_test_mode(self, client, registered):
        public, _ = registered
        resp = client.post(f"/clients/{public}/captcha")
        assert resp.status_code == 201
        body = resp.json()
        assert len(body["answer"]) == 5
        assert set(body["answer"]) <= set("abcdef0123")
        assert resp.headers["location"] == f"/clients/{public}/captcha/{body['captcha_id']}"

    def test_answer_hidden_in_production_mode(self, store):
        app = create_app(_settings(captcha_mode="production"), store=store)
        with TestClient(app) as c:
            public = c.post("/clients").json()["public"]
            body = c.post(f"/clients/{public}/captcha").json()
        assert "answer" not in body
        assert "captcha_id" in body

    @pytest.mark.parametrize("public", ["42", str(ObjectId())], ids=["malformed", "unknown"])
    def test_unknown_client(self, client, public):
        resp = client.post(f"/clients/{public}/captcha")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"


class TestSolveCaptcha:
    def test_creates_token(self, client, registered, captcha):
        public, _ = registered
        resp = _solve(client, public, captcha["captcha_id"], "anything")
        assert resp.status_code == 201
        token_id = resp.json()["token_id"]
        assert resp.headers["location"] == _token_url(public, captcha["captcha_id"], token_id)

    def test_empty_answer_rejected(self, client, registered, captcha):
        public, _ = registered
        resp = _solve(client, public, captcha["captcha_id"], "")
        assert resp.status_code == 422

    def test_captcha_of_other_client(self, client, captcha):
        other = client.post("/clients").json()["public"]
        resp = _solve(client, other, captcha["captcha_id"], "x")
        assert resp.status_code == 404

    def test_expired_captcha(self, client, registered, store):
        public, _ = registered
        old = asyncio.run(store.add_captcha(
            CaptchaDoc(
                owner_id=ObjectId(public),
                answer="abc",
                created_at=utc_now() - timedelta(seconds=61),
            )
        ))
        resp = _solve(client, public, str(old.id), "abc")
        assert resp.status_code == 400
        assert resp.json()["code"] == "captcha_expired"


# ── Tokens ────────────────────────────────────────────────────────────────────


class TestTokenLifecycle:
    def test_right_answer_flow(self, client, registered, captcha):
        public, secret = registered
        captcha_id = captcha["captcha_id"]
        token_id = _solve(client, public, captcha_id, captcha["answer"]).json()["token_id"]
        url = _token_url(public, captcha_id, token_id)

        pending = client.get(url)
        assert pending.status_code == 400
        assert pending.json()["code"] == "token_not_activated"

        activated = client.post(f"{url}/activate", json={"key": secret})
        assert activated.status_code == 200
        assert activated.json() == {"success": True, "error": ""}

        for _ in range(2):
            result = client.get(url)
            assert result.status_code == 200
            assert result.json() == {"success": True, "error": ""}

    def test_wrong_answer_is_final(self, client, registered, captcha):
        public, secret = registered
        captcha_id = captcha["captcha_id"]
        token_id = _solve(client, public, captcha_id, "x" * 9).json()["token_id"]
        url = _token_url(public, captcha_id, token_id)

        resp = client.post(f"{url}/activate", json={"key": secret})
        assert resp.json() == {
            "success": False,
            "error": "9 characters entered, but should be 5.",
        }
        again = _solve(client, public, captcha_id, captcha["answer"])
        assert again.status_code == 400
        assert again.json()["code"] == "captcha_already_solved"

    def test_secret_alias_accepted(self, client, registered, captcha):
        public, secret = registered
        token_id = _solve(client, public, captcha["captcha_id"], captcha["answer"]).json()["token_id"]
        url = _token_url(public, captcha["captcha_id"], token_id)
        resp = client.post(f"{url}/activate", json={"secret": secret})
        assert resp.status_code == 200

    def test_wrong_key(self, client, registered, captcha):
        public, secret = registered
        token_id = _solve(client, public, captcha["captcha_id"], captcha["answer"]).json()["token_id"]
        url = _token_url(public, captcha["captcha_id"], token_id)

        resp = client.post(f"{url}/activate", json={"key": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "authentication_error"

        retry = client.post(f"{url}/activate", json={"key": secret})
        assert retry.json()["success"] is True

    def test_activate_twice(self, client, registered, captcha):
        public, secret = registered
        token_id = _solve(client, public, captcha["captcha_id"], captcha["answer"]).json()["token_id"]
        url = _token_url(public, captcha["captcha_id"], token_id)
        client.post(f"{url}/activate", json={"key": secret})
        resp = client.post(f"{url}/activate", json={"key": secret})
        assert resp.status_code == 400
        assert resp.json()["code"] == "token_already_activated"

    def test_unknown_token(self, client, registered, captcha):
        public, secret = registered
        url = _token_url(public, captcha["captcha_id"], ObjectId())
        assert client.get(url).status_code == 404
        assert client.post(f"{url}/activate", json={"key": secret}).status_code == 404

    def test_missing_key(self, client, registered, captcha):
        public, _ = registered
        token_id = _solve(client, public, captcha["captcha_id"], "abc").json()["token_id"]
        url = _token_url(public, captcha["captcha_id"], token_id)
        assert client.post(f"{url}/activate", json={}).status_code == 422


# ── Startup ───────────────────────────────────────────────────────────────────


def test_bad_character_range_fails_at_startup():
    with pytest.raises(InvalidRangeFormatError):
        create_app(_settings(captcha_character_range="[z-a]"))


def test_openapi_documents_error_shape(client):
    schema = client.get("/openapi.json").json()
    activate = schema["paths"]["/clients/{client_id}/captcha/{captcha_id}/tokens/{token_id}/activate"]["post"]
    assert {"400", "401", "404", "409"} <= set(activate["responses"])
    assert "code" in schema["components"]["schemas"]["ErrorResponse"]["properties"]
