"""
Unit test configuration.

Settings classes read the environment and a .env file. Unit tests must see
neither: dotenv loading is patched out and the service's own variables are
cleared, so each test controls config through monkeypatch.setenv().
"""

import pytest

_SERVICE_ENV_VARS = (
    "STORE_BACKEND",
    "MONGODB_URI",
    "DB_NAME",
    "MONGODB_TRANSACTIONS",
    "CAPTCHA_LENGTH",
    "CAPTCHA_CHARACTER_RANGE",
    "CAPTCHA_TIMEOUT",
    "CAPTCHA_MODE",
    "ACTIVATION_RETRIES",
    "CREDENTIAL_SCHEME",
    "SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch):
    """Keep the developer's .env and shell exports out of unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _SERVICE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
