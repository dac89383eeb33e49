from typing import Literal

from infrastructure.auth.argon2_verifier import Argon2SecretVerifier
from infrastructure.auth.plain import PlainSecretVerifier
from infrastructure.auth.protocol import SecretVerifier


def build_secret_verifier(scheme: Literal["argon2", "plain"]) -> SecretVerifier:
    """Return the verifier for the configured CREDENTIAL_SCHEME."""
    if scheme == "plain":
        return PlainSecretVerifier()
    return Argon2SecretVerifier()


__all__ = [
    "Argon2SecretVerifier",
    "PlainSecretVerifier",
    "SecretVerifier",
    "build_secret_verifier",
]
