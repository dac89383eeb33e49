"""Argon2 implementation of SecretVerifier.

Client secrets are stored as argon2id hashes; the plaintext secret is shown
to the client exactly once, at registration.
"""

from shared.crypto import hash_secret, verify_secret


class Argon2SecretVerifier:
    def hash(self, secret: str) -> str:
        return hash_secret(secret)

    def verify(self, credential: str, stored_secret: str) -> bool:
        if not credential:
            return False
        return verify_secret(credential, stored_secret)
