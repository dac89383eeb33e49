"""Plain-secret implementation of SecretVerifier.

Stores the raw secret and authenticates by (constant-time) equality. Kept for
deployments that need to read secrets back out of the store.
"""

from shared.crypto import constant_time_equals


class PlainSecretVerifier:
    def hash(self, secret: str) -> str:
        return secret

    def verify(self, credential: str, stored_secret: str) -> bool:
        return constant_time_equals(credential, stored_secret)
