"""SecretVerifier protocol — entities depend on this, not the concrete scheme."""

from typing import Protocol


class SecretVerifier(Protocol):
    def hash(self, secret: str) -> str: ...

    def verify(self, credential: str, stored_secret: str) -> bool: ...
