"""
Client document model.

Maps to the `clients` MongoDB collection.

A client is a registered consumer of the service: its ObjectId is the public
key and `secret` holds the credential as produced by the configured
SecretVerifier (an argon2 hash by default). Clients own captchas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from errors import AuthenticationError
from infrastructure.auth.protocol import SecretVerifier
from schemas.models.base import VersionedDoc


class ClientDoc(VersionedDoc):
    """Document model for the `clients` collection."""

    secret: str
    created_at: Optional[datetime] = None

    def authenticate(self, credential: str, verifier: SecretVerifier) -> None:
        """Raise AuthenticationError unless *credential* matches the stored secret."""
        if not verifier.verify(credential, self.secret):
            raise AuthenticationError(
                "Client authentication failed: wrong secret key."
            )
