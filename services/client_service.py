"""Client registration and lookup."""

from __future__ import annotations

from typing import Any

from errors import NotFoundError
from infrastructure.auth.protocol import SecretVerifier
from repositories.protocol import CaptchaStore
from schemas.models.base import parse_object_id
from schemas.models.client import ClientDoc
from shared.datetime_utils import utc_now
from shared.generators import generate_client_secret
from shared.logging import get_logger

log = get_logger(__name__)


class ClientService:
    def __init__(self, store: CaptchaStore, verifier: SecretVerifier) -> None:
        self._store = store
        self._verifier = verifier

    async def register(self) -> tuple[ClientDoc, str]:
        """Register a new client.

        Returns:
            The stored client and its plaintext secret. The secret is not
            recoverable afterwards when the argon2 scheme is in use.
        """
        secret = generate_client_secret()
        client = await self._store.add_client(
            ClientDoc(secret=self._verifier.hash(secret), created_at=utc_now())
        )
        log.info("client_registered", client_id=str(client.id))
        return client, secret

    async def get(self, client_id: Any) -> ClientDoc:
        oid = parse_object_id(client_id)
        client = await self._store.get_client(oid) if oid is not None else None
        if client is None:
            raise NotFoundError(f"Client with id: {client_id} not found.")
        return client
