"""
In-memory implementation of CaptchaStore.

Used by STORE_BACKEND=memory (local development without MongoDB) and the
integration tests. Documents are stored as deep copies so callers never share
mutable state with the store, mirroring a real database round trip; resolved
relations are stripped on write and re-resolved on read.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from bson import ObjectId

from errors import VersionConflictError
from schemas.models.captcha import CaptchaDoc
from schemas.models.client import ClientDoc
from schemas.models.token import VerificationTokenDoc


class InMemoryCaptchaStore:
    def __init__(self) -> None:
        self._clients: dict[ObjectId, ClientDoc] = {}
        self._captchas: dict[ObjectId, CaptchaDoc] = {}
        self._tokens: dict[ObjectId, VerificationTokenDoc] = {}
        self._lock = asyncio.Lock()

    async def ensure_indexes(self) -> None:
        return None

    async def ping(self) -> None:
        return None

    async def add_client(self, client: ClientDoc) -> ClientDoc:
        client.id = client.id or ObjectId()
        self._clients[client.id] = client.model_copy(deep=True)
        return client

    async def get_client(self, client_id: ObjectId) -> Optional[ClientDoc]:
        stored = self._clients.get(client_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def add_captcha(self, captcha: CaptchaDoc) -> CaptchaDoc:
        captcha.id = captcha.id or ObjectId()
        self._captchas[captcha.id] = captcha.model_copy(update={"owner": None}, deep=True)
        return captcha

    async def get_captcha(
        self, owner_id: ObjectId, captcha_id: ObjectId
    ) -> Optional[CaptchaDoc]:
        stored = self._captchas.get(captcha_id)
        if stored is None or stored.owner_id != owner_id:
            return None
        return stored.model_copy(deep=True)

    async def add_token(self, token: VerificationTokenDoc) -> VerificationTokenDoc:
        token.id = token.id or ObjectId()
        self._tokens[token.id] = token.model_copy(update={"captcha": None}, deep=True)
        return token

    async def get_token(
        self, owner_id: ObjectId, captcha_id: ObjectId, token_id: ObjectId
    ) -> Optional[VerificationTokenDoc]:
        stored = self._tokens.get(token_id)
        if stored is None or stored.owner_id != owner_id or stored.captcha_id != captcha_id:
            return None
        captcha = await self.get_captcha(owner_id, captcha_id)
        owner = await self.get_client(owner_id)
        if captcha is None or owner is None:
            return None
        captcha.owner = owner
        token = stored.model_copy(deep=True)
        token.captcha = captcha
        return token

    async def save_activation(self, token: VerificationTokenDoc) -> None:
        captcha = token.captcha
        if captcha is None:
            raise RuntimeError(f"Captcha of token {token.id} is not resolved")

        async with self._lock:
            # Check both versions before writing either document
            for stored, doc in (
                (self._tokens.get(token.id), token),
                (self._captchas.get(captcha.id), captcha),
            ):
                if stored is None or stored.version != doc.version:
                    raise VersionConflictError(
                        f"Document {doc.id} was modified concurrently.",
                        details={"expected_version": doc.version},
                    )
            self._tokens[token.id] = token.model_copy(
                update={"captcha": None, "version": token.version + 1}, deep=True
            )
            self._captchas[captcha.id] = captcha.model_copy(
                update={"owner": None, "version": captcha.version + 1}, deep=True
            )

        token.version += 1
        captcha.version += 1
