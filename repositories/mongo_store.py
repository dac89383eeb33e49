"""
MongoDB implementation of CaptchaStore.

Collections:
  clients              → ClientDoc
  captchas             → CaptchaDoc
  verification-tokens  → VerificationTokenDoc

Writes to existing documents are compare-and-swap on ``(_id, version)`` and
increment ``version``; a write that matches nothing raises
VersionConflictError. Activation writes the token and its captcha inside one
multi-document transaction when transactions are enabled (replica sets).
The captcha is written first in both modes: its CAS decides the single
activation per captcha. Without transactions a token write that loses after
the captcha write succeeded reopens the captcha before the conflict is raised.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from errors import VersionConflictError
from schemas.models.base import VersionedDoc
from schemas.models.captcha import CaptchaDoc
from schemas.models.client import ClientDoc
from schemas.models.token import VerificationTokenDoc
from shared.logging import get_logger

log = get_logger(__name__)

CLIENTS_COLLECTION = "clients"
CAPTCHAS_COLLECTION = "captchas"
TOKENS_COLLECTION = "verification-tokens"


class MongoCaptchaStore:
    def __init__(self, db: AsyncDatabase, *, use_transactions: bool = True) -> None:
        self._db = db
        self._use_transactions = use_transactions
        self._clients: AsyncCollection = db[CLIENTS_COLLECTION]
        self._captchas: AsyncCollection = db[CAPTCHAS_COLLECTION]
        self._tokens: AsyncCollection = db[TOKENS_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._captchas.create_index(
            [("owner_id", ASCENDING), ("_id", ASCENDING)]
        )
        await self._tokens.create_index(
            [("owner_id", ASCENDING), ("captcha_id", ASCENDING), ("_id", ASCENDING)]
        )

    async def ping(self) -> None:
        await self._db.client.admin.command("ping")

    # ── Clients ──────────────────────────────────────────────────────────────

    async def add_client(self, client: ClientDoc) -> ClientDoc:
        result = await self._clients.insert_one(client.to_mongo())
        client.id = result.inserted_id
        return client

    async def get_client(self, client_id: ObjectId) -> Optional[ClientDoc]:
        return ClientDoc.from_mongo(await self._clients.find_one({"_id": client_id}))

    # ── Captchas ─────────────────────────────────────────────────────────────

    async def add_captcha(self, captcha: CaptchaDoc) -> CaptchaDoc:
        result = await self._captchas.insert_one(captcha.to_mongo())
        captcha.id = result.inserted_id
        return captcha

    async def get_captcha(
        self, owner_id: ObjectId, captcha_id: ObjectId
    ) -> Optional[CaptchaDoc]:
        doc = await self._captchas.find_one({"_id": captcha_id, "owner_id": owner_id})
        return CaptchaDoc.from_mongo(doc)

    # ── Verification tokens ──────────────────────────────────────────────────

    async def add_token(self, token: VerificationTokenDoc) -> VerificationTokenDoc:
        result = await self._tokens.insert_one(token.to_mongo())
        token.id = result.inserted_id
        return token

    async def get_token(
        self, owner_id: ObjectId, captcha_id: ObjectId, token_id: ObjectId
    ) -> Optional[VerificationTokenDoc]:
        """Load a token by its full key with its captcha and owner resolved.

        Returns None when the token, the captcha or the owner is missing.
        """
        token = VerificationTokenDoc.from_mongo(
            await self._tokens.find_one(
                {"_id": token_id, "captcha_id": captcha_id, "owner_id": owner_id}
            )
        )
        if token is None:
            return None
        captcha = await self.get_captcha(owner_id, captcha_id)
        if captcha is None:
            return None
        owner = await self.get_client(owner_id)
        if owner is None:
            return None
        captcha.owner = owner
        token.captcha = captcha
        return token

    async def save_activation(self, token: VerificationTokenDoc) -> None:
        """Persist an activated token and its solved captcha atomically."""
        captcha = token.captcha
        if captcha is None:
            raise RuntimeError(f"Captcha of token {token.id} is not resolved")

        async def apply(session: Optional[AsyncClientSession] = None) -> None:
            await self._compare_and_set(
                self._captchas, captcha, {"solved": captcha.solved}, session
            )
            await self._compare_and_set(
                self._tokens, token, {"activated": token.activated}, session
            )

        if self._use_transactions:
            async with self._db.client.start_session() as session:
                await session.with_transaction(apply)
        else:
            await self._compare_and_set(
                self._captchas, captcha, {"solved": captcha.solved}, None
            )
            try:
                await self._compare_and_set(
                    self._tokens, token, {"activated": token.activated}, None
                )
            except VersionConflictError:
                await self._undo_solve(captcha)
                raise

        token.version += 1
        captcha.version += 1

    async def _compare_and_set(
        self,
        collection: AsyncCollection,
        doc: VersionedDoc,
        fields: dict[str, Any],
        session: Optional[AsyncClientSession],
    ) -> None:
        result = await collection.update_one(
            {"_id": doc.id, "version": doc.version},
            {"$set": fields, "$inc": {"version": 1}},
            session=session,
        )
        if result.matched_count == 0:
            log.warning(
                "version_conflict",
                collection=collection.name,
                doc_id=str(doc.id),
                expected_version=doc.version,
            )
            raise VersionConflictError(
                f"Document {doc.id} in {collection.name} was modified concurrently.",
                details={"expected_version": doc.version},
            )

    async def _undo_solve(self, captcha: CaptchaDoc) -> None:
        """Reopen a captcha whose solve was written but whose token write lost."""
        result = await self._captchas.update_one(
            {"_id": captcha.id, "version": captcha.version + 1, "solved": True},
            {"$set": {"solved": False}, "$inc": {"version": 1}},
        )
        log.warning(
            "activation_rolled_back",
            captcha_id=str(captcha.id),
            restored=result.matched_count == 1,
        )
