"""
Captcha and verification token lifecycle.

CaptchaLifecycleService is the only place that combines the store with the
entity state machines:

- create_captcha      new challenge text for a registered client
- find_active_captcha lookup + "not solved, not timed out" policy
- create_token        record a solver's answer against an active captcha
- activate_token      one-shot activation; token and captcha are persisted
                      together with compare-and-swap writes
- result_of_check     re-derived verdict of an activated token

Identifiers arrive as strings from the HTTP layer; anything that is not a
valid ObjectId is reported as not found.
"""

from __future__ import annotations

from typing import Any

from bson import ObjectId

from config import CaptchaSettings
from errors import NotFoundError, VersionConflictError
from infrastructure.auth.protocol import SecretVerifier
from repositories.protocol import CaptchaStore
from schemas.models.base import parse_object_id
from schemas.models.captcha import CaptchaCheckResult, CaptchaDoc
from schemas.models.token import VerificationTokenDoc
from services.client_service import ClientService
from shared.generators import ChallengeTextGenerator
from shared.logging import get_logger, log_with_context

log = get_logger(__name__)


def _require_id(value: Any, what: str) -> ObjectId:
    oid = parse_object_id(value)
    if oid is None:
        raise NotFoundError(f"{what} with id: {value} not found.")
    return oid


class CaptchaLifecycleService:
    def __init__(
        self,
        store: CaptchaStore,
        clients: ClientService,
        generator: ChallengeTextGenerator,
        verifier: SecretVerifier,
        settings: CaptchaSettings,
    ) -> None:
        self._store = store
        self._clients = clients
        self._generator = generator
        self._verifier = verifier
        self._timeout = settings.captcha_timeout
        self._activation_retries = settings.activation_retries

    async def create_captcha(self, owner_id: Any) -> CaptchaDoc:
        owner = await self._clients.get(owner_id)
        captcha = await self._store.add_captcha(
            CaptchaDoc.new(owner.id, self._generator.next())
        )
        log.info("captcha_created", captcha_id=str(captcha.id), owner_id=str(owner.id))
        return captcha

    async def find_active_captcha(self, owner_id: Any, captcha_id: Any) -> CaptchaDoc:
        """Return the captcha if it exists, is not solved and has not timed out."""
        owner_oid = _require_id(owner_id, "Client")
        captcha_oid = _require_id(captcha_id, "Captcha")
        captcha = await self._store.get_captcha(owner_oid, captcha_oid)
        if captcha is None:
            raise NotFoundError(
                f"Captcha with id: {captcha_id}, for client: {owner_id}, not found."
            )
        captcha.check_solved()
        captcha.check_timeout(self._timeout)
        return captcha

    async def create_token(
        self, owner_id: Any, captcha_id: Any, answer: str
    ) -> VerificationTokenDoc:
        """Record *answer* on a new token. Correctness is decided at activation."""
        captcha = await self.find_active_captcha(owner_id, captcha_id)
        token = await self._store.add_token(
            VerificationTokenDoc.for_captcha(captcha, answer)
        )
        log.info(
            "token_created",
            token_id=str(token.id),
            captcha_id=str(captcha.id),
            owner_id=str(captcha.owner_id),
        )
        return token

    async def find_token(
        self, owner_id: Any, captcha_id: Any, token_id: Any
    ) -> VerificationTokenDoc:
        """Load a token by (owner, captcha, token) with captcha and owner resolved."""
        owner_oid = _require_id(owner_id, "Client")
        captcha_oid = _require_id(captcha_id, "Captcha")
        token_oid = _require_id(token_id, "Verification token")
        token = await self._store.get_token(owner_oid, captcha_oid, token_oid)
        if token is None:
            raise NotFoundError(
                f"Verification token for client id: {owner_id}, captcha id: "
                f"{captcha_id} and token id: {token_id} not found."
            )
        return token

    async def activate_token(
        self, owner_id: Any, captcha_id: Any, token_id: Any, credential: str
    ) -> CaptchaCheckResult:
        """Activate a token once and persist the token and its captcha together.

        A stale write restarts the whole read-check-write sequence from a
        fresh read, so the loser of a race sees AlreadyActivatedError. When
        the retries run out the VersionConflictError is raised to the caller.
        """
        activation_log = log_with_context(
            log, token_id=str(token_id), captcha_id=str(captcha_id)
        )
        attempt = 0
        while True:
            token = await self.find_token(owner_id, captcha_id, token_id)
            result = token.activate(credential, self._timeout, self._verifier)
            try:
                await self._store.save_activation(token)
            except VersionConflictError:
                if attempt >= self._activation_retries:
                    activation_log.warning("activation_conflict_exhausted", attempts=attempt + 1)
                    raise
                attempt += 1
                activation_log.warning("activation_conflict_retry", attempt=attempt)
                continue
            activation_log.info("token_activated", success=result.success)
            return result

    async def result_of_check(
        self, owner_id: Any, captcha_id: Any, token_id: Any
    ) -> CaptchaCheckResult:
        token = await self.find_token(owner_id, captcha_id, token_id)
        return token.result_of_captcha_check()
