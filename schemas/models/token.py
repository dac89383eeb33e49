"""
Verification token document model.

Maps to the `verification-tokens` MongoDB collection.

A token records one solver's answer to a captcha. It is Pending until it is
activated with the owning client's credential; activation solves the captcha
with the answer stored on the token (never a caller-supplied one) and can
happen at most once. After activation the check result can be read back any
number of times; it is re-derived from the captcha on every call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from errors import AlreadyActivatedError, NotYetActivatedError
from infrastructure.auth.protocol import SecretVerifier
from schemas.models.base import PyObjectId, VersionedDoc
from schemas.models.captcha import CaptchaCheckResult, CaptchaDoc
from shared.datetime_utils import utc_now


class VerificationTokenDoc(VersionedDoc):
    """Document model for the `verification-tokens` collection."""

    owner_id: PyObjectId
    captcha_id: PyObjectId
    answer_to_captcha: str = Field(min_length=1, frozen=True)
    activated: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    # Resolved by the store together with captcha.owner
    captcha: Optional[CaptchaDoc] = Field(default=None, exclude=True)

    @classmethod
    def for_captcha(cls, captcha: CaptchaDoc, answer: str) -> "VerificationTokenDoc":
        """New pending token bound to *captcha* and the solver's *answer*."""
        return cls(
            owner_id=captcha.owner_id,
            captcha_id=captcha.id,
            answer_to_captcha=answer,
            captcha=captcha,
        )

    def _resolved_captcha(self) -> CaptchaDoc:
        if self.captcha is None:
            raise RuntimeError(f"Captcha of token {self.id} is not resolved")
        return self.captcha

    def activate(
        self,
        credential: str,
        timeout_seconds: int,
        verifier: SecretVerifier,
        now: Optional[datetime] = None,
    ) -> CaptchaCheckResult:
        """Solve the bound captcha with the stored answer and mark the token activated."""
        if self.activated:
            raise AlreadyActivatedError(
                f"Verification token with id: {self.id} has already been activated."
            )
        result = self._resolved_captcha().solve(
            self.answer_to_captcha, credential, timeout_seconds, verifier, now
        )
        self.activated = True
        return result

    def result_of_captcha_check(self) -> CaptchaCheckResult:
        if not self.activated:
            raise NotYetActivatedError(
                f"Verification token with id: {self.id} has not been activated yet."
            )
        return self._resolved_captcha().check(self.answer_to_captcha)
