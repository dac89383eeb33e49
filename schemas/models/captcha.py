"""
Captcha document model and the check result value type.

Maps to the `captchas` MongoDB collection.

A captcha is Active while `solved` is false and Solved afterwards (terminal).
The only mutating operation is solve(); check() is a pure comparison that can
be called any number of times, whatever the state. A wrong answer still
consumes the captcha, so every captcha gets exactly one verdict.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import Field, field_validator

from errors import AlreadySolvedError, ExpiredError
from infrastructure.auth.protocol import SecretVerifier
from schemas.models.base import PyObjectId, VersionedDoc
from schemas.models.client import ClientDoc
from shared.datetime_utils import ensure_utc, seconds_since, utc_now


@dataclass(frozen=True)
class CaptchaCheckResult:
    """Outcome of comparing an answer with a captcha; error is "" iff success."""

    success: bool
    error: str = ""


class CaptchaDoc(VersionedDoc):
    """Document model for the `captchas` collection."""

    owner_id: PyObjectId
    answer: str = Field(min_length=1, frozen=True)
    created_at: datetime = Field(default_factory=utc_now, frozen=True)
    solved: bool = False

    # Resolved by the store when the captcha is loaded through a token
    owner: Optional[ClientDoc] = Field(default=None, exclude=True)

    @field_validator("created_at", mode="after")
    @classmethod
    def _created_at_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def new(
        cls,
        owner_id: ObjectId,
        answer: str,
        created_at: Optional[datetime] = None,
    ) -> "CaptchaDoc":
        """Build a captcha that is about to be stored for the first time.

        Rejects a creation time in the future. Stored captchas are loaded
        without this check, since the instance that wrote them may have a
        clock slightly ahead of ours.
        """
        created_at = ensure_utc(created_at) if created_at is not None else utc_now()
        if created_at > utc_now():
            raise ValueError("created_at must not be in the future")
        return cls(owner_id=owner_id, answer=answer, created_at=created_at)

    def check_timeout(
        self, timeout_seconds: int, now: Optional[datetime] = None
    ) -> None:
        """Raise ExpiredError when more than *timeout_seconds* have passed since creation."""
        if seconds_since(self.created_at, now) > timeout_seconds:
            raise ExpiredError(f"For captcha with id: {self.id} timeout is over.")

    def check_solved(self) -> None:
        if self.solved:
            raise AlreadySolvedError(f"Captcha with id: {self.id} has already solved.")

    def check(self, candidate: str) -> CaptchaCheckResult:
        """Compare *candidate* with the answer. No state checks, no mutation."""
        if candidate == self.answer:
            return CaptchaCheckResult(True, "")
        if len(candidate) != len(self.answer):
            return CaptchaCheckResult(
                False,
                f"{len(candidate)} characters entered, but should be {len(self.answer)}.",
            )
        return CaptchaCheckResult(False, "Wrong answer")

    def solve(
        self,
        candidate: str,
        credential: str,
        timeout_seconds: int,
        verifier: SecretVerifier,
        now: Optional[datetime] = None,
    ) -> CaptchaCheckResult:
        """Authenticate the owner, check state, compare, and close the captcha.

        The captcha is marked solved whether or not the answer is right.
        Any raised error leaves the captcha untouched.
        """
        if self.owner is None:
            raise RuntimeError(f"Owner of captcha {self.id} is not resolved")
        self.owner.authenticate(credential, verifier)
        self.check_solved()
        self.check_timeout(timeout_seconds, now)
        result = self.check(candidate)
        self.solved = True
        return result
