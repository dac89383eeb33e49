"""
Response DTOs for client registration, captcha and token endpoints.

ClientCredentialsResponse — POST /clients  (201)
CaptchaCreatedResponse    — POST /clients/{client_id}/captcha  (201)
TokenCreatedResponse      — POST /clients/{client_id}/captcha/{captcha_id}/solve  (201)
CaptchaCheckResultResponse — token activation and result lookup  (200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.captcha import CaptchaCheckResult


class ClientCredentialsResponse(BaseModel):
    """Public id and secret of a newly registered client.

    The secret is only ever returned here; the store keeps its hash.
    """

    model_config = ConfigDict(populate_by_name=True)

    public: str
    secret: str


class CaptchaCreatedResponse(BaseModel):
    """Id of a new captcha. ``answer`` is only set when CAPTCHA_MODE=test."""

    model_config = ConfigDict(populate_by_name=True)

    captcha_id: str
    answer: Optional[str] = None


class TokenCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_id: str


class CaptchaCheckResultResponse(BaseModel):
    """Success flag plus the human-readable mismatch reason ("" on success)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    error: str

    @classmethod
    def from_result(cls, result: CaptchaCheckResult) -> "CaptchaCheckResultResponse":
        return cls(success=result.success, error=result.error)
