"""
Request DTOs for captcha solving and token activation endpoints.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SolveCaptchaRequest(BaseModel):
    """Request body for submitting an answer to a captcha.

    The answer is recorded on a new verification token as-is; whether it is
    right is only decided when the token is activated.
    """

    model_config = ConfigDict(populate_by_name=True)

    answer: str = Field(min_length=1)


class ActivateTokenRequest(BaseModel):
    """Request body for activating a verification token.

    ``key`` is the owning client's secret; ``secret`` is accepted as an alias.
    """

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(min_length=1, validation_alias=AliasChoices("key", "secret"))
