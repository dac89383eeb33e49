"""
Captcha and verification token endpoints.

POST /clients/{client_id}/captcha                                      new captcha
POST /clients/{client_id}/captcha/{captcha_id}/solve                   new token
POST /clients/{client_id}/captcha/{captcha_id}/tokens/{token_id}/activate
GET  /clients/{client_id}/captcha/{captcha_id}/tokens/{token_id}       check result

Errors are raised as AppError subclasses and rendered by the global handler:
404 for unknown ids, 400 for state conflicts (solved, expired, activated,
not activated), 401 for a wrong client key, 409 for a lost write race.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from config import AppSettings
from dependencies import get_captcha_service, get_settings
from schemas.dto.requests.captcha import ActivateTokenRequest, SolveCaptchaRequest
from schemas.dto.responses.captcha import (
    CaptchaCheckResultResponse,
    CaptchaCreatedResponse,
    TokenCreatedResponse,
)
from schemas.dto.responses.common import ErrorResponse
from services.captcha_service import CaptchaLifecycleService

router = APIRouter(prefix="/clients/{client_id}/captcha", tags=["captcha"])

_NOT_FOUND = {404: {"model": ErrorResponse}}
_REJECTED = {400: {"model": ErrorResponse}, **_NOT_FOUND}
_ACTIVATION_ERRORS = {
    401: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    **_REJECTED,
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CaptchaCreatedResponse,
    response_model_exclude_none=True,
    responses=_NOT_FOUND,
)
async def create_captcha(
    client_id: str,
    response: Response,
    captchas: CaptchaLifecycleService = Depends(get_captcha_service),
    settings: AppSettings = Depends(get_settings),
) -> CaptchaCreatedResponse:
    captcha = await captchas.create_captcha(client_id)
    response.headers["Location"] = f"/clients/{client_id}/captcha/{captcha.id}"
    return CaptchaCreatedResponse(
        captcha_id=str(captcha.id),
        answer=captcha.answer if settings.captcha.expose_answer else None,
    )


@router.post(
    "/{captcha_id}/solve",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenCreatedResponse,
    responses=_REJECTED,
)
async def solve_captcha(
    client_id: str,
    captcha_id: str,
    body: SolveCaptchaRequest,
    response: Response,
    captchas: CaptchaLifecycleService = Depends(get_captcha_service),
) -> TokenCreatedResponse:
    token = await captchas.create_token(client_id, captcha_id, body.answer)
    response.headers["Location"] = (
        f"/clients/{client_id}/captcha/{captcha_id}/tokens/{token.id}"
    )
    return TokenCreatedResponse(token_id=str(token.id))


@router.post(
    "/{captcha_id}/tokens/{token_id}/activate",
    response_model=CaptchaCheckResultResponse,
    responses=_ACTIVATION_ERRORS,
)
async def activate_token(
    client_id: str,
    captcha_id: str,
    token_id: str,
    body: ActivateTokenRequest,
    captchas: CaptchaLifecycleService = Depends(get_captcha_service),
) -> CaptchaCheckResultResponse:
    result = await captchas.activate_token(client_id, captcha_id, token_id, body.key)
    return CaptchaCheckResultResponse.from_result(result)


@router.get(
    "/{captcha_id}/tokens/{token_id}",
    response_model=CaptchaCheckResultResponse,
    responses=_REJECTED,
)
async def get_check_result(
    client_id: str,
    captcha_id: str,
    token_id: str,
    captchas: CaptchaLifecycleService = Depends(get_captcha_service),
) -> CaptchaCheckResultResponse:
    result = await captchas.result_of_check(client_id, captcha_id, token_id)
    return CaptchaCheckResultResponse.from_result(result)
