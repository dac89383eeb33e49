"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. The objects themselves are built once by the app
lifespan and stored on app.state.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from repositories.protocol import CaptchaStore
from services.captcha_service import CaptchaLifecycleService
from services.client_service import ClientService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_store(request: Request) -> CaptchaStore:
    """Return the CaptchaStore backend from app.state."""
    return request.app.state.store


def get_client_service(request: Request) -> ClientService:
    return request.app.state.client_service


def get_captcha_service(request: Request) -> CaptchaLifecycleService:
    return request.app.state.captcha_service
