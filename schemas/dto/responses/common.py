"""
Common response DTOs shared across multiple endpoints.

ErrorResponse    — standard error shape from AppError.to_dict()
HealthResponse   — GET /health
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    error_code: str = Field(alias="code")
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    checks: dict[str, str]
