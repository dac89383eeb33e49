"""
Client registration endpoint.

POST /clients — registers a new client and returns its public id and secret.
The secret is shown exactly once.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from dependencies import get_client_service
from schemas.dto.responses.captcha import ClientCredentialsResponse
from services.client_service import ClientService

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ClientCredentialsResponse,
)
async def register_client(
    response: Response,
    clients: ClientService = Depends(get_client_service),
) -> ClientCredentialsResponse:
    client, secret = await clients.register()
    response.headers["Location"] = f"/clients/{client.id}"
    return ClientCredentialsResponse(public=str(client.id), secret=secret)
