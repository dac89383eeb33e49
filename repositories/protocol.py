"""CaptchaStore protocol — services depend on this, not the concrete backend."""

from typing import Optional, Protocol

from bson import ObjectId

from schemas.models.captcha import CaptchaDoc
from schemas.models.client import ClientDoc
from schemas.models.token import VerificationTokenDoc


class CaptchaStore(Protocol):
    async def ensure_indexes(self) -> None: ...

    async def ping(self) -> None: ...

    async def add_client(self, client: ClientDoc) -> ClientDoc: ...

    async def get_client(self, client_id: ObjectId) -> Optional[ClientDoc]: ...

    async def add_captcha(self, captcha: CaptchaDoc) -> CaptchaDoc: ...

    async def get_captcha(
        self, owner_id: ObjectId, captcha_id: ObjectId
    ) -> Optional[CaptchaDoc]: ...

    async def add_token(self, token: VerificationTokenDoc) -> VerificationTokenDoc: ...

    async def get_token(
        self, owner_id: ObjectId, captcha_id: ObjectId, token_id: ObjectId
    ) -> Optional[VerificationTokenDoc]: ...

    async def save_activation(self, token: VerificationTokenDoc) -> None: ...
