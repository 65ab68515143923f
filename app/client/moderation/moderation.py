import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ModerationResult(BaseModel):
    has_abuse: bool = False
    clean_text: Optional[str] = None


class ModerationClient:
    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def moderate(self, text: str) -> ModerationResult:
        response = await self._http.post(f"{self._base_url}/moderate", json={"text": text})
        response.raise_for_status()
        return ModerationResult.model_validate(response.json())

    async def moderate_text_safe(self, text: str) -> ModerationResult:
        """Never raises; an unreachable moderator means the text passes through unchanged."""
        try:
            return await self.moderate(text)
        except (httpx.HTTPError, ValidationError, ValueError):
            logger.warning("moderation unavailable, keeping original text", exc_info=True)
            return ModerationResult()
