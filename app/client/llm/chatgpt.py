import asyncio
import json
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)


def call_llm(client: OpenAI, model: str, system_prompt: str, message: str) -> str:
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": message},
        ],
        temperature=0,
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content or ""


class SubcategoryClassifier:
    """Maps free-text subcategories onto the controlled vocabulary used by departments."""

    SYSTEM_PROMPT = (
        "You standardize sub-categories of civic complaints. "
        "Given a category name and a free-text sub-category written by a citizen, "
        "return the closest short standard sub-category term in title case. "
        "Return JSON only: {\"sub_category\":\"<term>\"}. "
        "If you cannot decide, return the input unchanged."
    )

    def __init__(self, client: Optional[OpenAI], model: str):
        self._client = client
        self._model = model

    async def standardize_sub_category(self, raw_text: str, category_name: str = "") -> str:
        if self._client is None:
            return raw_text
        message = json.dumps({"category": category_name, "sub_category": raw_text}, ensure_ascii=False)
        raw = await asyncio.to_thread(call_llm, self._client, self._model, self.SYSTEM_PROMPT, message)
        data = json.loads(raw)
        term = data.get("sub_category") if isinstance(data, dict) else None
        if not isinstance(term, str) or not term.strip():
            return raw_text
        return term.strip()

    async def standardize_safe(self, raw_text: str, category_name: str = "") -> str:
        try:
            return await self.standardize_sub_category(raw_text, category_name)
        except (OpenAIError, json.JSONDecodeError):
            logger.warning("sub-category standardization failed, keeping raw value", exc_info=True)
            return raw_text
