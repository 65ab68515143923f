import asyncio
import json
import logging

from pydantic import ValidationError

from app.client.llm.chatgpt import SubcategoryClassifier
from app.client.moderation.moderation import ModerationClient
from app.model.complaint.complaint_request import ComplaintSubmission
from app.service.complaint.errors import ParseError, ReferenceInvalid, SchemaInvalid
from app.service.complaint.repository import ComplaintRepository
from app.service.complaint.types import ValidatedComplaint

logger = logging.getLogger(__name__)

INVALID_SCHEMA = "invalid schema"
INVALID_CATEGORY = "invalid categoryId"


def parse_submission(payload: str) -> ComplaintSubmission:
    """
    Decode a queue payload.
    Undecodable bytes raise ParseError, decodable but invalid data raises SchemaInvalid.
    """
    try:
        # escaped non-UTF-8 bytes survive json.loads inside string literals
        payload.encode("utf-8")
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError, UnicodeEncodeError, AttributeError) as e:
        raise ParseError("unparsable payload", cause=e) from e

    if not isinstance(data, dict):
        raise SchemaInvalid(INVALID_SCHEMA)
    try:
        return ComplaintSubmission.model_validate(data)
    except ValidationError as e:
        raise SchemaInvalid(INVALID_SCHEMA, cause=e) from e


class ValidationPipeline:
    """
    Schema -> category -> moderation -> sub-category standardization.
    Only the first two steps can reject; the last two fall back to the submitted text.
    """

    def __init__(
        self,
        repository: ComplaintRepository,
        moderator: ModerationClient,
        classifier: SubcategoryClassifier,
    ):
        self._repository = repository
        self._moderator = moderator
        self._classifier = classifier

    async def run(self, payload: str) -> ValidatedComplaint:
        submission = parse_submission(payload)

        category = await asyncio.to_thread(self._repository.find_category, submission.category_id)
        if category is None:
            raise ReferenceInvalid(INVALID_CATEGORY)

        description, is_moderated = await self._moderate(submission.description)
        standardized = await self._standardize(submission.sub_category, category.name)

        return ValidatedComplaint(
            submission=submission,
            category=category,
            description=description,
            standardized_sub_category=standardized,
            is_moderated=is_moderated,
        )

    async def _moderate(self, text: str) -> tuple[str, bool]:
        try:
            result = await self._moderator.moderate_text_safe(text)
        except Exception:
            logger.exception("moderation step failed, keeping original text")
            return text, False
        if result.has_abuse and result.clean_text:
            logger.info("complaint description sanitized by moderation")
            return result.clean_text, True
        return text, False

    async def _standardize(self, raw: str, category_name: str) -> str:
        try:
            return await self._classifier.standardize_safe(raw, category_name)
        except Exception:
            logger.exception("standardization step failed, keeping raw sub-category")
            return raw
