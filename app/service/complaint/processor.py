import asyncio
import logging
from datetime import timedelta

from app.model.complaint.complaint_response import ComplaintResponse
from app.model.processing.processing_response import ProcessingOutcome, QueueStatus
from app.service.badge.badge import BadgeService
from app.service.complaint.errors import (
    ConstraintViolation,
    ParseError,
    ReferenceInvalid,
    SchemaInvalid,
    TransientInfra,
)
from app.service.complaint.repository import ComplaintRepository
from app.service.complaint.validation import ValidationPipeline
from app.service.queue.processed_queue import ProcessedComplaintQueue
from app.service.queue.queue_store import RedisQueueStore

logger = logging.getLogger(__name__)

CONSTRAINT_REJECTION = "invalid complaint removed from queue"


class ComplaintProcessor:
    """
    Works one submission per call: reserve from the registration queue, validate,
    persist, forward. Every reserved payload leaves the in-flight list through
    exactly one of release (done or dropped) or requeue (retry at the intake tail).
    """

    def __init__(
        self,
        queue_store: RedisQueueStore,
        pipeline: ValidationPipeline,
        repository: ComplaintRepository,
        processed_queue: ProcessedComplaintQueue,
        badge_service: BadgeService,
        registration_queue: str,
        processing_queue: str,
        duplicate_window: timedelta = timedelta(hours=24),
    ):
        self._store = queue_store
        self._pipeline = pipeline
        self._repository = repository
        self._processed_queue = processed_queue
        self._badges = badge_service
        self.registration_queue = registration_queue
        self.processing_queue = processing_queue
        self._duplicate_window = duplicate_window
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def background_tasks(self) -> set[asyncio.Task]:
        return set(self._background_tasks)

    async def process_next(self) -> ProcessingOutcome:
        # Store failures here propagate: nothing has been reserved yet.
        payload = await asyncio.to_thread(self._store.reserve, self.registration_queue, self.processing_queue)
        if payload is None:
            return ProcessingOutcome.empty()

        try:
            validated = await self._pipeline.run(payload)
        except ParseError:
            logger.warning("unparsable payload, moving back to registration queue payload=%r", payload)
            return await self._requeue(payload, "unparsable payload, will retry")
        except (SchemaInvalid, ReferenceInvalid) as e:
            logger.error("complaint rejected reason=%s payload=%s", e.reason, payload)
            return await self._reject(payload, e.reason)
        except TransientInfra as e:
            logger.warning("validation interrupted reason=%s, requeueing", e.reason)
            return await self._requeue(payload, f"{e.reason}, will retry")

        try:
            duplicate_of = await asyncio.to_thread(
                self._repository.find_recent_duplicate, validated, self._duplicate_window
            )
            is_duplicate = duplicate_of is not None
            if is_duplicate:
                logger.info(
                    "possible duplicate complainant=%s existing_id=%s",
                    validated.submission.complainant_id,
                    duplicate_of,
                )
            complaint = await asyncio.to_thread(self._repository.create_complaint, validated, is_duplicate)
        except ConstraintViolation as e:
            logger.error("data integrity violation on persist, dropping payload=%s error=%s", payload, e.cause)
            return await self._reject(payload, CONSTRAINT_REJECTION)
        except TransientInfra as e:
            logger.warning("persistence failed reason=%s error=%s, requeueing", e.reason, e.cause)
            return await self._requeue(payload, "failed to persist complaint, will retry")

        # The record is committed from here on; store failures are logged, never retried.
        try:
            await asyncio.to_thread(self._store.release, self.processing_queue, payload)
        except TransientInfra:
            logger.error("complaint id=%s persisted but still in %s", complaint.id, self.processing_queue)

        if not is_duplicate:
            try:
                await asyncio.to_thread(self._processed_queue.push_to_queue, complaint)
            except TransientInfra:
                logger.error("complaint id=%s persisted but not forwarded to processed queue", complaint.id)
            self._spawn_badge_check(complaint)

        logger.info("complaint registered id=%s duplicate=%s", complaint.id, is_duplicate)
        return ProcessingOutcome.processed(complaint, is_duplicate)

    async def get_queue_status(self) -> QueueStatus:
        registration = await asyncio.to_thread(self._store.length, self.registration_queue)
        processing = await asyncio.to_thread(self._store.length, self.processing_queue)
        processed = await asyncio.to_thread(self._processed_queue.get_queue_length)
        return QueueStatus(
            registration_queue_length=registration,
            processing_queue_length=processing,
            processed_queue_length=processed,
        )

    async def wait_for_background_tasks(self) -> None:
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    async def _reject(self, payload: str, reason: str) -> ProcessingOutcome:
        await asyncio.to_thread(self._store.release, self.processing_queue, payload)
        return ProcessingOutcome.rejected(reason)

    async def _requeue(self, payload: str, reason: str) -> ProcessingOutcome:
        await asyncio.to_thread(self._store.requeue, self.processing_queue, self.registration_queue, payload)
        return ProcessingOutcome.requeued(reason)

    def _spawn_badge_check(self, complaint: ComplaintResponse) -> None:
        task = asyncio.create_task(self._check_badges(complaint))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _check_badges(self, complaint: ComplaintResponse) -> None:
        try:
            await asyncio.to_thread(self._badges.check_badges_after_complaint, complaint)
        except Exception:
            logger.exception("badge evaluation failed complaint_id=%s", complaint.id)
