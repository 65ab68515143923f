import asyncio
import logging
from typing import Optional

from app.model.processing.processing_response import OutcomeKind
from app.service.complaint.processor import ComplaintProcessor

logger = logging.getLogger(__name__)


class PollingScheduler:
    """
    Runs one processing cycle per tick on a single asyncio task.
    Cycles are awaited back to back, so ticks never overlap inside a process.
    """

    def __init__(self, processor: ComplaintProcessor, interval_seconds: float):
        self._processor = processor
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def start(self) -> bool:
        """Returns False when polling was already running."""
        if self.status():
            return False
        previous = self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event, previous))
        logger.info("complaint polling started interval=%ss", self._interval)
        return True

    def stop(self) -> bool:
        """Prevents further cycles. A cycle already in progress runs to completion."""
        if not self.status():
            return False
        self._stop_event.set()
        logger.info("complaint polling stopped")
        return True

    def status(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stop_event.is_set()

    async def shutdown(self) -> None:
        self.stop()
        if self._task is not None:
            await self._task

    async def _run(self, stop_event: asyncio.Event, previous: Optional[asyncio.Task]) -> None:
        if previous is not None and not previous.done():
            # a stopped loop may still be finishing its last cycle
            await previous
        while not stop_event.is_set():
            await self._tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    async def _tick(self) -> None:
        try:
            outcome = await self._processor.process_next()
        except Exception:
            logger.exception("complaint processing cycle failed")
            return
        if outcome.kind is OutcomeKind.EMPTY:
            logger.debug("registration queue empty")
        elif outcome.kind is OutcomeKind.PROCESSED:
            logger.info("polling cycle processed complaint id=%s", outcome.complaint.id)
        else:
            logger.info("polling cycle %s reason=%s", outcome.kind.value, outcome.reason)
